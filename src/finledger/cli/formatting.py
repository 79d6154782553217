"""Shared output formatting for CLI commands."""

from decimal import Decimal

import click

from finledger.domain.ledger import ImportSummary


def format_money(amount: Decimal) -> str:
    """Format an amount as dollars, with the sign before the symbol."""
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def echo_import_summary(summary: ImportSummary) -> None:
    """Print the result of an import, with ambiguity warnings on stderr."""
    if summary.is_empty:
        click.echo("No accounts found in screenshot. Nothing was changed.")
        return

    click.echo(summary.describe())
    for outcome in summary.outcomes:
        if not outcome.balance_changed:
            click.echo(
                f"  '{outcome.record.name}': older than the current balance, added to history only"
            )
    click.echo(f"Net worth: {format_money(summary.net_worth)}")

    for outcome in summary.ambiguous:
        names = ", ".join(f"'{acc.label}'" for acc in outcome.match.candidates)
        click.echo(
            f"Warning: '{outcome.record.name}' matched {len(outcome.match.candidates)} accounts "
            f"({names}); updated the most recently updated one",
            err=True,
        )
