"""Balance history and net worth commands."""

import click
from finledger.cli.account_resolution import resolve_account_or_exit
from finledger.cli.date_filters import PERIOD_OPTIONS, resolve_cli_date_range
from finledger.cli.error_handling import domain_errors
from finledger.cli.formatting import format_money
from finledger.domain.account import AccountService
from finledger.domain.entities import Category
from finledger.domain.summary import SummaryService


def _date_range_options(func):
    func = click.option(
        "--period", type=click.Choice(PERIOD_OPTIONS), help="Predefined date range"
    )(func)
    func = click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")(func)
    func = click.option(
        "--start-date", help="Start date (YYYY-MM-DD or relative like 'last year')"
    )(func)
    return func


@click.command("history")
@click.argument("account", metavar="ACCOUNT")
@_date_range_options
@click.pass_context
def account_history(ctx, account: str, start_date: str | None, end_date: str | None, period: str | None):
    """Show the balance history of an account.

    Examples:
        finledger history "Brokerage"
        finledger history "Brokerage" --period this-year
    """
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    service = SummaryService(db)

    with domain_errors(ctx):
        entries = service.account_history(account_id, start, end)

    if not entries:
        click.echo("No history found.")
        return

    click.echo(f"\n{'Date':<12} {'Balance':>16}  Source")
    click.echo("-" * 42)
    for entry in entries:
        click.echo(f"{entry.date.isoformat():<12} {format_money(entry.balance):>16}  {entry.source.value}")


@click.command("networth")
@click.option("--history", "show_history", is_flag=True, help="Show net worth over time")
@_date_range_options
@click.pass_context
def net_worth(ctx, show_history: bool, start_date: str | None, end_date: str | None, period: str | None):
    """Show net worth, totals per category, or net worth over time."""
    service = SummaryService(ctx.obj["db"])

    if not show_history:
        if start_date or end_date or period:
            click.echo("Error: Date range options require --history.", err=True)
            ctx.exit(1)
        report = service.net_worth_report()
        if report.account_count == 0:
            click.echo("No accounts found.")
            return
        for category in Category:
            click.echo(f"{category.title:<20} {format_money(report.totals[category]):>16}")
        click.echo("-" * 37)
        click.echo(f"{'Assets':<20} {format_money(report.assets):>16}")
        click.echo(f"{'Liabilities':<20} {format_money(report.liabilities):>16}")
        click.echo(f"{'Net worth':<20} {format_money(report.net_worth):>16}")
        return

    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    points = service.net_worth_history(start, end)
    if not points:
        click.echo("No history found.")
        return

    click.echo(f"\n{'Date':<12} {'Assets':>16} {'Liabilities':>16} {'Net worth':>16}")
    click.echo("-" * 63)
    for point in points:
        click.echo(
            f"{point.date.isoformat():<12} {format_money(point.assets):>16} "
            f"{format_money(point.liabilities):>16} {format_money(point.net_worth):>16}"
        )


def register_commands(cli):
    """Register history commands with main CLI."""
    cli.add_command(account_history)
    cli.add_command(net_worth)
