"""CLI helpers for account resolution."""

from __future__ import annotations

import click
from finledger.domain.account import AccountService
from finledger.domain.errors import DomainError
from finledger.utils.account_resolver import resolve_account
from finledger.cli.error_handling import handle_domain_error


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str
) -> str:
    """Resolve an account ID, ID prefix or name, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
