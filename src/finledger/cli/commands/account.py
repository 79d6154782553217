"""Account management commands."""

from decimal import Decimal

import click
from finledger.cli.account_resolution import resolve_account_or_exit
from finledger.cli.date_filters import parse_date_or_exit
from finledger.cli.error_handling import domain_errors
from finledger.cli.formatting import format_money
from finledger.domain.account import AccountService
from finledger.domain.entities import Account, AuditAction, Category
from finledger.utils.amount_parser import parse_amount


def _parse_category(ctx, param, value: str | None) -> Category | None:
    if value is None:
        return None
    category = Category.from_label(value)
    if category is None:
        choices = ", ".join(c.value for c in Category)
        raise click.BadParameter(f"'{value}' is not a category. Choose from: {choices}")
    return category


def _parse_balance(ctx, param, value: str) -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _account_line(acc: Account) -> str:
    as_of = acc.balance_date.isoformat() if acc.balance_date else "-"
    return f"{acc.id[:8]} | {acc.label:30s} | {format_money(acc.balance):>16} | as of {as_of}"


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("list")
@click.option("--category", callback=_parse_category, help="Only show one category")
@click.pass_context
def list_accounts(ctx, category: Category | None):
    """List all accounts, grouped by category."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(category=category)
    if not accounts:
        click.echo("No accounts found.")
        return

    current = None
    for acc in accounts:
        if acc.category is not current:
            current = acc.category
            click.echo(f"\n{current.title}:")
            click.echo("-" * 80)
        click.echo(_account_line(acc))


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show details of one account.

    ACCOUNT can be an account name, alias, display name or ID.
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.get_account(account_id)

    click.echo(f"ID:            {acc.id}")
    click.echo(f"Name:          {acc.name}")
    if acc.display_name:
        click.echo(f"Display name:  {acc.display_name}")
    if acc.previous_names:
        click.echo(f"Aliases:       {', '.join(acc.previous_names)}")
    click.echo(f"Category:      {acc.category.title}")
    click.echo(f"Balance:       {format_money(acc.balance)}")
    if acc.balance_date:
        click.echo(f"As of:         {acc.balance_date.isoformat()}")
    click.echo(f"History:       {len(acc.history)} entr{'y' if len(acc.history) == 1 else 'ies'}")
    if acc.merged:
        names = ", ".join(f"'{m.account.name}'" for m in acc.merged)
        click.echo(f"Merged from:   {names}")


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--category", required=True, callback=_parse_category, help="cash, investments, real_estate or liabilities"
)
@click.option("--balance", default="0", callback=_parse_balance, help="Opening balance")
@click.option("--as-of", help="Date of the opening balance (default: today)")
@click.pass_context
def create_account(ctx, name: str, category: Category, balance: Decimal, as_of: str | None):
    """Create an account by hand.

    Liabilities are entered as positive amounts owed.

    Examples:
        finledger account create "House" --category real_estate --balance 450000
        finledger account create "Car Loan" --category liabilities --balance 12,500
    """
    effective_date = parse_date_or_exit(ctx, as_of, "as-of date")
    service = AccountService(ctx.obj["db"])

    with domain_errors(ctx):
        acc = service.create_account(
            name=name, category=category, balance=balance, effective_date=effective_date
        )
    click.echo(f"Created account '{acc.name}' (ID: {acc.id})")


@account_group.command("balance")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount", callback=_parse_balance)
@click.option("--as-of", help="Date of the balance (default: today)")
@click.pass_context
def set_balance(ctx, account: str, amount: Decimal, as_of: str | None):
    """Record a balance for an account by hand."""
    effective_date = parse_date_or_exit(ctx, as_of, "as-of date")
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    with domain_errors(ctx):
        acc, changed = service.update_balance(account_id, amount, effective_date)
    if changed:
        click.echo(f"Balance of '{acc.label}' set to {format_money(acc.balance)}")
    else:
        click.echo(
            f"Added {format_money(amount)} to the history of '{acc.label}'; "
            f"current balance stays {format_money(acc.balance)}"
        )


@account_group.command("display-name")
@click.argument("account", metavar="ACCOUNT")
@click.argument("display_name", metavar="DISPLAY_NAME", required=False)
@click.option("--clear", is_flag=True, help="Remove the display name")
@click.pass_context
def set_display_name(ctx, account: str, display_name: str | None, clear: bool):
    """Set the name shown for an account.

    Screenshots keep matching the original name.

    Examples:
        finledger account display-name "CHASE TOTAL CHK" "Everyday checking"
        finledger account display-name "Everyday checking" --clear
    """
    if not clear and not display_name:
        click.echo("Error: Provide DISPLAY_NAME or --clear.", err=True)
        ctx.exit(1)

    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    with domain_errors(ctx):
        acc = service.set_display_name(account_id, None if clear else display_name)
    if acc.display_name:
        click.echo(f"'{acc.name}' is now shown as '{acc.display_name}'")
    else:
        click.echo(f"Display name of '{acc.name}' cleared")


@account_group.command("alias")
@click.argument("account", metavar="ACCOUNT")
@click.argument("alias", metavar="ALIAS")
@click.pass_context
def add_alias(ctx, account: str, alias: str):
    """Add another name that screenshots may show for an account."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    with domain_errors(ctx):
        acc = service.add_alias(account_id, alias)
    click.echo(f"'{acc.name}' also matches: {', '.join(acc.previous_names)}")


@account_group.command("merge")
@click.argument("accounts", metavar="ACCOUNT...", nargs=-1, required=True)
@click.pass_context
def merge_accounts(ctx, accounts: tuple[str, ...]):
    """Merge duplicate accounts into one.

    The most recently updated account is kept; the others become its
    aliases. Use 'account unmerge' to undo.
    """
    service = AccountService(ctx.obj["db"])
    account_ids = [resolve_account_or_exit(ctx, service, acc) for acc in accounts]

    with domain_errors(ctx):
        result = service.merge_accounts(account_ids)
    names = ", ".join(f"'{name}'" for name in result.merged_names)
    click.echo(f"Merged {names} into '{result.survivor.label}' (ID: {result.survivor.id})")


@account_group.command("unmerge")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def unmerge_account(ctx, account: str):
    """Restore the accounts that were merged into ACCOUNT."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    with domain_errors(ctx):
        result = service.unmerge_account(account_id)
    click.echo(f"Restored {result.restored_count} account(s) from '{result.source.label}':")
    for acc in result.restored:
        click.echo(f"  {_account_line(acc)}")


@account_group.command("audit")
@click.argument("account", required=False)
@click.pass_context
def audit_log(ctx, account: str | None):
    """Show merges and unmerges, newest first.

    With ACCOUNT, only entries involving that account are shown.
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account) if account else None

    entries = service.audit_log(account_id)
    if not entries:
        click.echo("No merges or unmerges recorded.")
        return

    for entry in entries:
        names = ", ".join(f"'{name}'" for name in entry.related_names)
        stamp = entry.timestamp.strftime("%Y-%m-%d %H:%M")
        if entry.action is AuditAction.ACCOUNTS_MERGED:
            click.echo(f"{stamp}  merged {names} into '{entry.account_name}'")
        else:
            click.echo(f"{stamp}  restored {names} from '{entry.account_name}'")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account and its history.

    ACCOUNT can be an account name, alias, display name or ID.
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.get_account(account_id)

    if not yes and not click.confirm(f"Are you sure you want to delete account '{acc.label}' (ID: {acc.id})?"):
        click.echo("Deletion cancelled.")
        return

    with domain_errors(ctx):
        service.delete_account(account_id)
    click.echo(f"Deleted account '{acc.label}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
