"""Main CLI entry point."""

import click
from finledger.database.factories import STORE_BACKENDS, create_store
from finledger.domain.errors import DomainError
from finledger.domain.matching import MatchPolicy
from finledger.logging_setup import configure_logging

# Import and register all commands at module level
from finledger.cli.commands import account, history, upload


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides FINLEDGER_DB_PATH environment variable)",
    envvar="FINLEDGER_DB_PATH",
)
@click.option(
    "--store",
    "store_backend",
    type=click.Choice(STORE_BACKENDS),
    default="sqlite",
    show_default=True,
    envvar="FINLEDGER_STORE",
    help="Storage backend",
)
@click.option(
    "--data-path",
    type=click.Path(),
    envvar="FINLEDGER_DATA_PATH",
    help="Encrypted ledger file (encrypted store only)",
)
@click.option(
    "--key-path",
    type=click.Path(),
    envvar="FINLEDGER_KEY_PATH",
    help="Encryption key file (encrypted store only)",
)
@click.option(
    "--case-sensitive-match",
    is_flag=True,
    envvar="FINLEDGER_MATCH_CASE_SENSITIVE",
    help="Match account names with their exact case",
)
@click.option(
    "--log-level",
    envvar="FINLEDGER_LOG_LEVEL",
    help="Log level (DEBUG, INFO, WARNING, ERROR)",
)
@click.pass_context
def cli(
    ctx,
    db_path: str | None,
    store_backend: str,
    data_path: str | None,
    key_path: str | None,
    case_sensitive_match: bool,
    log_level: str | None,
):
    """Finledger - Net worth ledger fed by account screenshots.

    Upload screenshots of an account aggregator and keep a history of every
    account balance and of your net worth.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Open the store only when actually running a command (not for --help)
    if ctx.invoked_subcommand is not None:
        try:
            store = create_store(
                store_backend,
                database_path=db_path,
                data_path=data_path,
                key_path=key_path,
            )
            store.connect()
            store.initialize_schema()
        except DomainError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        ctx.call_on_close(store.disconnect)
        ctx.obj["db"] = store
        ctx.obj["policy"] = MatchPolicy(case_sensitive=case_sensitive_match)


# Register all commands
upload.register_commands(cli)
account.register_commands(cli)
history.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
