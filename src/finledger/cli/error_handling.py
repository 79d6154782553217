"""CLI error handling helpers."""

from contextlib import contextmanager
from typing import Iterator

import click

from finledger.domain.errors import DomainError, StorageError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, StorageError):
        click.echo(f"Error: storage failure: {error}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


@contextmanager
def domain_errors(ctx: click.Context) -> Iterator[None]:
    """Turn domain errors raised inside the block into a CLI error exit."""
    try:
        yield
    except DomainError as exc:
        handle_domain_error(ctx, exc)
