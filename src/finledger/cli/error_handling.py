"""CLI error handling helpers."""

import click

from finledger.domain.errors import DomainError, StorageError


def handle_domain_error(ctx: click.Context, error: DomainError | StorageError | ValueError) -> None:
    """Render a domain or storage error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def service_options(ctx: click.Context) -> dict:
    """Keyword arguments shared by the ledger services of one invocation."""
    return {
        "owner_id": ctx.obj["owner_id"],
        "system_categories": ctx.obj["system_categories"],
    }
