"""Initialize default categories."""

import click
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.category import DEFAULT_CATEGORIES, CategoryService
from finledger.domain.errors import StorageError


@click.command("init-categories")
@click.pass_context
def init_categories(ctx):
    """Create the default income and expense categories.

    Includes the categories used for transfers, invoice payments, debt
    payments and investment operations. Existing categories are kept.
    """
    service = CategoryService(ctx.obj["db"])

    click.echo("Creating default categories...")
    try:
        created = service.init_default_categories()
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    skipped = len(DEFAULT_CATEGORIES) - created
    if skipped == 0:
        click.echo(f"Successfully created {created} categories.")
    else:
        click.echo(f"Created {created} categories ({skipped} already existed).")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
