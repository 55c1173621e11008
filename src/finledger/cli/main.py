"""Main CLI entry point."""

import logging

import click
from finledger.config import LedgerSettings
from finledger.database.factories import create_sqlite_database
from finledger.domain.category import CategoryService

# Import and register all commands at module level
from finledger.cli.commands import (
    account,
    add,
    card,
    category,
    debt,
    init_categories,
    invest,
    statement,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINLEDGER_DB_PATH environment variable)",
    envvar="FINLEDGER_DB_PATH",
)
@click.option(
    "--owner",
    help="Owner of the ledger records (overrides FINLEDGER_OWNER environment variable)",
    envvar="FINLEDGER_OWNER",
)
@click.option("--verbose", "-v", is_flag=True, help="Log ledger operations to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, owner: str | None, verbose: bool):
    """finledger - Personal finance ledger.

    Keeps account balances, credit card invoices, debts and investment
    positions consistent with the transactions that move money.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        settings = LedgerSettings.from_env()
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.obj["owner_id"] = owner or settings.owner_id
        ctx.obj["system_categories"] = CategoryService(db).resolve_system_categories(settings)


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
init_categories.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
card.register_commands(cli)
debt.register_commands(cli)
invest.register_commands(cli)
statement.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
