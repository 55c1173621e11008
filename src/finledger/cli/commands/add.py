"""Add transaction command."""

import click
from finledger.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from finledger.cli.date_filters import parse_amount_or_exit, parse_date_or_exit
from finledger.cli.error_handling import handle_domain_error, service_options
from finledger.domain.account import AccountService
from finledger.domain.category import CategoryService
from finledger.domain.errors import StorageError
from finledger.domain.transaction import TransactionService


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--date",
    required=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option(
    "--amount",
    required=True,
    help="Transaction amount (e.g., 123.45). A negative amount records an expense",
)
@click.option("--category", required=True, help="Category name or ID")
@click.option(
    "--type",
    "txn_type",
    type=click.Choice(["income", "expense"]),
    help="Transaction type (inferred from the amount sign when omitted)",
)
@click.option("--description", default="", help="Transaction description")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    date: str,
    amount: str,
    category: str,
    txn_type: str | None,
    description: str,
):
    """Add an income or expense transaction.

    Past and present dates are recorded as completed and move the account
    balance right away; future dates stay pending until completed.

    Examples:
        finledger add --account Checking --date 2024-01-15 --amount -50.00 --category Food
        finledger add --account 1 --date today --amount 3000 --category Salary
    """
    db = ctx.obj["db"]
    transaction_service = TransactionService(db, **service_options(ctx))
    account_service = AccountService(db, ctx.obj["owner_id"])
    category_service = CategoryService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    txn_date = parse_date_or_exit(ctx, date)
    txn_amount = parse_amount_or_exit(ctx, amount)
    if txn_type is None:
        txn_type = "expense" if txn_amount < 0 else "income"
    category_id = resolve_category_or_exit(ctx, category_service, category, txn_type)

    try:
        transaction_id = transaction_service.create_transaction(
            account_id=account_id,
            category_id=category_id,
            type=txn_type,
            amount=abs(txn_amount),
            transaction_date=txn_date,
            description=description,
        )
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    txn = transaction_service.get_transaction(transaction_id)
    account_obj = account_service.get_account(account_id)
    click.echo(f"Created transaction {transaction_id} ({txn.status.value})")
    click.echo(f"  Account: {account_obj.name}")
    click.echo(f"  Date: {txn_date}")
    click.echo(f"  Amount: ${txn.signed_amount:,.2f}")
    if description:
        click.echo(f"  Description: {description}")
    click.echo(f"  Balance: ${account_obj.balance:,.2f}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
