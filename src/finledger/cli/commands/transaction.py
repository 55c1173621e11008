"""Transaction management commands."""

import click
from finledger.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from finledger.cli.date_filters import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_cli_date_range,
)
from finledger.cli.error_handling import handle_domain_error, service_options
from finledger.domain.account import AccountService
from finledger.domain.category import CategoryService
from finledger.domain.errors import StorageError
from finledger.domain.transaction import TransactionService


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("transfer")
@click.argument("from_account", metavar="FROM_ACCOUNT")
@click.argument("to_account", metavar="TO_ACCOUNT")
@click.argument("amount")
@click.option("--date", "txn_date", default="today", show_default=True, help="Transfer date")
@click.option("--description", default="", help="Transfer description")
@click.pass_context
def transfer(ctx, from_account: str, to_account: str, amount: str, txn_date: str, description: str):
    """Move money between two accounts.

    Examples:
        finledger transaction transfer Checking Savings 500
        finledger transaction transfer 1 2 250.00 --date 2024-03-01 --description "Rent share"
    """
    db = ctx.obj["db"]
    service = TransactionService(db, **service_options(ctx))
    account_service = AccountService(db, ctx.obj["owner_id"])

    source_id = resolve_account_or_exit(ctx, account_service, from_account)
    destination_id = resolve_account_or_exit(ctx, account_service, to_account)
    transfer_date = parse_date_or_exit(ctx, txn_date)
    transfer_amount = parse_amount_or_exit(ctx, amount)

    try:
        expense_id, income_id = service.create_transfer(
            from_account_id=source_id,
            to_account_id=destination_id,
            amount=transfer_amount,
            transaction_date=transfer_date,
            description=description,
        )
        click.echo(f"Created transfer of ${transfer_amount:,.2f} (transactions {expense_id} and {income_id})")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account name or ID")
@click.option("--date", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--amount", help="Transaction amount (e.g., 123.45)")
@click.option("--type", "txn_type", type=click.Choice(["income", "expense"]), help="Transaction type")
@click.option("--category", help="Category name or ID")
@click.option("--description", help="Transaction description")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    account: str | None,
    date: str | None,
    amount: str | None,
    txn_type: str | None,
    category: str | None,
    description: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. The balance effect of the old
    values is undone and the new one applied; the status follows the date.

    Examples:
        finledger transaction update 1 --amount 75.00
        finledger transaction update 1 --account Savings --date 2024-02-01
    """
    db = ctx.obj["db"]
    service = TransactionService(db, **service_options(ctx))
    account_service = AccountService(db, ctx.obj["owner_id"])
    category_service = CategoryService(db)

    existing = service.get_transaction(transaction_id)
    if existing is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    account_id = resolve_account_or_exit(ctx, account_service, account) if account is not None else None
    txn_date = parse_date_or_exit(ctx, date) if date is not None else None
    txn_amount = parse_amount_or_exit(ctx, amount) if amount is not None else None
    category_id = None
    if category is not None:
        category_id = resolve_category_or_exit(
            ctx, category_service, category, txn_type or existing.type.value
        )

    try:
        service.update_transaction(
            transaction_id=transaction_id,
            account_id=account_id,
            category_id=category_id,
            type=txn_type,
            amount=txn_amount,
            transaction_date=txn_date,
            description=description,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("complete")
@click.argument("transaction_id", type=int)
@click.pass_context
def complete_transaction(ctx, transaction_id: int) -> None:
    """Mark a pending transaction as completed."""
    service = TransactionService(ctx.obj["db"], **service_options(ctx))

    try:
        service.complete_transaction(transaction_id)
        click.echo(f"Completed transaction {transaction_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("revert")
@click.argument("transaction_id", type=int)
@click.pass_context
def revert_transaction(ctx, transaction_id: int) -> None:
    """Return a completed transaction to pending."""
    service = TransactionService(ctx.obj["db"], **service_options(ctx))

    try:
        service.revert_transaction(transaction_id)
        click.echo(f"Reverted transaction {transaction_id} to pending")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--month", help="Calendar month (YYYY-MM)")
@click.option("--account", help="Account name or ID")
@click.option("--category", help="Category name or ID")
@click.option("--type", "txn_type", type=click.Choice(["income", "expense"]), help="Only one type")
@click.option("--status", type=click.Choice(["pending", "completed"]), help="Only one status")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
    account: str | None,
    category: str | None,
    txn_type: str | None,
    status: str | None,
):
    """View transactions with optional filters.

    Account can be specified by name or ID.
    """
    db = ctx.obj["db"]
    service = TransactionService(db, **service_options(ctx))
    account_service = AccountService(db, ctx.obj["owner_id"])
    category_service = CategoryService(db)

    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, month=month)
    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None
    category_id = None
    if category:
        category_id = resolve_category_or_exit(ctx, category_service, category, txn_type)

    transactions = service.list_transactions(
        start_date=start,
        end_date=end,
        account_id=account_id,
        status=status,
        type=txn_type,
        category_id=category_id,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts(include_inactive=True)}
    categories = {cat.id: cat.name for cat in category_service.list_categories()}

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Amount':>12} {'Status':<10} {'Account':<20} {'Category':<20} {'Description':<30}"
    )
    click.echo("-" * 110)
    for txn in transactions:
        amount_str = f"${txn.signed_amount:,.2f}"
        click.echo(
            f"{txn.id:<6} {str(txn.transaction_date):<12} {amount_str:>12} {txn.status.value:<10} "
            f"{accounts.get(txn.account_id, 'Unknown')[:20]:<20} "
            f"{categories.get(txn.category_id, '')[:20]:<20} {(txn.description or '')[:30]:<30}"
        )

    summary = service.summarize(start_date=start, end_date=end, account_id=account_id)
    click.echo("-" * 110)
    click.echo(
        f"Completed: income ${summary.completed_income:,.2f} | expenses ${summary.completed_expense:,.2f} | "
        f"Pending: income ${summary.pending_income:,.2f} | expenses ${summary.pending_expense:,.2f}"
    )


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int) -> None:
    """Delete a transaction.

    Examples:
        finledger transaction delete 1
    """
    service = TransactionService(ctx.obj["db"], **service_options(ctx))

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_transaction(transaction_id)
        click.echo(f"Deleted transaction {transaction_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
