"""Statement and category breakdown commands."""

import click
from finledger.cli.account_resolution import resolve_account_or_exit
from finledger.cli.date_filters import parse_month_or_exit, resolve_cli_date_range
from finledger.domain.account import AccountService
from finledger.domain.category import CategoryService
from finledger.domain.statement import StatementService
from finledger.utils.date_parser import month_end


@click.command("statement")
@click.option("--month", default="this month", show_default=True, help="Month to show (YYYY-MM)")
@click.option("--account", help="Account name or ID (all accounts when omitted)")
@click.pass_context
def statement(ctx, month: str, account: str | None):
    """Show a monthly statement with running balances.

    Examples:
        finledger statement --month 2024-01
        finledger statement --account Checking
    """
    db = ctx.obj["db"]
    owner_id = ctx.obj["owner_id"]
    service = StatementService(db, owner_id)
    account_service = AccountService(db, owner_id)

    statement_month = parse_month_or_exit(ctx, month)
    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None
    result = service.monthly_statement(statement_month, account_id=account_id)
    categories = {cat.id: cat.name for cat in CategoryService(db).list_categories()}

    click.echo(f"\nStatement {result.month:%Y-%m}")
    click.echo("-" * 90)
    click.echo(f"{'Opening balance':<62} {result.opening_balance:>12,.2f}")
    for entry in result.entries:
        txn = entry.transaction
        running = f"{entry.running_balance:>12,.2f}" if entry.running_balance is not None else f"{'pending':>12}"
        click.echo(
            f"{str(txn.transaction_date):<12} {(txn.description or categories.get(txn.category_id, ''))[:34]:<34} "
            f"{txn.signed_amount:>14,.2f} {running}"
        )
    click.echo("-" * 90)
    click.echo(
        f"Income ${result.completed_income:,.2f} | Expenses ${result.completed_expense:,.2f} | "
        f"Closing ${result.closing_balance:,.2f}"
    )
    if result.pending_income or result.pending_expense:
        click.echo(
            f"Pending income ${result.pending_income:,.2f} | Pending expenses ${result.pending_expense:,.2f} | "
            f"Projected ${result.projected_balance:,.2f}"
        )


@click.command("breakdown")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--month", help="Calendar month (YYYY-MM); defaults to this month")
@click.option("--account", help="Account name or ID")
@click.option("--income", is_flag=True, help="Break down income instead of expenses")
@click.pass_context
def breakdown(ctx, start_date: str | None, end_date: str | None, month: str | None, account: str | None, income: bool):
    """Show completed totals per category."""
    db = ctx.obj["db"]
    owner_id = ctx.obj["owner_id"]
    service = StatementService(db, owner_id)

    if not (start_date or end_date or month):
        month = "this month"
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, month=month)
    if start is not None and end is None:
        end = month_end(start)
    account_id = resolve_account_or_exit(ctx, AccountService(db, owner_id), account) if account else None

    totals = service.category_breakdown(
        start, end, account_id=account_id, type="income" if income else "expense"
    )
    if not totals:
        click.echo("No completed transactions in this period.")
        return

    grand_total = sum(item.total for item in totals)
    for item in totals:
        share = item.total / grand_total * 100 if grand_total else 0
        click.echo(f"{item.category.name:<25} {item.total:>12,.2f} {share:>6.1f}% ({item.count})")
    click.echo("-" * 55)
    click.echo(f"{'Total':<25} {grand_total:>12,.2f}")


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement)
    cli.add_command(breakdown)
