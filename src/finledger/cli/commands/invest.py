"""Investment commands."""

import click
from finledger.cli.account_resolution import resolve_account_or_exit
from finledger.cli.date_filters import parse_amount_or_exit, parse_date_or_exit
from finledger.cli.error_handling import handle_domain_error, service_options
from finledger.domain.account import AccountService
from finledger.domain.entities import InvestmentKind, InvestmentOperation
from finledger.domain.errors import StorageError
from finledger.domain.investment import InvestmentService


@click.group()
def invest_group():
    """Manage investment positions."""
    pass


@invest_group.command("create")
@click.argument("name")
@click.option("--kind", type=click.Choice([k.value for k in InvestmentKind]), default="stock", show_default=True)
@click.option("--ticker", help="Ticker symbol")
@click.pass_context
def create_investment(ctx, name: str, kind: str, ticker: str | None):
    """Create an empty investment position.

    Examples:
        finledger invest create "Acme Corp" --ticker ACME
    """
    service = InvestmentService(ctx.obj["db"], **service_options(ctx))

    try:
        investment_id = service.create_investment(name=name, kind=kind, ticker=ticker)
        click.echo(f"Created investment '{name}' (ID: {investment_id})")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@invest_group.command("operate")
@click.argument("investment_id", type=int)
@click.argument("operation", type=click.Choice([o.value for o in InvestmentOperation]))
@click.argument("quantity")
@click.argument("price")
@click.option("--fees", default="0", help="Brokerage fees")
@click.option("--date", "operation_date", default="today", show_default=True, help="Operation date")
@click.option("--account", help="Account the cash moves through (records a transaction)")
@click.pass_context
def record_operation(
    ctx,
    investment_id: int,
    operation: str,
    quantity: str,
    price: str,
    fees: str,
    operation_date: str,
    account: str | None,
):
    """Record a buy, sell, dividend or interest operation.

    Examples:
        finledger invest operate 1 buy 10 25.50 --fees 4.90 --account Brokerage
        finledger invest operate 1 dividend 1 32.10 --account Brokerage
    """
    db = ctx.obj["db"]
    service = InvestmentService(db, **service_options(ctx))

    qty = parse_amount_or_exit(ctx, quantity, "quantity")
    unit_price = parse_amount_or_exit(ctx, price, "price")
    fee_amount = parse_amount_or_exit(ctx, fees, "fees")
    executed_on = parse_date_or_exit(ctx, operation_date, "operation date")
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db, ctx.obj["owner_id"]), account)

    try:
        operation_id = service.record_operation(
            investment_id=investment_id,
            operation=operation,
            operation_date=executed_on,
            quantity=qty,
            price=unit_price,
            fees=fee_amount,
            account_id=account_id,
        )
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    investment = service.get_investment(investment_id)
    click.echo(f"Recorded {operation} (operation {operation_id})")
    click.echo(f"  Position: {investment.quantity.normalize():f} @ ${investment.average_price:,.2f} average")


@invest_group.command("price")
@click.argument("investment_id", type=int)
@click.argument("price")
@click.pass_context
def update_price(ctx, investment_id: int, price: str):
    """Mark a position to a new current price."""
    service = InvestmentService(ctx.obj["db"], **service_options(ctx))
    current_price = parse_amount_or_exit(ctx, price, "price")

    try:
        service.update_investment(investment_id, current_price=current_price)
        click.echo(f"Updated price of investment {investment_id} to ${current_price:,.2f}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@invest_group.command("operations")
@click.argument("investment_id", type=int)
@click.pass_context
def list_operations(ctx, investment_id: int):
    """Show the operation history of a position."""
    service = InvestmentService(ctx.obj["db"], **service_options(ctx))

    try:
        operations = service.list_operations(investment_id)
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    if not operations:
        click.echo("No operations recorded.")
        return
    for op in operations:
        gain = f" | realized ${op.realized_gain:,.2f}" if op.realized_gain is not None else ""
        click.echo(
            f"{op.operation_date} | {op.operation.value:8s} | {op.quantity.normalize():f} x "
            f"${op.price:,.2f} | fees ${op.fees:,.2f} | total ${op.total_amount:,.2f}{gain}"
        )


@invest_group.command("portfolio")
@click.pass_context
def portfolio(ctx):
    """Show every position with cost, market value and unrealized gain."""
    service = InvestmentService(ctx.obj["db"], **service_options(ctx))

    summary = service.portfolio_summary()
    if not summary.positions:
        click.echo("No investments found.")
        return

    click.echo(f"{'ID':<5} {'Name':<20} {'Kind':<13} {'Cost':>14} {'Value':>14} {'Gain':>14}")
    click.echo("-" * 85)
    for pos in summary.positions:
        inv = pos.investment
        click.echo(
            f"{inv.id:<5} {(inv.ticker or inv.name)[:20]:<20} {inv.kind.value:<13} "
            f"{pos.cost_basis:>14,.2f} {pos.market_value:>14,.2f} {pos.unrealized_gain:>14,.2f}"
        )
    click.echo("-" * 85)
    for kind, value in summary.value_by_kind.items():
        click.echo(f"  {kind.value:<13} value ${value:,.2f}")
    click.echo(
        f"Total cost ${summary.total_cost:,.2f} | value ${summary.total_value:,.2f} | "
        f"unrealized ${summary.unrealized_gain:,.2f}"
    )


@invest_group.command("delete")
@click.argument("investment_id", type=int)
@click.pass_context
def delete_investment(ctx, investment_id: int):
    """Delete a position together with its operation history."""
    service = InvestmentService(ctx.obj["db"], **service_options(ctx))

    if not click.confirm(f"Are you sure you want to delete investment {investment_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_investment(investment_id)
        click.echo(f"Deleted investment {investment_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register investment commands with main CLI."""
    cli.add_command(invest_group, name="invest")
