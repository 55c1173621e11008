"""Debt commands."""

import click
from finledger.cli.account_resolution import resolve_account_or_exit
from finledger.cli.date_filters import parse_amount_or_exit, parse_date_or_exit
from finledger.cli.error_handling import handle_domain_error, service_options
from finledger.domain.account import AccountService
from finledger.domain.debt import DebtService
from finledger.domain.errors import StorageError


@click.group()
def debt_group():
    """Manage debts and their payments."""
    pass


@debt_group.command("create")
@click.argument("name")
@click.argument("amount")
@click.option("--lender", default="", help="Who lent the money")
@click.option("--rate", default="0", help="Monthly interest rate in percent")
@click.option("--start-date", default="today", show_default=True, help="Start date")
@click.option("--due-day", type=int, default=1, show_default=True, help="Payment due day (1-31)")
@click.option("--installments", type=int, help="Planned number of installments")
@click.option("--installment-value", help="Planned installment value")
@click.option("--description", default="", help="Description")
@click.pass_context
def create_debt(
    ctx,
    name: str,
    amount: str,
    lender: str,
    rate: str,
    start_date: str,
    due_day: int,
    installments: int | None,
    installment_value: str | None,
    description: str,
):
    """Register a debt.

    Examples:
        finledger debt create "Car loan" 20000 --lender Bank --rate 1.5 --due-day 5
    """
    service = DebtService(ctx.obj["db"], **service_options(ctx))
    total = parse_amount_or_exit(ctx, amount)
    interest_rate = parse_amount_or_exit(ctx, rate, "rate")
    started = parse_date_or_exit(ctx, start_date, "start date")
    planned_value = parse_amount_or_exit(ctx, installment_value, "installment value") if installment_value else None

    try:
        debt_id = service.create_debt(
            name=name,
            total_amount=total,
            start_date=started,
            due_day=due_day,
            lender=lender,
            interest_rate=interest_rate,
            total_installments=installments,
            installment_value=planned_value,
            description=description,
        )
        click.echo(f"Created debt '{name}' (ID: {debt_id})")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@debt_group.command("list")
@click.pass_context
def list_debts(ctx):
    """List debts with their outstanding balances."""
    service = DebtService(ctx.obj["db"], **service_options(ctx))

    debts = service.list_debts()
    if not debts:
        click.echo("No debts found.")
        return
    for debt in debts:
        status = " (paid off)" if debt.is_paid_off else ""
        click.echo(
            f"ID: {debt.id:3d} | {debt.name:20s} | Balance: ${debt.current_balance:,.2f} "
            f"of ${debt.total_amount:,.2f} | Rate: {debt.interest_rate}%{status}"
        )


@debt_group.command("pay")
@click.argument("debt_id", type=int)
@click.argument("amount")
@click.option("--principal", help="Principal portion (defaults to amount minus estimated interest)")
@click.option("--interest", help="Interest portion (defaults to the monthly estimate)")
@click.option("--date", "payment_date", default="today", show_default=True, help="Payment date")
@click.option("--account", help="Account the payment leaves from (records an expense)")
@click.option("--description", help="Payment description")
@click.pass_context
def pay_debt(
    ctx,
    debt_id: int,
    amount: str,
    principal: str | None,
    interest: str | None,
    payment_date: str,
    account: str | None,
    description: str | None,
):
    """Record a payment on a debt.

    Examples:
        finledger debt pay 1 500 --account Checking
        finledger debt pay 1 500 --principal 450 --interest 50
    """
    db = ctx.obj["db"]
    service = DebtService(db, **service_options(ctx))

    total = parse_amount_or_exit(ctx, amount)
    paid_on = parse_date_or_exit(ctx, payment_date, "payment date")
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db, ctx.obj["owner_id"]), account)

    try:
        if principal is None and interest is None:
            principal_amount, interest_amount = service.suggest_split(debt_id, total)
        elif principal is None:
            interest_amount = parse_amount_or_exit(ctx, interest, "interest")
            principal_amount = total - interest_amount
        elif interest is None:
            principal_amount = parse_amount_or_exit(ctx, principal, "principal")
            interest_amount = total - principal_amount
        else:
            principal_amount = parse_amount_or_exit(ctx, principal, "principal")
            interest_amount = parse_amount_or_exit(ctx, interest, "interest")

        payment_id = service.record_payment(
            debt_id=debt_id,
            payment_date=paid_on,
            total_amount=total,
            principal_amount=principal_amount,
            interest_amount=interest_amount,
            account_id=account_id,
            description=description,
        )
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    debt = service.get_debt(debt_id)
    click.echo(
        f"Recorded payment {payment_id}: principal ${principal_amount:,.2f}, interest ${interest_amount:,.2f}"
    )
    click.echo(f"Remaining balance: ${debt.current_balance:,.2f}")


@debt_group.command("payments")
@click.argument("debt_id", type=int)
@click.pass_context
def list_payments(ctx, debt_id: int):
    """Show the payment history of a debt."""
    service = DebtService(ctx.obj["db"], **service_options(ctx))

    try:
        payments = service.list_payments(debt_id)
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    if not payments:
        click.echo("No payments recorded.")
        return
    for payment in payments:
        click.echo(
            f"{payment.payment_date} | ${payment.amount:,.2f} "
            f"(principal ${payment.principal_amount:,.2f}, interest ${payment.interest_amount:,.2f})"
        )
    click.echo(f"Total principal paid: ${service.paid_principal(debt_id):,.2f}")


@debt_group.command("set-balance")
@click.argument("debt_id", type=int)
@click.argument("balance")
@click.pass_context
def set_balance(ctx, debt_id: int, balance: str):
    """Correct the outstanding balance of a debt by hand."""
    service = DebtService(ctx.obj["db"], **service_options(ctx))
    new_balance = parse_amount_or_exit(ctx, balance, "balance")

    try:
        service.update_debt(debt_id, current_balance=new_balance)
        click.echo(f"Set balance of debt {debt_id} to ${new_balance:,.2f}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@debt_group.command("delete")
@click.argument("debt_id", type=int)
@click.pass_context
def delete_debt(ctx, debt_id: int):
    """Delete a debt together with its payment history."""
    service = DebtService(ctx.obj["db"], **service_options(ctx))

    if not click.confirm(f"Are you sure you want to delete debt {debt_id} and its payments?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_debt(debt_id)
        click.echo(f"Deleted debt {debt_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register debt commands with main CLI."""
    cli.add_command(debt_group, name="debt")
