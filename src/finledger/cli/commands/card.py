"""Credit card commands."""

import click
from finledger.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from finledger.cli.date_filters import parse_amount_or_exit, parse_date_or_exit, parse_month_or_exit
from finledger.cli.error_handling import handle_domain_error, service_options
from finledger.domain.account import AccountService
from finledger.domain.category import CategoryService
from finledger.domain.credit_card import CreditCardService
from finledger.domain.entities import CategoryType
from finledger.domain.errors import StorageError


@click.group()
def card_group():
    """Manage credit cards, purchases and invoices."""
    pass


@card_group.command("create")
@click.argument("name")
@click.option("--due-day", type=int, required=True, help="Invoice due day (1-31)")
@click.option("--limit", "card_limit", default="0", help="Credit limit")
@click.pass_context
def create_card(ctx, name: str, due_day: int, card_limit: str):
    """Create a credit card.

    Examples:
        finledger card create "Visa" --due-day 10 --limit 5000
    """
    service = CreditCardService(ctx.obj["db"], **service_options(ctx))
    limit = parse_amount_or_exit(ctx, card_limit, "limit")

    try:
        card_id = service.create_card(name=name, due_day=due_day, card_limit=limit)
        click.echo(f"Created card '{name}' (ID: {card_id})")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@card_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated cards")
@click.pass_context
def list_cards(ctx, include_inactive: bool):
    """List credit cards with their outstanding amounts."""
    service = CreditCardService(ctx.obj["db"], **service_options(ctx))

    cards = service.list_cards(include_inactive=include_inactive)
    if not cards:
        click.echo("No credit cards found.")
        return

    for card in cards:
        status = "" if card.active else " (inactive)"
        click.echo(
            f"ID: {card.id:3d} | {card.name:20s} | Due day: {card.due_day:2d} | "
            f"Limit: ${card.card_limit:,.2f} | Outstanding: ${service.outstanding_amount(card.id):,.2f} | "
            f"Available: ${service.available_limit(card.id):,.2f}{status}"
        )


@card_group.command("deactivate")
@click.argument("card_id", type=int)
@click.pass_context
def deactivate_card(ctx, card_id: int):
    """Stop accepting purchases on a card."""
    service = CreditCardService(ctx.obj["db"], **service_options(ctx))

    try:
        service.deactivate_card(card_id)
        click.echo(f"Deactivated card {card_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@card_group.command("purchase")
@click.argument("card_id", type=int)
@click.argument("amount")
@click.option("--category", required=True, help="Expense category name or ID")
@click.option("--installments", type=int, default=1, show_default=True, help="Number of installments")
@click.option("--date", "purchase_date", default="today", show_default=True, help="Purchase date")
@click.option("--first-due", "first_due", help="Month of the first installment (YYYY-MM, defaults to the purchase month)")
@click.option("--description", default="", help="Purchase description")
@click.pass_context
def record_purchase(
    ctx,
    card_id: int,
    amount: str,
    category: str,
    installments: int,
    purchase_date: str,
    first_due: str | None,
    description: str,
):
    """Record a purchase split into monthly installments.

    Examples:
        finledger card purchase 1 900 --category Leisure --installments 3 --first-due 2024-01
    """
    db = ctx.obj["db"]
    service = CreditCardService(db, **service_options(ctx))

    total = parse_amount_or_exit(ctx, amount)
    bought_on = parse_date_or_exit(ctx, purchase_date, "purchase date")
    first_due_month = parse_month_or_exit(ctx, first_due) if first_due else bought_on
    category_id = resolve_category_or_exit(ctx, CategoryService(db), category, CategoryType.EXPENSE)

    try:
        purchase_id = service.record_purchase(
            card_id=card_id,
            category_id=category_id,
            total_amount=total,
            installments=installments,
            purchase_date=bought_on,
            first_due_month=first_due_month,
            description=description,
        )
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded purchase {purchase_id} of ${total:,.2f}")
    for inst in service.list_installments(card_id, purchase_id=purchase_id):
        click.echo(f"  {inst.installment_number:2d}/{installments}: ${inst.amount:,.2f} due {inst.due_date:%Y-%m}")


@card_group.command("purchases")
@click.argument("card_id", type=int)
@click.pass_context
def list_purchases(ctx, card_id: int):
    """List the purchases of a card."""
    service = CreditCardService(ctx.obj["db"], **service_options(ctx))

    try:
        purchases = service.list_purchases(card_id)
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    if not purchases:
        click.echo("No purchases found.")
        return
    for purchase in purchases:
        click.echo(
            f"ID: {purchase.id:4d} | {purchase.purchase_date} | ${purchase.total_amount:,.2f} "
            f"in {purchase.installments}x | {purchase.description}"
        )


@card_group.command("delete-purchase")
@click.argument("purchase_id", type=int)
@click.pass_context
def delete_purchase(ctx, purchase_id: int):
    """Delete a purchase and all of its installments."""
    service = CreditCardService(ctx.obj["db"], **service_options(ctx))

    if not click.confirm(f"Are you sure you want to delete purchase {purchase_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_purchase(purchase_id)
        click.echo(f"Deleted purchase {purchase_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@card_group.command("invoice")
@click.argument("card_id", type=int)
@click.argument("month")
@click.pass_context
def show_invoice(ctx, card_id: int, month: str):
    """Show the unpaid installments of a card due in MONTH (YYYY-MM)."""
    service = CreditCardService(ctx.obj["db"], **service_options(ctx))
    invoice_month = parse_month_or_exit(ctx, month)

    try:
        invoice = service.compute_invoice(card_id, invoice_month)
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    if invoice.is_empty:
        click.echo(f"No unpaid installments in {invoice.month:%Y-%m}.")
        return
    click.echo(f"Invoice {invoice.month:%Y-%m}:")
    for inst in invoice.installments:
        click.echo(f"  Purchase {inst.purchase_id} #{inst.installment_number}: ${inst.amount:,.2f}")
    click.echo(f"Total: ${invoice.total:,.2f}")


@card_group.command("pay")
@click.argument("card_id", type=int)
@click.argument("month")
@click.option("--account", required=True, help="Paying account name or ID")
@click.pass_context
def pay_invoice(ctx, card_id: int, month: str, account: str):
    """Pay a card's invoice for MONTH (YYYY-MM) from an account.

    Examples:
        finledger card pay 1 2024-01 --account Checking
    """
    db = ctx.obj["db"]
    service = CreditCardService(db, **service_options(ctx))
    account_service = AccountService(db, ctx.obj["owner_id"])

    account_id = resolve_account_or_exit(ctx, account_service, account)
    invoice_month = parse_month_or_exit(ctx, month)

    try:
        transaction_id = service.pay_invoice(card_id, invoice_month, account_id)
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)

    txn = service.transactions.get_transaction(transaction_id)
    click.echo(f"Paid invoice {invoice_month:%Y-%m}: ${txn.amount:,.2f} (transaction {transaction_id})")
    click.echo(f"Account balance: ${account_service.get_balance(account_id):,.2f}")


def register_commands(cli):
    """Register credit card commands with main CLI."""
    cli.add_command(card_group, name="card")
