"""Account management commands."""

import click
from finledger.cli.account_resolution import resolve_account_or_exit
from finledger.cli.date_filters import parse_amount_or_exit
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.account import AccountService
from finledger.domain.entities import AccountKind
from finledger.domain.errors import StorageError


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in AccountKind]),
    default=AccountKind.CHECKING.value,
    show_default=True,
    help="Account kind",
)
@click.option("--initial-balance", default="0", help="Opening balance (e.g., 1000.00)")
@click.pass_context
def create_account(ctx, name: str, kind: str, initial_balance: str):
    """Create a new account.

    The initial balance is fixed once the account exists; every later change
    comes from transactions.

    Examples:
        finledger account create "Checking" --initial-balance 1000
        finledger account create "Brokerage" --kind investment
    """
    service = AccountService(ctx.obj["db"], ctx.obj["owner_id"])
    balance = parse_amount_or_exit(ctx, initial_balance, "initial balance")

    try:
        account_id = service.create_account(name=name, kind=kind, initial_balance=balance)
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts with their balances."""
    service = AccountService(ctx.obj["db"], ctx.obj["owner_id"])

    accounts = service.list_accounts(include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        status = "" if acc.active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.kind.value:10s} | "
            f"Balance: ${acc.balance:,.2f}{status}"
        )
    click.echo("-" * 70)
    click.echo(f"Total (active accounts): ${service.total_balance():,.2f}")


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.option("--kind", type=click.Choice([k.value for k in AccountKind]), help="New account kind")
@click.pass_context
def rename_account(ctx, account: str, new_name: str, kind: str | None) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID.

    Examples:
        finledger account rename "Checking" "Main Checking"
        finledger account rename 1 "Brokerage" --kind investment
    """
    service = AccountService(ctx.obj["db"], ctx.obj["owner_id"])
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.update_account(account_id=account_id, name=new_name, kind=kind)
        click.echo(f"Renamed account to '{new_name}'")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str) -> None:
    """Deactivate an account.

    A deactivated account keeps its history but accepts no new transactions.

    Examples:
        finledger account deactivate "Old Savings"
    """
    service = AccountService(ctx.obj["db"], ctx.obj["owner_id"])
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id)

    if not click.confirm(f"Are you sure you want to deactivate account '{account_obj.name}' (ID: {account_id})?"):
        click.echo("Deactivation cancelled.")
        return

    try:
        service.deactivate_account(account_id)
        click.echo(f"Deactivated account '{account_obj.name}'")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@account_group.command("reconcile")
@click.pass_context
def reconcile_accounts(ctx) -> None:
    """Check stored balances against the transaction history.

    Exits with status 1 if any account disagrees.
    """
    service = AccountService(ctx.obj["db"], ctx.obj["owner_id"])

    discrepancies = service.reconcile()
    if not discrepancies:
        click.echo("All account balances match their transaction history.")
        return

    for item in discrepancies:
        click.echo(
            f"Account '{item.account_name}' (ID: {item.account_id}): stored ${item.stored_balance:,.2f}, "
            f"history ${item.derived_balance:,.2f}, difference ${item.difference:,.2f}",
            err=True,
        )
    ctx.exit(1)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
