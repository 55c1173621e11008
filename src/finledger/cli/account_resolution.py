"""CLI helpers for account and category resolution."""

from __future__ import annotations

import click
from finledger.domain.account import AccountService
from finledger.domain.category import CategoryService
from finledger.domain.entities import CategoryType
from finledger.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_category_or_exit(
    ctx: click.Context,
    category_service: CategoryService,
    category: str,
    type: CategoryType | str | None = None,
) -> int:
    """Resolve a category name or ID, or exit.

    Names are looked up within ``type`` when given, otherwise across both
    types.
    """
    if category.isdigit():
        found = category_service.get_category(int(category))
    elif type is not None:
        found = category_service.get_category_by_name(category, type)
    else:
        matches = [c for c in category_service.list_categories() if c.name == category]
        found = matches[0] if matches else None
    if found is None:
        click.echo(f"Error: Category '{category}' not found", err=True)
        ctx.exit(1)
    return found.id
