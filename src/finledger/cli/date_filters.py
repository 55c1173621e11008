"""CLI helpers for date, month and amount options."""

from datetime import date
from decimal import Decimal

import click

from finledger.utils.amount_parser import parse_amount
from finledger.utils.date_parser import month_end, parse_date, parse_month


def parse_date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_month_or_exit(ctx: click.Context, value: str) -> date:
    try:
        return parse_month(value)
    except ValueError as e:
        click.echo(f"Error: Invalid month: {e}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str, label: str = "amount") -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from a --month option or explicit dates."""
    if month and (start_date or end_date):
        click.echo(
            "Error: --month cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if month:
        start = parse_month_or_exit(ctx, month)
        return start, month_end(start)

    start = parse_date_or_exit(ctx, start_date, "start date") if start_date else None
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None
    return start, end
