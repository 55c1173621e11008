"""Date and month parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "last month",
      "this month", "next month".

    Args:
        date_str: Date string in various formats
        today: Reference day for relative dates (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "last month": month_start(today - relativedelta(months=1)),
        "this month": month_start(today),
        "next month": month_start(today + relativedelta(months=1)),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_month(month_str: str, today: Optional[date] = None) -> date:
    """Parse a month string ("2024-01", "this month", ...) to its first day.

    Raises:
        ValueError: If the string is neither YYYY-MM nor a parseable date
    """
    match = _MONTH_PATTERN.match(month_str.strip())
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Could not parse month '{month_str}': month must be 1-12")
        return date(year, month, 1)
    return month_start(parse_date(month_str, today=today))


def month_start(day: date) -> date:
    """Return the first day of the month containing ``day``."""
    return day.replace(day=1)


def month_end(day: date) -> date:
    """Return the last day of the month containing ``day``."""
    return month_start(day) + relativedelta(months=1) - timedelta(days=1)


def add_months(day: date, months: int) -> date:
    """Shift ``day`` by a number of calendar months, clamping the day of month."""
    return day + relativedelta(months=months)
