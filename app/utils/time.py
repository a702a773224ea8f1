"""Time Utilities for UTC management"""

import calendar
from datetime import date, datetime, time, timezone
from typing import Tuple


def get_utc_now() -> datetime:
    """
    Returns a naive UTC datetime.
    Matches the DB schema (TIMESTAMP WITHOUT TIME ZONE).
    Avoids 'datetime.utcnow()' deprecation warnings.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def month_bounds(month: int, year: int) -> Tuple[datetime, datetime]:
    """Inclusive [start, end] datetime range covering a calendar month."""
    start = datetime.combine(date(year, month, 1), time.min)
    last_day = calendar.monthrange(year, month)[1]
    end = datetime.combine(date(year, month, last_day), time.max)
    return start, end


def format_period(month: int, year: int) -> str:
    """Billing period label, e.g. 'October 2026'."""
    return f"{calendar.month_name[month]} {year}"
