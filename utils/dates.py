"""
Date helpers.

All dates are naive local calendar dates. Sowing log keys and CSV dates use
the YYYY-MM-DD form.
"""

import re
from calendar import monthrange
from datetime import date, datetime, time, timedelta
from typing import Optional

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today() -> date:
    """Local calendar date. Patched in tests."""
    return date.today()


def date_key(d: date) -> str:
    """Sowing log key for a date: "2024-01-01"."""
    return d.isoformat()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a strict YYYY-MM-DD string.

    - "2024-01-09" → date(2024, 1, 9)
    - "2024-1-9" → None
    - "2024-02-30" → None

    Returns:
        Parsed date, or None if the text is not a valid calendar date
    """
    if not value:
        return None

    value = value.strip()
    if not ISO_DATE_PATTERN.match(value):
        return None

    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def naive_local(value: Optional[datetime]) -> Optional[datetime]:
    """
    Timestamps are stored as naive local time.

    Aware values (e.g. "2024-01-01T10:00:00.000Z" from a browser export) are
    converted to local time and the offset dropped.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def created_within(created_at: datetime, start: date, end: date) -> bool:
    """Whether a timestamp falls on or between two calendar days."""
    return start_of_day(start) <= created_at <= end_of_day(end)


def week_bounds(anchor: date) -> tuple[date, date]:
    """ISO week (Monday to Sunday) containing the anchor."""
    start = anchor - timedelta(days=anchor.weekday())
    return start, start + timedelta(days=6)


def month_bounds(anchor: date) -> tuple[date, date]:
    """Calendar month containing the anchor."""
    last_day = monthrange(anchor.year, anchor.month)[1]
    return anchor.replace(day=1), anchor.replace(day=last_day)


def year_bounds(anchor: date) -> tuple[date, date]:
    return date(anchor.year, 1, 1), date(anchor.year, 12, 31)


def previous_month_bounds(anchor: date) -> tuple[date, date]:
    """Calendar month before the one containing the anchor."""
    first_this_month = anchor.replace(day=1)
    return month_bounds(first_this_month - timedelta(days=1))
