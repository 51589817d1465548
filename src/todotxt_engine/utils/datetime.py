"""Date utilities for todo.txt dates.

All dates in task lines are local calendar dates written as ``YYYY-MM-DD``.
Functions that depend on the current day accept an explicit ``today`` so
callers (and tests) stay deterministic.
"""

import re
from calendar import monthrange
from datetime import date, timedelta
from typing import Optional


ISO_DATE_PATTERN = re.compile(r'^[0-9]{4}-[0-9]{2}-[0-9]{2}$')

MONTH_ABBREVIATIONS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                       'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def today_local() -> date:
    """Return the current local date.

    Returns:
        Today's date in the local timezone
    """
    return date.today()


def is_iso_date(value: Optional[str]) -> bool:
    """Check whether a token has the exact ``YYYY-MM-DD`` shape.

    Only the shape is checked; ``2024-13-45`` is still a date token.
    """
    return bool(value) and ISO_DATE_PATTERN.match(value) is not None


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string into a date.

    Args:
        value: Date string, or None

    Returns:
        The parsed date, or None if the string is not a valid calendar date
    """
    if not is_iso_date(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def format_iso(value: date) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    return value.isoformat()


def resolve_today(today: Optional[date] = None) -> date:
    """Return ``today`` or the current local date when not given."""
    return today if today is not None else today_local()


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, moving overflowing days to the last day of the month."""
    last_day = monthrange(year, month)[1]
    return date(year, month, max(1, min(day, last_day)))


def add_months(value: date, months: int) -> date:
    """Add months to a date, clamping to the end of the target month."""
    month = value.month - 1 + months
    year = value.year + month // 12
    month = month % 12 + 1
    return clamp_day(year, month, value.day)


def format_date(value: str, today: Optional[date] = None) -> str:
    """Format a date for display relative to today.

    Args:
        value: ISO date string
        today: Reference date (defaults to the local date)

    Returns:
        'Today', 'Yesterday', 'Tomorrow', 'Mar 5' for dates in the current
        year or 'Mar 5, 2023' otherwise. Non-dates are returned unchanged.
    """
    parsed = parse_iso_date(value)
    if parsed is None:
        return value

    today = resolve_today(today)
    delta = (parsed - today).days
    if delta == 0:
        return 'Today'
    if delta == -1:
        return 'Yesterday'
    if delta == 1:
        return 'Tomorrow'

    label = f"{MONTH_ABBREVIATIONS[parsed.month - 1]} {parsed.day}"
    if parsed.year != today.year:
        label += f", {parsed.year}"
    return label


def due_date_status(value: str, today: Optional[date] = None) -> Optional[str]:
    """Classify a due date as 'overdue', 'today' or 'upcoming'."""
    parsed = parse_iso_date(value)
    if parsed is None:
        return None

    today = resolve_today(today)
    if parsed < today:
        return 'overdue'
    if parsed == today:
        return 'today'
    return 'upcoming'


def calculate_due_date(option: str, today: Optional[date] = None) -> str:
    """Resolve a due-date preset to an ISO date.

    Args:
        option: One of 'Today', 'Tomorrow', 'Next Week' (the coming Sunday)
            or 'Next Month' (the first of next month); anything else is today
        today: Reference date (defaults to the local date)
    """
    today = resolve_today(today)

    if option == 'Tomorrow':
        target = today + timedelta(days=1)
    elif option == 'Next Week':
        # date.weekday(): Monday=0 .. Sunday=6
        days_until_sunday = 7 if today.weekday() == 6 else 6 - today.weekday()
        target = today + timedelta(days=days_until_sunday)
    elif option == 'Next Month':
        target = add_months(today.replace(day=1), 1)
    else:
        target = today

    return format_iso(target)
