"""
Recurrence patterns for todo.txt tasks

This module parses ``rec:`` tag values and computes the due date a recurring
task rolls over to when it is completed. Supported patterns:

    1d, 2w, 3m, 1y          every N days / weeks / months / years
    1w,mon,thu              every N weeks on the listed weekdays
    1m,1,15                 every N months on the listed days of the month
    jan,1                   every year on a month and day
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional

from .utils.datetime import add_months, clamp_day


logger = logging.getLogger(__name__)


class RecurrenceType(Enum):
    """Types of recurrence patterns"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass
class RecurrencePattern:
    """A parsed recurrence pattern"""
    type: RecurrenceType
    interval: int = 1  # Every N days/weeks/months/years
    days_of_week: List[int] = field(default_factory=list)  # 0=Sunday, 6=Saturday
    days_of_month: List[int] = field(default_factory=list)  # 1-31
    month: Optional[int] = None  # 1-12, yearly patterns on a fixed date
    day: Optional[int] = None


@dataclass(frozen=True)
class RecurrenceResult:
    """Outcome of a due-date rollover.

    ``recognized`` is False when the pattern could not be parsed, in which
    case ``due_date`` is the unchanged input date.
    """
    due_date: date
    recognized: bool
    pattern: Optional[RecurrencePattern] = None


class RecurrenceParser:
    """Parses ``rec:`` tag values"""

    SIMPLE_PATTERN = re.compile(r'^(\d+)([dwmy])$')
    INTERVAL_PATTERN = re.compile(r'^(\d+)([wm])$')

    UNIT_TYPES = {
        'd': RecurrenceType.DAILY,
        'w': RecurrenceType.WEEKLY,
        'm': RecurrenceType.MONTHLY,
        'y': RecurrenceType.YEARLY,
    }

    DAY_NAMES = ['sunday', 'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday']
    MONTH_NAMES = ['january', 'february', 'march', 'april', 'may', 'june', 'july',
                   'august', 'september', 'october', 'november', 'december']

    @classmethod
    def day_name_to_number(cls, day_name: str) -> Optional[int]:
        """Convert a day name or abbreviation to a number (0=Sunday)"""
        return cls._lookup(day_name, cls.DAY_NAMES)

    @classmethod
    def month_name_to_number(cls, month_name: str) -> Optional[int]:
        """Convert a month name or abbreviation to a number (1=January)"""
        index = cls._lookup(month_name, cls.MONTH_NAMES)
        return index + 1 if index is not None else None

    @staticmethod
    def _lookup(name: str, names: List[str]) -> Optional[int]:
        name = name.strip().lower()
        for index, full_name in enumerate(names):
            if name == full_name or name == full_name[:3]:
                return index
        return None

    @classmethod
    def parse(cls, pattern_str: Optional[str]) -> Optional[RecurrencePattern]:
        """Parse a recurrence pattern, returning None if it is not recognized"""
        if not pattern_str:
            return None
        text = pattern_str.strip().lower()

        simple = cls.SIMPLE_PATTERN.match(text)
        if simple:
            interval = int(simple.group(1))
            if interval < 1:
                return None
            return RecurrencePattern(type=cls.UNIT_TYPES[simple.group(2)], interval=interval)

        parts = [part.strip() for part in text.split(',')]
        if len(parts) < 2:
            return None

        interval_match = cls.INTERVAL_PATTERN.match(parts[0])
        if interval_match:
            interval = int(interval_match.group(1))
            if interval < 1:
                return None
            if interval_match.group(2) == 'w':
                return cls._parse_weekly(interval, parts[1:])
            return cls._parse_monthly(interval, parts[1:])

        return cls._parse_yearly(parts)

    @classmethod
    def _parse_weekly(cls, interval: int, day_parts: List[str]) -> Optional[RecurrencePattern]:
        days = [cls.day_name_to_number(part) for part in day_parts]
        if not days or None in days:
            return None
        return RecurrencePattern(
            type=RecurrenceType.WEEKLY,
            interval=interval,
            days_of_week=sorted(set(days)),
        )

    @staticmethod
    def _parse_monthly(interval: int, day_parts: List[str]) -> Optional[RecurrencePattern]:
        days = [min(int(part), 31) for part in day_parts if part.isdigit() and int(part) > 0]
        if not days:
            return None
        return RecurrencePattern(
            type=RecurrenceType.MONTHLY,
            interval=interval,
            days_of_month=sorted(set(days)),
        )

    @classmethod
    def _parse_yearly(cls, parts: List[str]) -> Optional[RecurrencePattern]:
        if len(parts) != 2 or not parts[1].isdigit():
            return None
        month = cls.month_name_to_number(parts[0])
        day = int(parts[1])
        if month is None or day < 1:
            return None
        return RecurrencePattern(type=RecurrenceType.YEARLY, month=month, day=min(day, 31))


def calculate_next_occurrence(current: date, pattern: RecurrencePattern) -> date:
    """Calculate the occurrence following ``current``; always later than it"""
    if pattern.type == RecurrenceType.DAILY:
        return current + timedelta(days=pattern.interval)
    elif pattern.type == RecurrenceType.WEEKLY:
        return _next_weekly_occurrence(current, pattern)
    elif pattern.type == RecurrenceType.MONTHLY:
        return _next_monthly_occurrence(current, pattern)
    return _next_yearly_occurrence(current, pattern)


def _next_weekly_occurrence(current: date, pattern: RecurrencePattern) -> date:
    if not pattern.days_of_week:
        return current + timedelta(weeks=pattern.interval)

    # Weeks run Sunday..Saturday
    current_weekday = (current.weekday() + 1) % 7
    for day in pattern.days_of_week:
        if day > current_weekday:
            return current + timedelta(days=day - current_weekday)

    days_ahead = 7 * pattern.interval - current_weekday + pattern.days_of_week[0]
    return current + timedelta(days=days_ahead)


def _next_monthly_occurrence(current: date, pattern: RecurrencePattern) -> date:
    if not pattern.days_of_month:
        return add_months(current, pattern.interval)

    for day in pattern.days_of_month:
        candidate = clamp_day(current.year, current.month, day)
        if candidate > current:
            return candidate

    target = add_months(current.replace(day=1), pattern.interval)
    return clamp_day(target.year, target.month, pattern.days_of_month[0])


def _next_yearly_occurrence(current: date, pattern: RecurrencePattern) -> date:
    if pattern.month is None:
        return add_months(current, 12 * pattern.interval)

    candidate = clamp_day(current.year, pattern.month, pattern.day)
    if candidate <= current:
        candidate = clamp_day(current.year + 1, pattern.month, pattern.day)
    return candidate


def compute_next_due(current: date, pattern_str: Optional[str]) -> RecurrenceResult:
    """Roll a due date forward, reporting whether the pattern was understood"""
    pattern = RecurrenceParser.parse(pattern_str)
    if pattern is None:
        return RecurrenceResult(due_date=current, recognized=False)

    try:
        next_date = calculate_next_occurrence(current, pattern)
    except (OverflowError, ValueError) as e:
        logger.warning(f"Recurrence {pattern_str!r} from {current} is out of date range: {e}")
        return RecurrenceResult(due_date=current, recognized=False)

    return RecurrenceResult(due_date=next_date, recognized=True, pattern=pattern)


def next_due_date(current: date, pattern_str: Optional[str]) -> date:
    """Return the next due date, or ``current`` unchanged for unknown patterns"""
    result = compute_next_due(current, pattern_str)
    if not result.recognized:
        logger.warning(f"Unrecognized recurrence pattern {pattern_str!r}, due date unchanged")
    return result.due_date


REPEAT_PRESETS = {
    'Daily': 'rec:1d',
    'Weekly': 'rec:1w,sun',
    'Monthly': 'rec:1m,1',
    'Yearly': 'rec:Jan,1',
}


def repeat_syntax(option: str) -> str:
    """Return the ``rec:`` tag for a repeat preset, or '' if unknown"""
    return REPEAT_PRESETS.get(option, '')
