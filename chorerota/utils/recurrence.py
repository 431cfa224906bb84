"""
Recurrence utilities for rotating household tasks.

Weekdays follow the Sunday=0 convention used by stored task settings and
months passed to nth_weekday_of_month are 0-indexed. All calculations work
on calendar fields; a datetime input keeps its wall-clock time.
"""

import calendar
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from models import (
    RecurrenceConfig, SAME_WEEKDAY, UNIT_DAYS, UNIT_WEEKS, UNIT_MONTHS
)

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = {
    'de': ['Sonntag', 'Montag', 'Dienstag', 'Mittwoch', 'Donnerstag', 'Freitag', 'Samstag'],
    'en': ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday'],
}


def _sunday_based_weekday(value: date) -> int:
    # Python's isoweekday() is Monday=1..Sunday=7
    return value.isoweekday() % 7


def _on_day(current: date, target: date) -> date:
    """Move current to target's calendar day, keeping any time component."""
    return current.replace(year=target.year, month=target.month, day=target.day)


def nth_weekday_of_month(year: int, month: int, weekday: int, occurrence: int) -> Optional[date]:
    """
    Get the nth occurrence of a weekday in a month.

    Args:
        year: The year
        month: The month, 0-indexed (0=January)
        weekday: Day of the week, Sunday=0 .. Saturday=6
        occurrence: Which occurrence (1=first, 2=second, ...)

    Returns:
        The date, or None if that occurrence doesn't exist in the month
        (e.g. a 5th Monday in a month with only four)
    """
    if not 0 <= month <= 11:
        return None

    first_day = date(year, month + 1, 1)
    days_until_weekday = (weekday - _sunday_based_weekday(first_day)) % 7
    day = 1 + days_until_weekday + (occurrence - 1) * 7

    days_in_month = calendar.monthrange(year, month + 1)[1]
    if day < 1 or day > days_in_month:
        return None

    return date(year, month + 1, day)


def weekday_occurrence(value: date) -> Tuple[int, int]:
    """
    Get which occurrence of its weekday a date is.

    Returns:
        (weekday, occurrence) with weekday Sunday=0 and occurrence 1-5
    """
    return _sunday_based_weekday(value), (value.day - 1) // 7 + 1


def next_monthly_occurrence(current_date: date, months_to_add: int, mode: str) -> date:
    """
    Calculate a monthly occurrence a number of months after current_date.

    Args:
        current_date: The current/last occurrence date
        months_to_add: Number of months to add
        mode: 'same_date' or 'same_weekday'

    Returns:
        The target date. same_date keeps the day of month (clamped to the
        month's last day); same_weekday keeps the "nth weekday" position,
        falling back to the (n-1)th weekday and then the 1st of the month.
    """
    target_month = current_date + relativedelta(months=months_to_add)

    if mode != SAME_WEEKDAY:
        return target_month

    weekday, occurrence = weekday_occurrence(current_date)
    year, month = target_month.year, target_month.month - 1

    result = nth_weekday_of_month(year, month, weekday, occurrence)
    if result is None:
        result = nth_weekday_of_month(year, month, weekday, occurrence - 1)
        if result is None:
            logger.debug(f"No weekday fallback for {current_date} + {months_to_add} months, using 1st of month")
            return target_month.replace(day=1)

    return _on_day(current_date, result)


def occurrence_date(config: RecurrenceConfig, occurrence_number: int) -> Optional[date]:
    """
    Calculate the date of an occurrence of a recurring task.

    Occurrence #1 is always the anchor date itself; it is never run through
    the monthly weekday logic.

    Args:
        config: Task recurrence settings
        occurrence_number: 1-based occurrence number

    Returns:
        The occurrence date, or None for irregular tasks or tasks without
        an anchor date
    """
    if config.is_irregular or config.anchor_date is None:
        return None

    anchor = config.anchor_date
    if occurrence_number == 1:
        return anchor

    steps = config.interval * (occurrence_number - 1)

    if config.unit == UNIT_DAYS:
        return anchor + timedelta(days=steps)
    elif config.unit == UNIT_WEEKS:
        return anchor + timedelta(weeks=steps)
    elif config.unit == UNIT_MONTHS:
        return next_monthly_occurrence(anchor, steps, config.monthly_mode)

    return None


def occurrence_dates(config: RecurrenceConfig, count: int) -> List[Optional[date]]:
    """Dates for occurrences 1..count."""
    return [occurrence_date(config, n) for n in range(1, count + 1)]


def next_due_date(config: RecurrenceConfig, due_date: Optional[date]) -> Optional[date]:
    """
    Calculate the due date that follows due_date when a task is completed.

    Args:
        config: Task recurrence settings
        due_date: Current due date

    Returns:
        Next due date, or None if the task has no cadence
    """
    if due_date is None or config.is_irregular:
        return None

    if config.unit == UNIT_DAYS:
        return due_date + timedelta(days=config.interval)
    elif config.unit == UNIT_WEEKS:
        return due_date + timedelta(weeks=config.interval)
    elif config.unit == UNIT_MONTHS:
        return next_monthly_occurrence(due_date, config.interval, config.monthly_mode)

    return None


def format_weekday_occurrence(value: date, locale: str = 'de') -> str:
    """Format a date's weekday position, e.g. "3. Donnerstag"."""
    weekday, occurrence = weekday_occurrence(value)
    day_name = WEEKDAY_NAMES.get(locale, WEEKDAY_NAMES['de'])[weekday]
    return f"{occurrence}. {day_name}"
