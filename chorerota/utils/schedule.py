"""
Occurrence date resolution and ordering for rotation schedules.

List position is the chronological order of a schedule. Occurrence numbers
encode the kind: regular occurrences are numbered 1, 2, 3, ... and special
appointments SPECIAL_OCCURRENCE_START, SPECIAL_OCCURRENCE_START + 1, ...
"""

from datetime import date, datetime
from typing import Optional

from config import Config
from models import RecurrenceConfig, RegularOccurrence, Schedule, SpecialOccurrence
from utils.recurrence import occurrence_date

SPECIAL_OCCURRENCE_START = Config.SPECIAL_OCCURRENCE_START


def effective_date(occurrence, config: RecurrenceConfig) -> Optional[date]:
    """
    Resolve the date an occurrence takes place on.

    Explicit dates win: a special appointment's special_date, or the
    fixed_date of an occurrence of an irregular task. Otherwise the date is
    calculated from the recurrence settings.
    """
    if isinstance(occurrence, SpecialOccurrence):
        return occurrence.special_date
    if isinstance(occurrence, RegularOccurrence) and occurrence.fixed_date is not None:
        return occurrence.fixed_date
    return occurrence_date(config, occurrence.occurrence_number)


def _sort_key(value: date):
    # Mixed date/datetime values are compared on their calendar day
    if isinstance(value, datetime):
        return value.date(), value.time()
    return value, datetime.min.time()


def sort_chronologically(schedule: Schedule, config: RecurrenceConfig) -> Schedule:
    """
    Sort occurrences by effective date, ascending.

    The sort is stable, so occurrences on the same date keep their current
    order. Occurrences without a date keep their relative order and go after
    all dated ones.
    """
    dated = []
    undated = []
    for occurrence in schedule:
        when = effective_date(occurrence, config)
        if when is None:
            undated.append(occurrence)
        else:
            dated.append((_sort_key(when), occurrence))

    dated.sort(key=lambda pair: pair[0])
    return [occ for _, occ in dated] + undated


def renumber(schedule: Schedule, special_start: int = SPECIAL_OCCURRENCE_START) -> Schedule:
    """
    Renumber occurrences in list order, in place.

    Regular occurrences get 1, 2, 3, ...; special ones get special_start,
    special_start + 1, ...
    """
    next_regular = 1
    next_special = special_start
    for occurrence in schedule:
        if isinstance(occurrence, SpecialOccurrence):
            occurrence.occurrence_number = next_special
            next_special += 1
        else:
            occurrence.occurrence_number = next_regular
            next_regular += 1
    return schedule


def resort(schedule: Schedule, config: RecurrenceConfig,
           special_start: int = SPECIAL_OCCURRENCE_START) -> Schedule:
    """Sort chronologically, then renumber."""
    return renumber(sort_chronologically(schedule, config), special_start)


def shift_schedule(schedule: Schedule, special_start: int = SPECIAL_OCCURRENCE_START) -> Schedule:
    """
    Drop the first occurrence and move the rest up, in place.

    Used once the first occurrence is done: occurrence 2 becomes 1, 3
    becomes 2, and so on. Members, notes and items move with their
    occurrence.
    """
    if schedule:
        del schedule[0]
    return renumber(schedule, special_start)
