"""Rotation schedule service.

This module contains the business logic for planning who is responsible
for the upcoming occurrences of a rotating task:
- Initializing a schedule
- Adding regular and special occurrences
- Deleting, moving and skipping occurrences
- Shifting the schedule once the first occurrence is done
- Assigning members (manually and via auto-fill)

Every operation takes a schedule snapshot and returns a new one; the
snapshot passed in is never modified. Storing the result is up to the caller.
"""

import copy
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from config import Config
from models import (
    MemberSlot, RecurrenceConfig, RegularOccurrence, Schedule, SpecialOccurrence,
    UNASSIGNED
)
from utils.recurrence import format_weekday_occurrence
from utils.schedule import effective_date, renumber, resort, shift_schedule
from utils.timezone import local_today

logger = logging.getLogger(__name__)

DIRECTION_UP = 'up'
DIRECTION_DOWN = 'down'


class RotationServiceError(Exception):
    """Base exception for rotation service errors."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(RotationServiceError):
    def __init__(self, message: str):
        super().__init__(message, 400)


class MemberConflictError(RotationServiceError):
    """A member is already responsible at another position of the occurrence."""

    def __init__(self, occurrence_number: int, position: int, member_id: int, taken_position: int):
        self.occurrence_number = occurrence_number
        self.position = position
        self.member_id = member_id
        self.taken_position = taken_position
        super().__init__(
            f'Member {member_id} is already assigned to position {taken_position} '
            f'of occurrence {occurrence_number}',
            409
        )


def eligible_members(roster: Iterable[int], excluded: Optional[Iterable[int]] = None) -> List[int]:
    """Members taking part in the rotation: the roster minus rotation exclusions."""
    excluded_ids = set(excluded or [])
    return [member_id for member_id in roster if member_id not in excluded_ids]


def _find_index(schedule: Schedule, occurrence_number: int) -> Optional[int]:
    for index, occurrence in enumerate(schedule):
        if occurrence.occurrence_number == occurrence_number:
            return index
    return None


class RotationService:
    """Service for editing the rotation schedule of one task."""

    def __init__(self, recurrence: RecurrenceConfig, required_persons: int = 1,
                 default_occurrence_count: int = Config.DEFAULT_OCCURRENCE_COUNT,
                 special_start: int = Config.SPECIAL_OCCURRENCE_START,
                 tz_name: Optional[str] = None, locale: str = Config.WEEKDAY_LOCALE):
        self.recurrence = recurrence
        self.required_persons = required_persons
        self.default_occurrence_count = default_occurrence_count
        self.special_start = special_start
        self.tz_name = tz_name
        self.locale = locale

    def _empty_slots(self) -> List[MemberSlot]:
        return [MemberSlot(position=pos) for pos in range(1, self.required_persons + 1)]

    def _resort(self, schedule: Schedule) -> Schedule:
        return resort(schedule, self.recurrence, self.special_start)

    def _lookup(self, schedule: Schedule, occurrence_number: int, action: str) -> Optional[int]:
        index = _find_index(schedule, occurrence_number)
        if index is None:
            logger.warning(f"{action}: occurrence {occurrence_number} not in schedule, ignoring")
        return index

    def effective_date(self, occurrence) -> Optional[date]:
        return effective_date(occurrence, self.recurrence)

    def initialize(self, current_assignees: Optional[List[int]] = None) -> Schedule:
        """Create the default schedule for a task.

        The first occurrence is pre-filled, left to right, with the task's
        current assignees; everything else starts unassigned.

        Args:
            current_assignees: Member IDs currently responsible for the task

        Returns:
            New schedule of regular occurrences numbered 1..N
        """
        current_assignees = current_assignees or []
        schedule = []

        for number in range(1, self.default_occurrence_count + 1):
            slots = self._empty_slots()
            if number == 1:
                for slot, member_id in zip(slots, current_assignees):
                    slot.member_id = member_id
            schedule.append(RegularOccurrence(occurrence_number=number, members=slots))

        logger.info(f"Initialized schedule with {len(schedule)} occurrences")
        return schedule

    def add_special_occurrence(self, schedule: Schedule, name: str,
                               special_date: Optional[date]) -> Schedule:
        """Add an ad-hoc appointment and re-sort the whole schedule.

        Args:
            schedule: Current schedule
            name: Display name of the appointment
            special_date: When it takes place

        Returns:
            New schedule in chronological order, renumbered
        """
        result = copy.deepcopy(schedule)
        result.append(SpecialOccurrence(
            occurrence_number=self.special_start + len(result),
            members=self._empty_slots(),
            special_name=name,
            special_date=special_date
        ))
        result = self._resort(result)

        logger.info(f"Added special occurrence '{name}' on {special_date}")
        return result

    def add_occurrence(self, schedule: Schedule) -> Schedule:
        """Append the next regular occurrence to the schedule."""
        result = copy.deepcopy(schedule)
        regular_count = sum(1 for occ in result if not occ.is_special)
        result.append(RegularOccurrence(
            occurrence_number=regular_count + 1,
            members=self._empty_slots()
        ))
        return self._resort(result)

    def delete_occurrence(self, schedule: Schedule, occurrence_number: int) -> Schedule:
        """Remove an occurrence and renumber the rest."""
        result = copy.deepcopy(schedule)
        index = self._lookup(result, occurrence_number, 'delete')
        if index is None:
            return result

        del result[index]
        logger.info(f"Deleted occurrence {occurrence_number}")
        return renumber(result, self.special_start)

    def move_occurrence(self, schedule: Schedule, occurrence_number: int, direction: str) -> Schedule:
        """Swap an occurrence with its neighbour and renumber.

        Moving past either end of the schedule is a no-op.

        Raises:
            BadRequestError: direction is neither 'up' nor 'down'
        """
        if direction not in (DIRECTION_UP, DIRECTION_DOWN):
            raise BadRequestError(f'Invalid direction "{direction}". Must be "up" or "down"')

        result = copy.deepcopy(schedule)
        index = self._lookup(result, occurrence_number, 'move')
        if index is None:
            return result

        target = index - 1 if direction == DIRECTION_UP else index + 1
        if target < 0 or target >= len(result):
            return result

        result[index], result[target] = result[target], result[index]
        logger.debug(f"Moved occurrence {occurrence_number} {direction}")
        return renumber(result, self.special_start)

    def shift(self, schedule: Schedule) -> Schedule:
        """Remove the completed first occurrence and move the rest up.

        Occurrence 2 becomes 1, 3 becomes 2, ...; special appointments keep
        their own number range.
        """
        result = shift_schedule(copy.deepcopy(schedule), self.special_start)
        logger.info(f"Shifted schedule, {len(result)} occurrence(s) left")
        return result

    def skip_occurrence(self, schedule: Schedule, occurrence_number: int) -> Schedule:
        """Toggle the skipped flag of an occurrence."""
        result = copy.deepcopy(schedule)
        index = self._lookup(result, occurrence_number, 'skip')
        if index is not None:
            occurrence = result[index]
            occurrence.is_skipped = not occurrence.is_skipped
            logger.info(f"Occurrence {occurrence_number} skipped={occurrence.is_skipped}")
        return result

    def set_member(self, schedule: Schedule, occurrence_number: int, position: int,
                   member_id: int) -> Schedule:
        """Assign a member to a position of an occurrence.

        Passing member_id=0 clears the position.

        Raises:
            MemberConflictError: The member already holds another position
                of the same occurrence
        """
        result = copy.deepcopy(schedule)
        index = self._lookup(result, occurrence_number, 'set_member')
        if index is None:
            return result

        occurrence = result[index]
        if member_id != UNASSIGNED:
            for slot in occurrence.members:
                if slot.member_id == member_id and slot.position != position:
                    raise MemberConflictError(occurrence_number, position, member_id, slot.position)

        slot = occurrence.slot(position)
        if slot:
            slot.member_id = member_id
        else:
            occurrence.members.append(MemberSlot(position=position, member_id=member_id))
            occurrence.members.sort(key=lambda s: s.position)

        return result

    def set_notes(self, schedule: Schedule, occurrence_number: int, notes: str) -> Schedule:
        result = copy.deepcopy(schedule)
        index = self._lookup(result, occurrence_number, 'set_notes')
        if index is not None:
            result[index].notes = notes or ''
        return result

    def set_occurrence_date(self, schedule: Schedule, occurrence_number: int,
                            new_date: Optional[date]) -> Schedule:
        """Change the explicit date of a special occurrence (or of any
        occurrence of an irregular task) and re-sort.

        Calculated dates of regular occurrences can't be edited; such
        requests are ignored.
        """
        result = copy.deepcopy(schedule)
        index = self._lookup(result, occurrence_number, 'set_date')
        if index is None:
            return result

        occurrence = result[index]
        if isinstance(occurrence, SpecialOccurrence):
            occurrence.special_date = new_date
        elif self.recurrence.is_irregular:
            occurrence.fixed_date = new_date
        else:
            logger.warning(f"Occurrence {occurrence_number} has a calculated date, ignoring date change")
            return result

        return self._resort(result)

    def reset_to_regular(self, schedule: Schedule, occurrence_number: int) -> Schedule:
        """Turn a special occurrence back into a regular one.

        Members, notes, skip flag and items are kept. The occurrence keeps
        its number until the schedule is next re-sorted.
        """
        result = copy.deepcopy(schedule)
        index = self._lookup(result, occurrence_number, 'reset_to_regular')
        if index is None:
            return result

        occurrence = result[index]
        if isinstance(occurrence, SpecialOccurrence):
            result[index] = RegularOccurrence(
                occurrence_number=occurrence.occurrence_number,
                members=occurrence.members,
                notes=occurrence.notes,
                is_skipped=occurrence.is_skipped,
                items=occurrence.items
            )
            logger.info(f"Occurrence {occurrence_number} reset to regular")
        return result

    def auto_fill(self, schedule: Schedule, eligible: List[int]) -> Schedule:
        """Fill every open position round-robin from the eligible members.

        A single cursor runs through the whole fill, so assignments spread
        evenly over all occurrences. For each open position the scan skips
        members already in the occurrence and, when there's a choice, the
        member holding the same position in the previous occurrence. That
        member is still taken if nobody else is available. A position stays
        open only if every eligible member is already in the occurrence.

        Args:
            schedule: Current schedule
            eligible: Member IDs taking part in the rotation, in rotation order

        Returns:
            New schedule with open positions filled
        """
        result = copy.deepcopy(schedule)
        if not eligible:
            return result

        cursor = 0
        filled = 0
        previous = None

        for occurrence in result:
            for position in range(1, self.required_persons + 1):
                if occurrence.member_at(position) != UNASSIGNED:
                    continue

                used = set(occurrence.assigned_member_ids())
                prev_member_id = previous.member_at(position) if previous else UNASSIGNED

                chosen = None
                repeat_candidate = None
                for offset in range(len(eligible)):
                    candidate = eligible[(cursor + offset) % len(eligible)]
                    if candidate in used:
                        continue
                    if candidate == prev_member_id and len(eligible) > 1:
                        repeat_candidate = candidate
                        continue
                    chosen = candidate
                    break

                if chosen is None:
                    chosen = repeat_candidate
                if chosen is None:
                    logger.warning(f"No free member for occurrence {occurrence.occurrence_number}, "
                                   f"position {position}")
                    continue

                slot = occurrence.slot(position)
                if slot:
                    slot.member_id = chosen
                else:
                    occurrence.members.append(MemberSlot(position=position, member_id=chosen))
                    occurrence.members.sort(key=lambda s: s.position)

                cursor += 1
                filled += 1
                logger.debug(f"Auto-filled occurrence {occurrence.occurrence_number} "
                             f"position {position} with member {chosen}")

            previous = occurrence

        logger.info(f"Auto-fill assigned {filled} position(s)")
        return result

    def needs_person(self, schedule: Schedule) -> Schedule:
        """Occurrences that still need someone (skipped ones excluded)."""
        return [
            occ for occ in schedule
            if not occ.is_skipped and occ.has_open_position(self.required_persons)
        ]

    def upcoming(self, schedule: Schedule, member_names: Dict[int, str],
                 start: Optional[date] = None, limit: Optional[int] = None) -> List[dict]:
        """Build display rows for the upcoming occurrences.

        Occurrences dated before start (default: today) are left out;
        occurrences without a date are always included.

        Args:
            schedule: Schedule in display order
            member_names: Member ID to display name
            start: First date to include
            limit: Maximum number of rows

        Returns:
            List of row dicts: the occurrence's to_dict() plus date,
            weekday_label ("3. Donnerstag"), responsible_persons and
            is_special
        """
        if start is None:
            start = local_today(self.tz_name)

        rows = []
        for occurrence in schedule:
            when = self.effective_date(occurrence)
            if when is not None and _as_date(when) < start:
                continue

            row = occurrence.to_dict()
            row.update({
                'date': when,
                'weekday_label': format_weekday_occurrence(when, self.locale) if when else None,
                'responsible_persons': [
                    member_names.get(member_id, f'#{member_id}')
                    for member_id in occurrence.assigned_member_ids()
                ],
                'is_special': occurrence.is_special,
            })
            row.setdefault('special_name', None)
            rows.append(row)
            if limit is not None and len(rows) >= limit:
                break

        return rows


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value
