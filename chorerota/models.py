"""
Data models for ChoreRota.

Plain dataclasses describing recurring tasks and their rotation schedules.
Storage is handled by the caller; these objects only carry data and a few
convenience helpers. See schemas.py for conversion to and from stored rows.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

# Recurrence units
UNIT_DAYS = 'days'
UNIT_WEEKS = 'weeks'
UNIT_MONTHS = 'months'
UNIT_IRREGULAR = 'irregular'
RECURRENCE_UNITS = (UNIT_DAYS, UNIT_WEEKS, UNIT_MONTHS, UNIT_IRREGULAR)

# Monthly recurrence modes
SAME_DATE = 'same_date'
SAME_WEEKDAY = 'same_weekday'
MONTHLY_MODES = (SAME_DATE, SAME_WEEKDAY)

# Occurrence kinds
KIND_REGULAR = 'regular'
KIND_SPECIAL = 'special'

UNASSIGNED = 0


@dataclass
class RecurrenceConfig:
    """How a task repeats.

    anchor_date is the date of occurrence #1. Weekdays use Sunday=0.
    monthly_weekday / monthly_occurrence only describe same_weekday tasks;
    the calculation itself derives them from anchor_date.
    """
    interval: int = 1
    unit: str = UNIT_WEEKS
    monthly_mode: str = SAME_DATE
    monthly_weekday: Optional[int] = None
    monthly_occurrence: Optional[int] = None
    anchor_date: Optional[date] = None

    @property
    def is_irregular(self) -> bool:
        return self.unit == UNIT_IRREGULAR

    def to_dict(self) -> dict:
        return {
            'interval': self.interval,
            'unit': self.unit,
            'monthly_mode': self.monthly_mode,
            'monthly_weekday': self.monthly_weekday,
            'monthly_occurrence': self.monthly_occurrence,
            'anchor_date': self.anchor_date.isoformat() if self.anchor_date else None,
        }


@dataclass
class MemberSlot:
    """One responsible person at one position of an occurrence."""
    position: int
    member_id: int = UNASSIGNED

    @property
    def is_assigned(self) -> bool:
        return self.member_id != UNASSIGNED


@dataclass
class ItemRef:
    """Inventory item needed for an occurrence (opaque to the scheduler)."""
    item_id: int
    item_name: str = ''


@dataclass
class Occurrence:
    """Fields shared by regular and special occurrences."""
    occurrence_number: int
    members: List[MemberSlot] = field(default_factory=list)
    notes: str = ''
    is_skipped: bool = False
    items: List[ItemRef] = field(default_factory=list)

    kind = None

    @property
    def is_special(self) -> bool:
        return self.kind == KIND_SPECIAL

    def slot(self, position: int) -> Optional[MemberSlot]:
        """Return the slot at a position, or None if it doesn't exist."""
        for slot in self.members:
            if slot.position == position:
                return slot
        return None

    def member_at(self, position: int) -> int:
        """Member id at a position (0 when unassigned or missing)."""
        slot = self.slot(position)
        return slot.member_id if slot else UNASSIGNED

    def assigned_member_ids(self) -> List[int]:
        """Assigned member ids in position order."""
        return [s.member_id for s in sorted(self.members, key=lambda s: s.position) if s.is_assigned]

    def has_open_position(self, required_persons: int) -> bool:
        return any(self.member_at(pos) == UNASSIGNED for pos in range(1, required_persons + 1))

    def to_dict(self) -> dict:
        """Serialize for JSON responses and logging."""
        return {
            'kind': self.kind,
            'occurrence_number': self.occurrence_number,
            'members': [{'position': s.position, 'member_id': s.member_id} for s in self.members],
            'notes': self.notes,
            'is_skipped': self.is_skipped,
            'items': [{'item_id': i.item_id, 'item_name': i.item_name} for i in self.items],
        }


@dataclass
class RegularOccurrence(Occurrence):
    """Occurrence on the task's regular cadence.

    The date is derived from the RecurrenceConfig. Irregular tasks have no
    cadence, so their occurrences carry an explicit fixed_date instead
    (None until a date is chosen).
    """
    fixed_date: Optional[date] = None

    kind = KIND_REGULAR

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['fixed_date'] = self.fixed_date.isoformat() if self.fixed_date else None
        return data


@dataclass
class SpecialOccurrence(Occurrence):
    """Ad-hoc appointment outside the regular cadence."""
    special_name: str = ''
    special_date: Optional[date] = None

    kind = KIND_SPECIAL

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['special_name'] = self.special_name
        data['special_date'] = self.special_date.isoformat() if self.special_date else None
        return data


AnyOccurrence = Union[RegularOccurrence, SpecialOccurrence]
Schedule = List[AnyOccurrence]


@dataclass
class TaskState:
    """Rotation-relevant state of a task, as loaded by the caller."""
    recurrence: RecurrenceConfig
    due_date: Optional[date] = None
    assigned_to: List[int] = field(default_factory=list)
    enable_rotation: bool = False
    required_persons: int = 1
    skipped_dates: List[str] = field(default_factory=list)
