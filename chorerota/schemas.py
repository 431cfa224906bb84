"""
JSON schemas and validation for ChoreRota.

This module validates recurrence settings and rotation schedule rows as
they come from the storage layer or a request payload, and converts them
to and from the dataclasses in models.py.

Stored rows use camelCase keys:
    {taskId, occurrenceNumber, members: [{position, memberId}], notes,
     isSkipped, isSpecial, specialName, specialDate, items: [{itemId, itemName}]}
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import jsonschema

from models import (
    ItemRef, MemberSlot, MONTHLY_MODES, RECURRENCE_UNITS, RecurrenceConfig,
    RegularOccurrence, SAME_DATE, SAME_WEEKDAY, Schedule, SpecialOccurrence,
    UNIT_IRREGULAR, UNIT_MONTHS
)
from utils.recurrence import weekday_occurrence
from utils.timezone import get_timezone

NULLABLE_DATE = {"type": ["string", "null"], "minLength": 10}

RECURRENCE_CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "interval": {
            "type": "integer",
            "minimum": 1,
            "description": "Every N days/weeks/months"
        },
        "unit": {
            "type": "string",
            "enum": list(RECURRENCE_UNITS)
        },
        "monthly_mode": {
            "type": "string",
            "enum": list(MONTHLY_MODES)
        },
        "monthly_weekday": {
            "type": ["integer", "null"],
            "minimum": 0,
            "maximum": 6,
            "description": "0=Sunday, 6=Saturday"
        },
        "monthly_occurrence": {
            "type": ["integer", "null"],
            "minimum": 1,
            "maximum": 5,
            "description": "1st..4th, 5=last"
        },
        "anchor_date": NULLABLE_DATE
    },
    "required": ["unit"],
    "if": {"properties": {"unit": {"const": UNIT_IRREGULAR}}},
    "else": {
        "required": ["anchor_date"],
        "properties": {"anchor_date": {"type": "string"}}
    }
}

OCCURRENCE_ROW_SCHEMA = {
    "type": "object",
    "properties": {
        "taskId": {"type": ["integer", "null"]},
        "occurrenceNumber": {"type": "integer", "minimum": 1},
        "members": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "position": {"type": "integer", "minimum": 1},
                    "memberId": {"type": "integer", "minimum": 0}
                },
                "required": ["position", "memberId"]
            }
        },
        "notes": {"type": ["string", "null"]},
        "isSkipped": {"type": ["boolean", "integer", "null"]},
        "isSpecial": {"type": ["boolean", "integer", "null"]},
        "specialName": {"type": ["string", "null"]},
        "specialDate": NULLABLE_DATE,
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "itemId": {"type": "integer"},
                    "itemName": {"type": ["string", "null"]}
                },
                "required": ["itemId"]
            }
        }
    },
    "required": ["occurrenceNumber"]
}

# Accepted aliases for recurrence keys (stored task columns use camelCase)
RECURRENCE_KEY_ALIASES = {
    'repeatInterval': 'interval',
    'repeat_interval': 'interval',
    'repeatUnit': 'unit',
    'repeat_unit': 'unit',
    'monthlyRecurrenceMode': 'monthly_mode',
    'monthlyMode': 'monthly_mode',
    'monthlyWeekday': 'monthly_weekday',
    'monthlyOccurrence': 'monthly_occurrence',
    'anchorDate': 'anchor_date',
    'dueDate': 'anchor_date',
    'due_date': 'anchor_date',
}


class ValidationError(Exception):
    """Raised when a payload doesn't describe valid recurrence or schedule data."""

    def __init__(self, message: str):
        self.message = message
        self.status_code = 400
        super().__init__(self.message)


def _parse_bool(value) -> bool:
    """Parse a boolean value from various input types.

    Handles:
    - Python booleans: True, False
    - Strings: 'on', 'off', 'true', 'false', '1', '0'
    - Integers: 1 (True), 0 (False), as stored by MySQL
    - None/missing: False
    """
    if isinstance(value, bool):
        return value
    if value is None or value == '':
        return False
    if isinstance(value, str):
        return value.lower() in ('on', 'true', '1', 'yes')
    return bool(value)


def _parse_int(value, allow_none=True):
    """Parse an integer value from form or JSON input.

    Raises:
        ValueError: If value cannot be converted to int
    """
    if value is None or value == '':
        return None if allow_none else 0
    if isinstance(value, bool):
        raise ValueError("Cannot convert bool to int")
    if isinstance(value, int):
        return value
    if isinstance(value, (str, float)):
        return int(value)
    raise ValueError(f"Cannot convert {type(value).__name__} to int")


def _format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_date(value: Optional[str], tz_name: Optional[str] = None) -> Optional[date]:
    """Parse an ISO date or datetime string.

    Plain dates ('2026-02-19') become date objects; values with a time part
    become datetimes so the wall-clock time is kept. Timestamps with a UTC
    offset (stored due dates serialize as '...Z') are converted to the
    local timezone, since weekday and day of month are local notions.

    Raises:
        ValueError: If the string isn't ISO formatted
    """
    if value is None or value == '':
        return None
    if len(value) == 10:
        return date.fromisoformat(value)

    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(get_timezone(tz_name))
    return parsed


def _normalize_recurrence(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = {}
    for key, value in payload.items():
        key = RECURRENCE_KEY_ALIASES.get(key, key)
        if isinstance(value, date):
            value = value.isoformat()
        data[key] = value

    if 'interval' in data:
        data['interval'] = _parse_int(data['interval'], allow_none=False)
    for key in ('monthly_weekday', 'monthly_occurrence'):
        if key in data:
            data[key] = _parse_int(data[key])
    return data


def validate_recurrence_config(payload: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate recurrence settings against the JSON schema.

    Args:
        payload: Dictionary with recurrence settings (snake_case or camelCase keys)

    Returns:
        tuple: (is_valid: bool, error_message: str if invalid)
    """
    if not payload:
        return False, "Recurrence settings cannot be empty"

    if not isinstance(payload, dict):
        return False, "Recurrence settings must be a dictionary"

    try:
        data = _normalize_recurrence(payload)
    except (ValueError, TypeError) as e:
        return False, f"Invalid number: {e}"

    try:
        jsonschema.validate(instance=data, schema=RECURRENCE_CONFIG_SCHEMA)
    except jsonschema.exceptions.ValidationError as e:
        return False, str(e.message)

    try:
        _parse_date(data.get('anchor_date'))
    except ValueError as e:
        return False, f"Invalid anchor date: {e}"

    return True, None


def recurrence_from_dict(payload: Dict[str, Any], tz_name: Optional[str] = None) -> RecurrenceConfig:
    """
    Build a RecurrenceConfig from a payload or stored task row.

    A timestamped anchor (e.g. a stored dueDate) is read in the tz_name
    timezone, TZ by default. For same_weekday tasks without explicit
    weekday settings, the weekday and its occurrence are taken from the
    anchor date.

    Raises:
        ValidationError: If the payload is invalid
    """
    is_valid, error_msg = validate_recurrence_config(payload)
    if not is_valid:
        raise ValidationError(f"Invalid recurrence settings: {error_msg}")

    data = _normalize_recurrence(payload)
    config = RecurrenceConfig(
        interval=data.get('interval') or 1,
        unit=data['unit'],
        monthly_mode=data.get('monthly_mode') or SAME_DATE,
        monthly_weekday=data.get('monthly_weekday'),
        monthly_occurrence=data.get('monthly_occurrence'),
        anchor_date=_parse_date(data.get('anchor_date'), tz_name)
    )

    if (config.unit == UNIT_MONTHS and config.monthly_mode == SAME_WEEKDAY
            and config.anchor_date is not None):
        weekday, occurrence = weekday_occurrence(config.anchor_date)
        if config.monthly_weekday is None:
            config.monthly_weekday = weekday
        if config.monthly_occurrence is None:
            config.monthly_occurrence = occurrence

    return config


def occurrence_from_row(row: Dict[str, Any], tz_name: Optional[str] = None):
    """
    Convert a stored rotation schedule row to an occurrence.

    Rows flagged isSpecial become SpecialOccurrence; all others become
    RegularOccurrence, whose specialDate (irregular tasks) is kept as
    fixed_date.

    Raises:
        ValidationError: If the row is malformed
    """
    try:
        jsonschema.validate(instance=row, schema=OCCURRENCE_ROW_SCHEMA)
        when = _parse_date(row.get('specialDate'), tz_name)
    except jsonschema.exceptions.ValidationError as e:
        raise ValidationError(f"Invalid schedule row: {e.message}")
    except ValueError as e:
        raise ValidationError(f"Invalid schedule row date: {e}")

    common = {
        'occurrence_number': row['occurrenceNumber'],
        'members': sorted(
            (MemberSlot(position=m['position'], member_id=m['memberId']) for m in row.get('members') or []),
            key=lambda s: s.position
        ),
        'notes': row.get('notes') or '',
        'is_skipped': _parse_bool(row.get('isSkipped')),
        'items': [ItemRef(item_id=i['itemId'], item_name=i.get('itemName') or '') for i in row.get('items') or []],
    }

    if _parse_bool(row.get('isSpecial')):
        return SpecialOccurrence(special_name=row.get('specialName') or '', special_date=when, **common)
    return RegularOccurrence(fixed_date=when, **common)


def occurrence_to_row(occurrence, task_id: Optional[int] = None) -> Dict[str, Any]:
    """Convert an occurrence to the stored row shape."""
    if isinstance(occurrence, SpecialOccurrence):
        special_name = occurrence.special_name
        special_date = occurrence.special_date
    else:
        special_name = None
        special_date = occurrence.fixed_date

    return {
        'taskId': task_id,
        'occurrenceNumber': occurrence.occurrence_number,
        'members': [{'position': s.position, 'memberId': s.member_id} for s in occurrence.members],
        'notes': occurrence.notes,
        'isSkipped': occurrence.is_skipped,
        'isSpecial': occurrence.is_special,
        'specialName': special_name,
        'specialDate': _format_date(special_date),
        'items': [{'itemId': i.item_id, 'itemName': i.item_name} for i in occurrence.items],
    }


def schedule_from_rows(rows: List[Dict[str, Any]], tz_name: Optional[str] = None) -> Schedule:
    """Convert stored rows, in stored order, to a schedule."""
    return [occurrence_from_row(row, tz_name) for row in rows]


def schedule_to_rows(schedule: Schedule, task_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Convert a schedule to rows for a "replace whole schedule" write."""
    return [occurrence_to_row(occ, task_id) for occ in schedule]
