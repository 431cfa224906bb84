"""
Timezone utilities for ChoreRota.

Provides consistent timezone-aware date and datetime functions
using the configured timezone (TZ environment variable by default).
"""

import os
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = 'Europe/Berlin'


def get_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """Get the configured timezone.

    Args:
        tz_name: Explicit IANA name; falls back to the TZ environment variable

    Returns:
        ZoneInfo for the configured timezone, defaults to Europe/Berlin
    """
    tz_name = tz_name or os.environ.get('TZ', DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        # Fallback if invalid timezone configured
        return ZoneInfo(DEFAULT_TIMEZONE)


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Get the current datetime in the configured timezone.

    Returns:
        Timezone-aware datetime in the configured local timezone
    """
    return datetime.now(get_timezone(tz_name))


def local_today(tz_name: Optional[str] = None) -> date:
    """Get today's date in the configured timezone.

    Returns:
        Date object representing today in the configured local timezone
    """
    return local_now(tz_name).date()
