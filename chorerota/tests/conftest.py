"""Pytest configuration and fixtures for ChoreRota tests."""

import pytest
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from planner import create_planner
from models import RecurrenceConfig


@pytest.fixture(scope='function')
def planner():
    """Create planner instance for testing."""
    return create_planner('testing')


@pytest.fixture
def weekly_config():
    """Weekly task starting on a Sunday."""
    return RecurrenceConfig(interval=1, unit='weeks', anchor_date=date(2026, 3, 1))


@pytest.fixture
def monthly_weekday_config():
    """Monthly task on the 3rd Thursday, starting Feb 19 2026."""
    return RecurrenceConfig(
        interval=1,
        unit='months',
        monthly_mode='same_weekday',
        monthly_weekday=4,
        monthly_occurrence=3,
        anchor_date=date(2026, 2, 19)
    )


@pytest.fixture
def irregular_config():
    """Irregular task; every date is chosen by hand."""
    return RecurrenceConfig(interval=1, unit='irregular')


@pytest.fixture
def members():
    """Household roster in rotation order."""
    return [11, 12, 13]


@pytest.fixture
def member_names():
    return {11: 'Anna', 12: 'Ben', 13: 'Clara'}


@pytest.fixture
def weekly_service(planner, weekly_config):
    """Rotation service for a weekly single-person task."""
    return planner.rotation(weekly_config, required_persons=1)


@pytest.fixture
def pair_service(planner, weekly_config):
    """Rotation service for a weekly task needing two people."""
    return planner.rotation(weekly_config, required_persons=2)
