"""Tests for the planner factory and configuration."""

from datetime import date
from unittest.mock import patch

from config import config
from models import RecurrenceConfig
from planner import create_planner
from services.completion_service import CompletionService
from utils.timezone import get_timezone, local_today


class TestCreatePlanner:
    """Tests for create_planner factory."""

    def test_testing_config(self, planner):
        assert planner.config is config['testing']
        assert planner.config.TESTING is True

    def test_env_selects_config(self):
        with patch.dict('os.environ', {'CHOREROTA_ENV': 'testing'}):
            planner = create_planner()
        assert planner.config is config['testing']

    def test_unknown_config_uses_default(self):
        planner = create_planner('staging')
        assert planner.config.DEBUG is True

    def test_rotation_service_uses_config(self, planner, weekly_config):
        service = planner.rotation(weekly_config, required_persons=2)
        assert service.required_persons == 2
        assert service.default_occurrence_count == 3
        assert service.special_start == 1000
        assert service.tz_name == 'Europe/Berlin'
        assert service.locale == 'de'

    def test_weekday_locale_from_config(self, planner, weekly_config):
        with patch.object(planner.config, 'WEEKDAY_LOCALE', 'en'):
            service = planner.rotation(weekly_config)
        assert service.locale == 'en'

    def test_rotation_requires_at_least_one_person(self, planner, weekly_config):
        assert planner.rotation(weekly_config, required_persons=0).required_persons == 1

    def test_completion_service(self, planner):
        assert isinstance(planner.completion(), CompletionService)


class TestEndToEnd:
    """A monthly task planned, filled and exported through the planner."""

    def test_third_thursday_rotation(self, planner, members, member_names):
        recurrence = RecurrenceConfig(
            interval=1, unit='months', monthly_mode='same_weekday', anchor_date=date(2026, 2, 19)
        )
        service = planner.rotation(recurrence)

        schedule = service.initialize([11])
        schedule = service.auto_fill(schedule, members)
        rows = service.upcoming(schedule, member_names, start=date(2026, 1, 1))

        assert [row['date'] for row in rows] == [date(2026, 2, 19), date(2026, 3, 19), date(2026, 4, 16)]
        assert [row['responsible_persons'] for row in rows] == [['Anna'], ['Ben'], ['Clara']]
        assert [row['weekday_label'] for row in rows] == ['3. Donnerstag'] * 3


class TestTimezone:
    """Tests for timezone helpers."""

    def test_explicit_name(self):
        assert get_timezone('America/Denver').key == 'America/Denver'

    def test_invalid_name_falls_back(self):
        assert get_timezone('Not/AZone').key == 'Europe/Berlin'

    def test_env_variable(self):
        with patch.dict('os.environ', {'TZ': 'Asia/Tokyo'}):
            assert get_timezone().key == 'Asia/Tokyo'

    def test_local_today_is_a_date(self):
        assert isinstance(local_today('UTC'), date)
