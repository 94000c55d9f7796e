"""Tests for helper and validation utilities."""
import pytest
from datetime import datetime
from sprinksync.safety.errors import ValidationError
from sprinksync.safety.limits import SafetyLimits
from sprinksync.utils.helpers import (
    cron_day_of_week, format_days, format_duration, minutes_between, next_scheduled_run, parse_days
)
from sprinksync.utils.validator import validate_days, validate_name, validate_time_format

WEDNESDAY_0558 = datetime(2024, 6, 5, 5, 58)


class TestHelpers:

    def test_parse_days(self):
        assert parse_days('[1, 3, 5]') == [1, 3, 5]
        assert parse_days([0, 6]) == [0, 6]
        assert parse_days('not json') == []
        assert parse_days(None) == []

    def test_cron_day_of_week(self):
        assert cron_day_of_week([5, 1, 3]) == 'mon,wed,fri'
        assert cron_day_of_week([0, 6]) == 'sun,sat'

    def test_format_days(self):
        assert format_days([0, 1, 2, 3, 4, 5, 6]) == 'Every day'
        assert format_days([1, 2, 3, 4, 5]) == 'Weekdays'
        assert format_days([6, 0]) == 'Weekends'
        assert format_days([3, 1]) == 'Mon, Wed'
        assert format_days([]) == 'No days selected'

    def test_format_duration(self):
        assert format_duration(45) == '45m'
        assert format_duration(120) == '2h'
        assert format_duration(90) == '1h 30m'

    def test_minutes_between(self):
        assert minutes_between(WEDNESDAY_0558, datetime(2024, 6, 5, 6, 8, 20)) == 10.33

    def test_next_run_later_today(self):
        assert next_scheduled_run('06:00', [1, 3, 5], now=WEDNESDAY_0558) == datetime(2024, 6, 5, 6, 0)

    def test_next_run_skips_to_next_selected_day(self):
        now = datetime(2024, 6, 5, 6, 30)
        assert next_scheduled_run('06:00', [1, 3, 5], now=now) == datetime(2024, 6, 7, 6, 0)

    def test_next_run_same_weekday_next_week(self):
        now = datetime(2024, 6, 5, 6, 30)
        assert next_scheduled_run('06:00', [3], now=now) == datetime(2024, 6, 12, 6, 0)

    def test_next_run_no_days(self):
        assert next_scheduled_run('06:00', [], now=WEDNESDAY_0558) is None


class TestValidators:

    def test_time_format(self):
        assert validate_time_format('00:00') == '00:00'
        assert validate_time_format('23:59') == '23:59'
        for bad in ('24:00', '6:00', '06:60', '', None, 600):
            with pytest.raises(ValidationError):
                validate_time_format(bad)

    def test_days_are_deduplicated_and_sorted(self):
        assert validate_days([5, 1, 3, 1]) == [1, 3, 5]
        assert validate_days('[6, 0]') == [0, 6]

    def test_invalid_days(self):
        for bad in ([], [7], [-1], ['mon'], 'garbage', 5, [True]):
            with pytest.raises(ValidationError):
                validate_days(bad)

    def test_name(self):
        assert validate_name('  Front Lawn ') == 'Front Lawn'
        with pytest.raises(ValidationError):
            validate_name('   ')
        with pytest.raises(ValidationError):
            validate_name('x' * 51)
        assert len(validate_name('x' * 50)) == 50


class TestSafetyLimits:

    def test_reader_called_every_time(self):
        values = iter([2, 3, 1])
        limits = SafetyLimits(lambda: next(values))
        assert [limits.max_concurrent_zones() for _ in range(3)] == [2, 3, 1]

    def test_duration_window(self):
        limits = SafetyLimits(lambda: 2, min_duration=1, max_duration=60)
        assert limits.is_valid_duration(1)
        assert limits.is_valid_duration(60)
        assert not limits.is_valid_duration(0)
        assert not limits.is_valid_duration(61)
