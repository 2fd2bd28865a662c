"""Tests for HH:MM arithmetic and duration coercion."""
from datetime import datetime

import pytest

from clinic_booking.scheduling import timeutils
from clinic_booking.scheduling.errors import ValidationError
from clinic_booking.scheduling.timeutils import (
    add_duration,
    canonical_time,
    coerce_duration,
    is_date_passed,
    is_time_passed,
    is_valid_time,
    minutes_to_time,
    parse_time,
    time_to_minutes,
)


class TestClockTimes:
    def test_time_to_minutes(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes("9:05") == 545
        assert time_to_minutes("23:59") == 1439

    @pytest.mark.parametrize("value", ["", "930", "24:00", "10:60", "ab:cd", None, "10:5"])
    def test_malformed_times_are_rejected(self, value):
        assert not is_valid_time(value)
        with pytest.raises(ValueError):
            time_to_minutes(value)

    def test_parse_time_raises_validation_error(self):
        with pytest.raises(ValidationError) as exc:
            parse_time("25:00", "start time")
        assert "start time" in exc.value.message

    @pytest.mark.parametrize("value", ["8:30", " 08:30", "08:30 ", "08:30"])
    def test_canonical_time(self, value):
        assert canonical_time(value) == "08:30"

    def test_canonical_time_rejects_garbage(self):
        with pytest.raises(ValidationError):
            canonical_time("8.30")

    def test_minutes_to_time_pads(self):
        assert minutes_to_time(0) == "00:00"
        assert minutes_to_time(545) == "09:05"

    def test_minutes_to_time_has_no_rollover(self):
        assert minutes_to_time(1440) == "24:00"
        with pytest.raises(ValueError):
            minutes_to_time(-1)

    def test_add_duration(self):
        assert add_duration("16:00", 60) == "17:00"
        assert add_duration("10:45", 30) == "11:15"
        # negative durations never move the end before the start
        assert add_duration("10:00", -30) == "10:00"


class TestCoerceDuration:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (45, 45),
            ("90", 90),
            (" 30 min", 30),
            (40.7, 40),
            ("abc", 60),
            (0, 60),
            ("0", 60),
            (-15, 60),
            (None, 60),
            (float("nan"), 60),
            (True, 60),
            ([], 60),
        ],
    )
    def test_coerce(self, value, expected):
        assert coerce_duration(value) == expected

    def test_custom_fallback(self):
        assert coerce_duration("", fallback=30) == 30


class TestPastTimes:
    NOW = datetime(2025, 6, 1, 10, 0)

    def test_earlier_today_has_passed(self):
        assert is_time_passed("2025-06-01", "09:30", self.NOW)
        assert is_time_passed("2025-06-01", "10:00", self.NOW)
        assert not is_time_passed("2025-06-01", "10:15", self.NOW)

    def test_other_days_are_not_checked_by_time(self):
        assert not is_time_passed("2025-06-02", "08:00", self.NOW)
        assert not is_time_passed("2025-05-31", "23:00", self.NOW)

    def test_past_dates(self):
        assert is_date_passed("2025-05-31", self.NOW)
        assert not is_date_passed("2025-06-01", self.NOW)

    def test_default_now_is_clinic_time(self, monkeypatch):
        monkeypatch.setattr(timeutils, "clinic_now", lambda: self.NOW)
        assert is_time_passed("2025-06-01", "09:30")
        assert not is_time_passed("2025-06-01", "10:15")
        assert is_date_passed("2025-05-31")
