# clinic_booking/scheduling/timeutils.py
"""Helpers for "HH:MM" wall-clock times expressed as minutes since midnight."""

import math
import re
from datetime import date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from .. import config
from .errors import ValidationError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

DEFAULT_DURATION = 60


def is_valid_time(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    match = _TIME_RE.match(value.strip())
    if match is None:
        return False
    hour, minute = int(match.group(1)), int(match.group(2))
    return 0 <= hour <= 23 and 0 <= minute <= 59


def time_to_minutes(value: str) -> int:
    """"09:30" -> 570. Raises ValueError on anything that is not a clock time."""
    if not is_valid_time(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hour, minute = value.strip().split(":")
    return int(hour) * 60 + int(minute)


def minutes_to_time(minutes: int) -> str:
    """570 -> "09:30". No day rollover: 1440 renders as "24:00"."""
    if minutes < 0:
        raise ValueError(f"Negative minute offset {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time(value, field_name: str = "time") -> int:
    """Like time_to_minutes, but reports bad input as a ValidationError."""
    if not is_valid_time(value):
        raise ValidationError(f"Invalid {field_name} {value!r}, expected HH:MM")
    return time_to_minutes(value)


def canonical_time(value, field_name: str = "time") -> str:
    """" 8:30" -> "08:30". Policy lists and stored records only hold this form."""
    return minutes_to_time(parse_time(value, field_name))


def parse_date(value, field_name: str = "date") -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} {value!r}, expected YYYY-MM-DD")


def add_duration(start: str, duration_minutes: int) -> str:
    return minutes_to_time(time_to_minutes(start) + max(int(duration_minutes), 0))


def coerce_duration(value: Any, fallback: int = DEFAULT_DURATION) -> int:
    """
    Normalize a persisted duration to a positive number of minutes.

    Strings are parsed leniently ("45", " 45 min" -> 45). Anything that does
    not yield a positive integer (None, "abc", 0, -15, NaN, booleans) becomes
    ``fallback``. Stored durations are not guaranteed well-formed, so every
    duration read from a record goes through here before overlap math.
    """
    if value is None or isinstance(value, bool):
        return fallback

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return fallback
        parsed = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match is None:
            return fallback
        parsed = int(match.group(1))
    else:
        return fallback

    if parsed <= 0:
        return fallback
    return parsed


def clinic_now() -> datetime:
    """Current wall-clock time at the clinic, as a naive datetime."""
    return datetime.now(ZoneInfo(config.CLINIC_TIMEZONE)).replace(tzinfo=None)


def is_time_passed(on_date: str, start_time: str, now: Optional[datetime] = None) -> bool:
    """
    True when ``start_time`` on ``on_date`` is already behind ``now``.

    Only today's times can have passed; earlier dates are rejected separately
    by ``is_date_passed``. A start time equal to the current minute counts as
    passed.
    """
    now = now or clinic_now()
    if date.fromisoformat(on_date) != now.date():
        return False
    return time_to_minutes(start_time) <= now.hour * 60 + now.minute


def is_date_passed(on_date: str, now: Optional[datetime] = None) -> bool:
    now = now or clinic_now()
    return date.fromisoformat(on_date) < now.date()
