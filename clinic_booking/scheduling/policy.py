# clinic_booking/scheduling/policy.py

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..schemas import CategoryPolicy, TimeType
from .errors import ValidationError
from .timeutils import DEFAULT_DURATION, coerce_duration, is_valid_time, minutes_to_time, time_to_minutes


@dataclass(frozen=True)
class PolicyDefaults:
    """Fallbacks for category records that lack explicit configuration."""

    fixed_time_slots: Tuple[str, ...] = ("08:30", "10:00", "11:30", "13:00", "15:00")
    forbidden_start_times: Tuple[str, ...] = ("08:00", "08:30", "16:30")
    max_end_time: str = "16:30"
    booking_limit: int = 999
    time_type: TimeType = TimeType.fixed
    service_duration: int = DEFAULT_DURATION
    # grid offered to customers picking a flexible start time
    flexible_hours: Tuple[int, ...] = tuple(range(8, 17))
    flexible_minute_marks: Tuple[int, ...] = (0, 15, 30, 45)


def _time_list(value, fallback) -> List[str]:
    if not value:
        return list(fallback)
    return [minutes_to_time(time_to_minutes(t)) for t in value if is_valid_time(t)]


class CategoryPolicyResolver:
    """
    Resolves the scheduling policy that applies to a service.

    Nothing is cached: every call reads the service and category again, so a
    limit lowered by an admin a second ago is what the next decision sees.
    """

    def __init__(self, store, defaults: Optional[PolicyDefaults] = None):
        self.store = store
        self.defaults = defaults or PolicyDefaults()

    def resolve_for_category(self, category_id: Optional[str]) -> CategoryPolicy:
        record = self.store.fetch_category_policy(category_id) if category_id else None
        d = self.defaults

        if record is None:
            return CategoryPolicy(
                category_id=category_id or "",
                time_type=d.time_type,
                fixed_time_slots=list(d.fixed_time_slots),
                forbidden_start_times=list(d.forbidden_start_times),
                max_end_time=d.max_end_time,
                booking_limit=d.booking_limit,
            )

        try:
            time_type = TimeType(record.time_type) if record.time_type else d.time_type
        except ValueError:
            time_type = d.time_type

        max_end_time = record.max_end_time if is_valid_time(record.max_end_time) else d.max_end_time

        # 0 is a real limit (closes the category); only "unset" falls back
        booking_limit = record.booking_limit
        if booking_limit is None or booking_limit < 0:
            booking_limit = d.booking_limit

        return CategoryPolicy(
            category_id=category_id,
            time_type=time_type,
            fixed_time_slots=_time_list(record.fixed_time_slots, d.fixed_time_slots),
            # an explicit empty list means "nothing forbidden"
            forbidden_start_times=(
                list(d.forbidden_start_times)
                if record.forbidden_start_times is None
                else _time_list(record.forbidden_start_times, ())
            ),
            max_end_time=max_end_time,
            booking_limit=booking_limit,
        )

    def service(self, service_id: str):
        service = self.store.fetch_service_by_id(service_id)
        if service is None:
            raise ValidationError("Service not available")
        return service

    def resolve_for_service(self, service_id: str) -> CategoryPolicy:
        return self.resolve_for_category(self.service(service_id).category_id)

    def service_duration(self, service_id: str) -> int:
        return coerce_duration(self.service(service_id).duration, self.defaults.service_duration)
