# clinic_booking/scheduling/availability.py
"""
Capacity decisions for a booking window.

Every check here is an advisory read: nothing is reserved, and callers run
the same check again right before they write. When the store cannot be read
the checks fail open (report "available") and log it; the pre-write re-check
is the second chance to see the real state.
"""

from enum import Enum
from typing import List, Optional

from ..logging_config import get_logger
from ..schemas import (
    AppointmentStatus,
    CategoryPolicy,
    Decision,
    DecisionKind,
    FlexibleTimeValidation,
    TimeAvailability,
)
from .errors import FetchError, ValidationError
from .overlap import fits, intervals_for, max_concurrency, peak_load
from .policy import CategoryPolicyResolver
from .timeutils import (
    clinic_now,
    coerce_duration,
    is_time_passed,
    is_valid_time,
    minutes_to_time,
    parse_date,
    parse_time,
    time_to_minutes,
)

logger = get_logger(__name__)

# what a failed read reports as the limit
FAIL_OPEN_LIMIT = 999


class Actor(str, Enum):
    customer = "customer"
    admin = "admin"


class AvailabilityService:
    def __init__(self, store, resolver: Optional[CategoryPolicyResolver] = None, clock=None):
        self.store = store
        self.resolver = resolver or CategoryPolicyResolver(store)
        self.clock = clock or clinic_now

    def category_intervals(self, on_date: str, category_id: str, exclude_id=None):
        return intervals_for(self.store.fetch_appointments_for_date(on_date), category_id, exclude_id)

    def check_time_availability(
        self, on_date: str, time: str, service_id: str, duration=None, exclude_id=None
    ) -> TimeAvailability:
        """Would one more ``service_id`` booking at ``time`` stay within the category limit?"""
        parse_date(on_date)
        start = parse_time(time)
        try:
            policy = self.resolver.resolve_for_service(service_id)
            if duration is None:
                duration = self.resolver.service_duration(service_id)
            end = start + coerce_duration(duration)
            concurrency = max_concurrency(
                start, end, self.category_intervals(on_date, policy.category_id, exclude_id)
            )
        except FetchError as exc:
            logger.warning(
                "availability_check_failed_open",
                date=on_date,
                time=time,
                service_id=service_id,
                error=exc.message,
            )
            return TimeAvailability(available=True, current=0, limit=FAIL_OPEN_LIMIT, degraded=True)

        return TimeAvailability(
            available=fits(concurrency, policy.booking_limit),
            current=peak_load(concurrency),
            limit=policy.booking_limit,
        )

    def check_overlap(
        self, on_date: str, start_time: str, end_time: str, category_id: str, exclude_id=None
    ) -> int:
        """
        Number of existing ``category_id`` bookings running at the busiest
        instant of ``[start_time, end_time)``. The candidate is not counted,
        so ``count >= booking_limit`` means the candidate does not fit.
        """
        parse_date(on_date)
        start = parse_time(start_time, "start time")
        end = parse_time(end_time, "end time")
        if end <= start:
            raise ValidationError("End time must be after start time")
        try:
            intervals = self.category_intervals(on_date, category_id, exclude_id)
        except FetchError as exc:
            logger.warning("overlap_check_failed_open", date=on_date, category_id=category_id, error=exc.message)
            return 0
        return peak_load(max_concurrency(start, end, intervals))

    def policy_for_service(self, service_id: str) -> CategoryPolicy:
        """Fresh policy, or the defaults when the category cannot be read."""
        try:
            return self.resolver.resolve_for_service(service_id)
        except FetchError as exc:
            logger.warning("policy_fetch_failed_using_defaults", service_id=service_id, error=exc.message)
            return self.resolver.resolve_for_category(None)

    def validate_flexible_time(
        self,
        start_time: str,
        duration_minutes: int,
        service_id: str,
        actor: Actor = Actor.customer,
        policy: Optional[CategoryPolicy] = None,
    ) -> FlexibleTimeValidation:
        policy = policy or self.policy_for_service(service_id)
        if not is_valid_time(start_time):
            return FlexibleTimeValidation(valid=False, message=f"Invalid start time {start_time!r}")
        start_time = minutes_to_time(time_to_minutes(start_time))

        # admins may start at any time; only customers are held to the forbidden list
        if actor == Actor.customer and start_time in policy.forbidden_start_times:
            return FlexibleTimeValidation(valid=False, message=f"Start time {start_time} is not allowed")

        end_minutes = time_to_minutes(start_time) + max(int(duration_minutes), 0)
        end_time = minutes_to_time(end_minutes)

        if end_minutes > time_to_minutes(policy.max_end_time):
            if actor == Actor.admin:
                return FlexibleTimeValidation(
                    valid=True,
                    warning=True,
                    end_time=end_time,
                    message=(
                        f"Warning: the session would end at {end_time}, past the latest "
                        f"allowed end time ({policy.max_end_time}). Continue anyway?"
                    ),
                )
            return FlexibleTimeValidation(
                valid=False,
                end_time=end_time,
                message=(
                    f"The session would end at {end_time}, past the latest allowed "
                    f"end time ({policy.max_end_time})"
                ),
            )

        return FlexibleTimeValidation(valid=True, end_time=end_time)

    def decide_capacity(
        self,
        policy: CategoryPolicy,
        on_date: str,
        start: int,
        end: int,
        actor: Actor,
        exclude_id=None,
    ) -> Decision:
        """
        Admit, reject or warn for ``[start, end)`` against ``policy.booking_limit``.

        ``policy`` must have been fetched by the caller immediately before.
        Customers are rejected when the limit would be exceeded; admins get a
        proceedable warning carrying the same message.
        """
        limit = policy.booking_limit
        try:
            intervals = self.category_intervals(on_date, policy.category_id, exclude_id)
        except FetchError as exc:
            logger.warning(
                "capacity_check_failed_open",
                date=on_date,
                category_id=policy.category_id,
                error=exc.message,
            )
            return Decision(kind=DecisionKind.admit, current=0, limit=limit)

        concurrency = max_concurrency(start, end, intervals)
        current = peak_load(concurrency)
        if fits(concurrency, limit):
            return Decision(kind=DecisionKind.admit, current=current, limit=limit)

        if actor == Actor.customer:
            return Decision(
                kind=DecisionKind.reject,
                reason=(
                    f"The booking limit for this time has been reached ({current}/{limit}). "
                    "Please choose another time."
                ),
                current=current,
                limit=limit,
            )
        return Decision(
            kind=DecisionKind.warn,
            reason=f"Warning: the booking limit for this time has been reached ({current}/{limit}). Continue anyway?",
            proceedable=True,
            current=current,
            limit=limit,
        )

    def duration_for_service(self, service_id: str, duration=None) -> int:
        """Requested duration, else the service default, else the configured fallback."""
        if duration is None:
            try:
                duration = self.resolver.service_duration(service_id)
            except FetchError as exc:
                logger.warning("duration_fetch_failed_using_default", service_id=service_id, error=exc.message)
                duration = self.resolver.defaults.service_duration
        return coerce_duration(duration)

    def flexible_grid(self, policy: CategoryPolicy, duration: int) -> List[str]:
        defaults = self.resolver.defaults
        max_end = time_to_minutes(policy.max_end_time)
        times = []
        for hour in defaults.flexible_hours:
            for minute in defaults.flexible_minute_marks:
                start = hour * 60 + minute
                label = minutes_to_time(start)
                if label in policy.forbidden_start_times:
                    continue
                if start + duration > max_end:
                    continue
                times.append(label)
        return times

    def flexible_start_times(self, service_id: str, duration=None) -> List[str]:
        """Start times a customer may pick for a flexible-time service."""
        policy = self.policy_for_service(service_id)
        return self.flexible_grid(policy, self.duration_for_service(service_id, duration))

    def available_slots(self, on_date: str, service_id: str, customer_id=None, duration=None) -> List[str]:
        """
        Start times on ``on_date`` that still fit the category limit.

        Fixed categories offer their configured slots, flexible ones the start
        time grid. Times that already passed today and times where this
        customer already holds a pending booking are left out.
        """
        parse_date(on_date)
        policy = self.policy_for_service(service_id)
        duration = self.duration_for_service(service_id, duration)

        if policy.is_flexible:
            candidates = self.flexible_grid(policy, duration)
        else:
            candidates = list(policy.fixed_time_slots)

        now = self.clock()
        candidates = [t for t in candidates if not is_time_passed(on_date, t, now)]

        try:
            day = self.store.fetch_appointments_for_date(on_date)
        except FetchError as exc:
            logger.warning("slot_listing_failed_open", date=on_date, service_id=service_id, error=exc.message)
            return candidates

        own_pending = set()
        if customer_id is not None:
            own_pending = {
                minutes_to_time(time_to_minutes(a.time))
                for a in day
                if a.customer_id == customer_id
                and is_valid_time(a.time)
                and AppointmentStatus.parse(a.status) == AppointmentStatus.pending
            }

        intervals = intervals_for(day, policy.category_id)
        available = []
        for t in candidates:
            if t in own_pending:
                continue
            start = time_to_minutes(t)
            if fits(max_concurrency(start, start + duration, intervals), policy.booking_limit):
                available.append(t)
        return available
