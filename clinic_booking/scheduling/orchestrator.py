# clinic_booking/scheduling/orchestrator.py
"""
Booking flows for customers and admins.

Customer booking is checked three times: when slots are listed, when the
customer moves to the confirmation step (``prepare_booking``) and again
immediately before the record is written (``book``). Admin create, edit and
confirm re-run the capacity and staff checks at their own commit point.
None of these checks is atomic with the write that follows it; the window is
narrowed, not closed.

Customers are hard-rejected. Admins get warnings they must acknowledge
(``OverrideRequired``); acknowledged warnings are logged and the write goes
ahead.
"""

from datetime import datetime, timezone
from typing import List, Optional

from ..logging_config import get_logger
from ..schemas import (
    AdminAppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
    BookingCreate,
    BookingPlan,
    CategoryPolicy,
    ConfirmRequest,
    DecisionKind,
)
from .availability import Actor, AvailabilityService
from .errors import (
    CapacityConflict,
    InvalidTransition,
    NotFound,
    OverrideRequired,
    StaffConflictError,
    ValidationError,
)
from .policy import CategoryPolicyResolver, PolicyDefaults
from .staff import StaffConflictChecker
from .timeutils import (
    canonical_time,
    coerce_duration,
    is_date_passed,
    is_time_passed,
    minutes_to_time,
    parse_time,
    time_to_minutes,
)

logger = get_logger(__name__)

VALID_TRANSITIONS = {
    AppointmentStatus.pending: {AppointmentStatus.confirmed, AppointmentStatus.cancelled},
    AppointmentStatus.confirmed: {AppointmentStatus.completed, AppointmentStatus.cancelled},
    AppointmentStatus.completed: set(),
    AppointmentStatus.cancelled: set(),
}


def can_transition(current: AppointmentStatus, intended: AppointmentStatus) -> bool:
    return intended in VALID_TRANSITIONS.get(current, set())


class BookingOrchestrator:
    def __init__(self, store, defaults: Optional[PolicyDefaults] = None, clock=None):
        self.store = store
        self.resolver = CategoryPolicyResolver(store, defaults)
        self.availability = AvailabilityService(store, self.resolver, clock)
        self.staff = StaffConflictChecker(store)

    # -- helpers -----------------------------------------------------------

    def _get(self, appointment_id: int):
        appt = self.store.get_appointment(appointment_id)
        if appt is None:
            raise NotFound("Appointment not found")
        return appt

    def _staff_member(self, staff_id: str):
        member = self.store.fetch_staff_member(staff_id)
        if member is None:
            raise ValidationError("Staff member not found")
        return member

    def _staff_warnings(self, staff, on_date: str, time: str, duration: int, exclude_id=None) -> List[str]:
        check = self.staff.check_staff_availability(staff.id, on_date, time, duration, exclude_id)
        if check.available:
            return []
        details = "; ".join(f"{c.customer_name} ({c.service_name}) at {c.time}" for c in check.conflicts)
        return [f"{staff.name} already has an appointment at this time: {details}"]

    def _require_ack(self, warnings: List[str], acknowledge: bool, **context):
        if not warnings:
            return
        if not acknowledge:
            raise OverrideRequired(warnings)
        for message in warnings:
            logger.warning("admin_override", message=message, **context)

    @staticmethod
    def _admin_duration(start: int, end_time: Optional[str], duration_minutes: Optional[int], fallback: int) -> int:
        """Explicit end time wins, then an explicit duration, then ``fallback``."""
        if end_time:
            duration = parse_time(end_time, "end time") - start
            if duration <= 0:
                raise ValidationError("End time must be after start time")
            return duration
        if duration_minutes:
            return duration_minutes
        return fallback

    def _schedule_warnings(
        self,
        policy: CategoryPolicy,
        service_id: str,
        on_date: str,
        time: str,
        start: int,
        duration: int,
        exclude_id=None,
    ) -> List[str]:
        warnings = []
        if policy.is_flexible:
            validation = self.availability.validate_flexible_time(
                time, duration, service_id, Actor.admin, policy=policy
            )
            if validation.warning:
                warnings.append(validation.message)

        decision = self.availability.decide_capacity(
            policy, on_date, start, start + duration, Actor.admin, exclude_id=exclude_id
        )
        if decision.kind == DecisionKind.warn:
            warnings.append(decision.reason)
        return warnings

    # -- customer flow -----------------------------------------------------

    def available_slots(self, on_date: str, service_id: str, customer_id=None, duration=None) -> List[str]:
        return self.availability.available_slots(on_date, service_id, customer_id, duration)

    def prepare_booking(self, request: BookingCreate) -> BookingPlan:
        """Checks run when the customer moves on to the confirmation step."""
        # 1) Service and its category policy, read fresh
        service = self.resolver.service(request.service_id)
        policy = self.resolver.resolve_for_category(service.category_id)

        # 2) Time format and not in the past
        time = canonical_time(request.time)
        start = time_to_minutes(time)
        now = self.availability.clock()
        if is_date_passed(request.date, now) or is_time_passed(request.date, time, now):
            raise ValidationError("Cannot book an appointment in the past")

        # 3) Policy-specific start time rules
        if policy.is_flexible:
            duration = request.duration_minutes or coerce_duration(service.duration)
            validation = self.availability.validate_flexible_time(
                time, duration, request.service_id, Actor.customer, policy=policy
            )
            if not validation.valid:
                raise ValidationError(validation.message)
        else:
            if time not in policy.fixed_time_slots:
                raise ValidationError(f"{time} is not one of the available times for this service")
            duration = coerce_duration(service.duration)
        end = start + duration

        # 4) Category capacity
        decision = self.availability.decide_capacity(policy, request.date, start, end, Actor.customer)
        if decision.kind == DecisionKind.reject:
            raise CapacityConflict(decision.reason, decision.current, decision.limit)

        # 5) A specialist picked directly must be free
        if request.staff_id:
            member = self._staff_member(request.staff_id)
            check = self.staff.check_staff_availability(member.id, request.date, time, duration)
            if not check.available:
                raise StaffConflictError(
                    f"{member.name} already has an appointment at this time",
                    [c.model_dump() for c in check.conflicts],
                )

        return BookingPlan(
            service_id=request.service_id,
            category_id=policy.category_id,
            date=request.date,
            time=time,
            end_time=minutes_to_time(end),
            duration=duration,
            current=decision.current,
            limit=decision.limit,
        )

    def book(self, request: BookingCreate, customer_id: Optional[str] = None, customer_name: Optional[str] = None):
        """Create a pending booking; every check is repeated right before the write."""
        plan = self.prepare_booking(request)
        service = self.resolver.service(request.service_id)

        staff_name = None
        if request.staff_id:
            staff_name = self._staff_member(request.staff_id).name

        record = {
            "date": plan.date,
            "time": plan.time,
            "end_time": plan.end_time,
            "service_id": plan.service_id,
            "service_name": service.name,
            "service_category_id": plan.category_id,
            "service_duration": plan.duration,
            "status": AppointmentStatus.pending.value,
            "staff_id": request.staff_id,
            "staff_name": staff_name,
            "customer_id": customer_id,
            "customer_name": request.customer_name or customer_name,
            "customer_phone": request.customer_phone,
            "notes": request.notes,
        }
        new_id = self.store.create_appointment(record)
        logger.info("booking_created", appointment_id=new_id, date=plan.date, time=plan.time, customer_id=customer_id)
        return self.store.get_appointment(new_id)

    # -- admin flow --------------------------------------------------------

    def admin_create(self, request: AdminAppointmentCreate, admin_id: Optional[str] = None):
        service = self.resolver.service(request.service_id)
        policy = self.resolver.resolve_for_category(service.category_id)

        time = canonical_time(request.time)
        start = time_to_minutes(time)
        duration = self._admin_duration(
            start, request.end_time, request.duration_minutes, coerce_duration(service.duration)
        )

        warnings = self._schedule_warnings(
            policy, request.service_id, request.date, time, start, duration
        )

        member = None
        if request.staff_id:
            member = self._staff_member(request.staff_id)
            warnings.extend(self._staff_warnings(member, request.date, time, duration))

        self._require_ack(
            warnings, request.acknowledge, action="create", admin_id=admin_id, date=request.date, time=time
        )

        status = AppointmentStatus.confirmed if member else AppointmentStatus.pending
        record = {
            "date": request.date,
            "time": time,
            "end_time": minutes_to_time(start + duration),
            "service_id": request.service_id,
            "service_name": service.name,
            "service_category_id": policy.category_id,
            "service_duration": duration,
            "status": status.value,
            "staff_id": member.id if member else None,
            "staff_name": member.name if member else None,
            "customer_name": request.customer_name,
            "customer_phone": request.customer_phone,
            "notes": request.notes,
        }
        new_id = self.store.create_appointment(record)
        return self.store.get_appointment(new_id)

    def admin_update(self, appointment_id: int, patch: AppointmentUpdate, admin_id: Optional[str] = None):
        appt = self._get(appointment_id)
        status = AppointmentStatus.parse(appt.status)
        fields = patch.model_fields_set

        new_date = patch.date or appt.date
        old_time = canonical_time(appt.time)
        new_time = canonical_time(patch.time) if patch.time else old_time
        start = time_to_minutes(new_time)
        old_duration = coerce_duration(appt.service_duration)
        duration = self._admin_duration(start, patch.end_time, patch.duration_minutes, old_duration)

        schedule_changed = new_date != appt.date or new_time != old_time or duration != old_duration
        staff_id = patch.staff_id if "staff_id" in fields else appt.staff_id
        staff_changed = staff_id != appt.staff_id

        if (schedule_changed or staff_changed) and status in (AppointmentStatus.completed, AppointmentStatus.cancelled):
            raise InvalidTransition(f"Cannot reschedule a {status.value} appointment")

        warnings = []
        if schedule_changed or staff_changed:
            # category membership is frozen on the record
            policy = self.resolver.resolve_for_category(appt.service_category_id)
            warnings.extend(
                self._schedule_warnings(
                    policy, appt.service_id, new_date, new_time, start, duration, exclude_id=appt.id
                )
            )

        # a notes-only edit never looks the staff member up
        member = None
        if staff_id and (schedule_changed or staff_changed):
            member = self._staff_member(staff_id)
            warnings.extend(self._staff_warnings(member, new_date, new_time, duration, exclude_id=appt.id))

        self._require_ack(
            warnings, patch.acknowledge, action="update", admin_id=admin_id, appointment_id=appointment_id
        )

        update = {}
        if schedule_changed:
            update.update(
                date=new_date,
                time=new_time,
                service_duration=duration,
                end_time=minutes_to_time(start + duration),
            )
        if staff_changed:
            update.update(staff_id=staff_id, staff_name=member.name if member else None)
        for name in ("customer_name", "customer_phone", "notes", "admin_note"):
            if name in fields:
                update[name] = getattr(patch, name)

        if update:
            self.store.update_appointment(appt.id, update)
        return self.store.get_appointment(appt.id)

    def confirm(self, appointment_id: int, request: ConfirmRequest, admin_id: Optional[str] = None):
        """Assign a specialist and move a pending booking to confirmed."""
        appt = self._get(appointment_id)
        status = AppointmentStatus.parse(appt.status)
        if not can_transition(status, AppointmentStatus.confirmed):
            raise InvalidTransition(f"Cannot confirm a {status.value} appointment")

        member = self._staff_member(request.staff_id)
        start = parse_time(appt.time)
        duration = coerce_duration(appt.service_duration)

        # capacity and staff load may have changed since the booking was made
        policy = self.resolver.resolve_for_category(appt.service_category_id)
        decision = self.availability.decide_capacity(
            policy, appt.date, start, start + duration, Actor.admin, exclude_id=appt.id
        )
        warnings = [decision.reason] if decision.kind == DecisionKind.warn else []
        warnings.extend(self._staff_warnings(member, appt.date, appt.time, duration, exclude_id=appt.id))

        self._require_ack(
            warnings, request.acknowledge, action="confirm", admin_id=admin_id, appointment_id=appointment_id
        )

        update = {
            "staff_id": member.id,
            "staff_name": member.name,
            "status": AppointmentStatus.confirmed.value,
        }
        if request.admin_note and request.admin_note.strip():
            update["admin_note"] = request.admin_note.strip()
        self.store.update_appointment(appt.id, update)
        return self.store.get_appointment(appt.id)

    def complete(self, appointment_id: int):
        appt = self._get(appointment_id)
        status = AppointmentStatus.parse(appt.status)
        if not can_transition(status, AppointmentStatus.completed):
            raise InvalidTransition(f"Cannot complete a {status.value} appointment")
        self.store.update_appointment(appt.id, {"status": AppointmentStatus.completed.value})
        return self.store.get_appointment(appt.id)

    def cancel(self, appointment_id: int, cancelled_by: str = "admin"):
        appt = self._get(appointment_id)
        status = AppointmentStatus.parse(appt.status)
        if not can_transition(status, AppointmentStatus.cancelled):
            raise InvalidTransition(f"Cannot cancel a {status.value} appointment")
        self.store.update_appointment(
            appt.id,
            {
                "status": AppointmentStatus.cancelled.value,
                "cancelled_by": cancelled_by,
                "cancelled_at": datetime.now(timezone.utc),
            },
        )
        return self.store.get_appointment(appt.id)

    def delete(self, appointment_id: int) -> None:
        appt = self._get(appointment_id)
        self.store.delete_appointment(appt.id)
        logger.info("appointment_deleted_by_admin", appointment_id=appointment_id)
