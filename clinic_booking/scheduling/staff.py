# clinic_booking/scheduling/staff.py

from ..logging_config import get_logger
from ..schemas import StaffAvailability, StaffConflict
from .errors import FetchError
from .overlap import appointment_interval, is_active, overlaps
from .timeutils import coerce_duration, parse_time

logger = get_logger(__name__)


class StaffConflictChecker:
    """
    A staff member is one exclusive resource across every category: any
    overlap with another of their live appointments is a conflict, whatever
    the category limits say.
    """

    def __init__(self, store):
        self.store = store

    def check_staff_availability(
        self, staff_id: str, on_date: str, time: str, duration_minutes, exclude_id=None
    ) -> StaffAvailability:
        start = parse_time(time)
        end = start + coerce_duration(duration_minutes)

        try:
            day = self.store.fetch_appointments_for_date(on_date)
        except FetchError as exc:
            logger.warning("staff_check_failed_open", staff_id=staff_id, date=on_date, error=exc.message)
            return StaffAvailability(available=True, conflicts=[])

        conflicts = []
        for appt in day:
            if appt.staff_id != staff_id:
                continue
            if exclude_id is not None and appt.id == exclude_id:
                continue
            if not is_active(appt):
                continue
            interval = appointment_interval(appt)
            if interval is None:
                continue
            if overlaps(start, end, interval.start, interval.end):
                conflicts.append(
                    StaffConflict(
                        appointment_id=appt.id,
                        customer_name=appt.customer_name,
                        service_name=appt.service_name,
                        time=appt.time,
                    )
                )

        return StaffAvailability(available=not conflicts, conflicts=conflicts)
