# clinic_booking/scheduling/overlap.py
"""
Concurrency of half-open intervals, in minutes since midnight.

Category limits mean "no more than N appointments happening at the same
moment", so a candidate is measured by the busiest instant inside its own
window, not by how many bookings share its start time. Sessions of different
lengths may partially overlap and still be counted correctly.
"""

from typing import Iterable, List, NamedTuple, Optional

from ..logging_config import get_logger
from ..schemas import AppointmentStatus
from .timeutils import coerce_duration, is_valid_time, time_to_minutes

logger = get_logger(__name__)

# Sort key for events at the same minute: ends release capacity before starts
# consume it, so a 09:00-10:00 and a 10:00-11:00 session never collide.
_END = 0
_START = 1


class Interval(NamedTuple):
    start: int
    end: int


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap test: touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def max_concurrency(new_start: int, new_end: int, existing: Iterable[Interval]) -> int:
    """
    Maximum number of intervals active at one instant inside ``[new_start, new_end)``,
    the candidate included.

    ``existing`` must already be restricted to the candidate's category and
    exclude cancelled appointments and the appointment being edited.
    """
    events = []

    # 1) Only intervals that overlap the window matter
    for interval in existing:
        if not overlaps(interval.start, interval.end, new_start, new_end):
            continue
        # 2) Clamp to the window
        events.append((max(interval.start, new_start), _START))
        events.append((min(interval.end, new_end), _END))

    # 3) The candidate itself
    events.append((new_start, _START))
    events.append((new_end, _END))

    # 4) Time ascending, end before start on ties
    events.sort()

    # 5) Sweep
    current = 0
    peak = 0
    for _, kind in events:
        if kind == _START:
            current += 1
            peak = max(peak, current)
        else:
            current -= 1
    return peak


def peak_load(concurrency: int) -> int:
    """Existing bookings at the busiest instant, i.e. without the candidate."""
    return max(0, concurrency - 1)


def fits(concurrency: int, booking_limit: int) -> bool:
    return concurrency <= booking_limit


def appointment_interval(appointment) -> Optional[Interval]:
    """Effective interval of a stored appointment, or None if its time is unusable."""
    if not is_valid_time(appointment.time):
        logger.warning(
            "appointment_time_unparseable",
            appointment_id=getattr(appointment, "id", None),
            time=appointment.time,
        )
        return None
    start = time_to_minutes(appointment.time)
    return Interval(start, start + coerce_duration(appointment.service_duration))


def is_active(appointment) -> bool:
    return AppointmentStatus.parse(appointment.status) != AppointmentStatus.cancelled


def intervals_for(appointments, category_id: str, exclude_id=None) -> List[Interval]:
    """Intervals of the non-cancelled ``category_id`` appointments, minus ``exclude_id``."""
    intervals = []
    for appt in appointments:
        if exclude_id is not None and appt.id == exclude_id:
            continue
        if not is_active(appt):
            continue
        if appt.service_category_id != category_id:
            continue
        interval = appointment_interval(appt)
        if interval is not None:
            intervals.append(interval)
    return intervals
