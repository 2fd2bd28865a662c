"""Tests for the sweep-line concurrency engine."""
from types import SimpleNamespace

import pytest

from clinic_booking.scheduling.overlap import (
    Interval,
    appointment_interval,
    fits,
    intervals_for,
    max_concurrency,
    overlaps,
    peak_load,
)
from clinic_booking.scheduling.timeutils import time_to_minutes as m


def iv(start, end):
    return Interval(m(start), m(end))


class TestOverlaps:
    def test_touching_intervals_do_not_overlap(self):
        assert not overlaps(m("10:00"), m("10:30"), m("10:30"), m("11:00"))

    def test_partial_overlap(self):
        assert overlaps(m("10:00"), m("11:00"), m("10:30"), m("10:45"))


class TestMaxConcurrency:
    def test_no_existing_appointments(self):
        assert max_concurrency(m("10:00"), m("11:00"), []) == 1

    def test_back_to_back_is_not_concurrent(self):
        # A=[10:00,10:30) and B=[10:30,11:00) must not count as overlapping
        assert max_concurrency(m("10:30"), m("11:00"), [iv("10:00", "10:30")]) == 1
        assert max_concurrency(m("10:00"), m("10:30"), [iv("10:30", "11:00")]) == 1
        assert fits(max_concurrency(m("10:30"), m("11:00"), [iv("10:00", "10:30")]), 1)

    def test_overlap_detected(self):
        concurrency = max_concurrency(m("10:30"), m("10:45"), [iv("10:00", "11:00")])
        assert concurrency == 2
        assert not fits(concurrency, 1)

    def test_identical_interval(self):
        assert max_concurrency(m("10:00"), m("11:00"), [iv("10:00", "11:00")]) == 2

    def test_candidate_fully_contains_existing(self):
        existing = [iv("10:15", "10:30"), iv("10:45", "11:00")]
        # the two existing sessions never run at the same time
        assert max_concurrency(m("10:00"), m("11:30"), existing) == 2

    def test_moments_outside_the_window_are_ignored(self):
        # three sessions pile up at 09:00, but the candidate starts at 10:00
        existing = [iv("09:00", "10:00"), iv("09:00", "10:00"), iv("09:00", "10:30")]
        assert max_concurrency(m("10:00"), m("11:00"), existing) == 2

    def test_partial_overlaps_counted_at_busiest_instant(self):
        existing = [iv("09:00", "10:00"), iv("09:15", "10:15"), iv("10:00", "10:30")]
        # 09:30-09:45: 09:00 and 09:15 sessions are both running
        assert max_concurrency(m("09:30"), m("09:45"), existing) == 3
        # 10:00-10:15: 09:00 session has ended, 09:15 and 10:00 sessions run
        assert max_concurrency(m("10:00"), m("10:15"), existing) == 3
        assert max_concurrency(m("10:15"), m("10:30"), existing) == 2

    @pytest.mark.parametrize("limit", [1, 2, 5])
    def test_capacity_boundary(self, limit):
        below = [iv("10:00", "11:00")] * (limit - 1)
        at = [iv("10:00", "11:00")] * limit
        assert fits(max_concurrency(m("10:00"), m("11:00"), below), limit)
        assert not fits(max_concurrency(m("10:00"), m("11:00"), at), limit)

    def test_zero_limit_rejects_everything(self):
        assert not fits(max_concurrency(m("10:00"), m("11:00"), []), 0)

    def test_peak_load_excludes_candidate(self):
        assert peak_load(3) == 2
        assert peak_load(1) == 0
        assert peak_load(0) == 0


def appt(id, time, category="skin", duration=60, status="pending"):
    return SimpleNamespace(
        id=id, time=time, service_category_id=category, service_duration=duration, status=status
    )


class TestIntervalsFor:
    def test_filters_category_status_and_excluded_id(self):
        appointments = [
            appt(1, "09:00"),
            appt(2, "09:00", category="laser"),
            appt(3, "09:00", status="cancelled"),
            appt(4, "09:00", status="ملغي"),
            appt(5, "10:00"),
        ]
        assert intervals_for(appointments, "skin", exclude_id=5) == [iv("09:00", "10:00")]

    @pytest.mark.parametrize("duration", ["abc", 0, None, -30])
    def test_bad_durations_count_as_an_hour(self, duration):
        assert appointment_interval(appt(1, "09:00", duration=duration)) == iv("09:00", "10:00")

    def test_unparseable_time_is_skipped(self):
        assert intervals_for([appt(1, "nine")], "skin") == []
