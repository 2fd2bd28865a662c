"""Shared test fixtures."""
from datetime import datetime
from types import SimpleNamespace

import pytest

from clinic_booking.scheduling import BookingOrchestrator
from clinic_booking.scheduling.errors import FetchError, NotFound

DATE = "2025-06-01"
# the day before DATE, so nothing on DATE has passed yet
NOW = datetime(2025, 5, 31, 12, 0)


class FakeStore:
    """In-memory AppointmentStore; set ``fail_reads`` to simulate a backend outage."""

    def __init__(self):
        self.appointments = {}
        self.categories = {}
        self.services = {}
        self.staff = {}
        self.fail_reads = False
        self.category_reads = 0
        self._next_id = 1

    def _check(self):
        if self.fail_reads:
            raise FetchError("store offline")

    # -- seeding -----------------------------------------------------------

    def add_category(self, category_id, **fields):
        record = SimpleNamespace(
            id=category_id,
            name=fields.pop("name", category_id),
            time_type=fields.pop("time_type", None),
            fixed_time_slots=fields.pop("fixed_time_slots", None),
            forbidden_start_times=fields.pop("forbidden_start_times", None),
            max_end_time=fields.pop("max_end_time", None),
            booking_limit=fields.pop("booking_limit", None),
        )
        self.categories[category_id] = record
        return record

    def add_service(self, service_id, category_id, duration=60, name=None):
        record = SimpleNamespace(id=service_id, name=name or service_id, category_id=category_id, duration=duration)
        self.services[service_id] = record
        return record

    def add_staff(self, staff_id, name):
        record = SimpleNamespace(id=staff_id, name=name)
        self.staff[staff_id] = record
        return record

    def add_appointment(self, time, category_id="skin", duration=60, **fields):
        record = {
            "date": DATE,
            "time": time,
            "service_id": "svc",
            "service_name": "Service",
            "service_category_id": category_id,
            "service_duration": duration,
            "status": "pending",
            "staff_id": None,
            "staff_name": None,
            "customer_id": None,
            "customer_name": "Customer",
        }
        record.update(fields)
        new_id = self.create_appointment(record)
        return self.appointments[new_id]

    # -- AppointmentStore --------------------------------------------------

    def fetch_appointments_for_date(self, on_date):
        self._check()
        return [a for a in self.appointments.values() if a.date == on_date]

    def fetch_category_policy(self, category_id):
        self._check()
        self.category_reads += 1
        return self.categories.get(category_id)

    def fetch_service_by_id(self, service_id):
        self._check()
        return self.services.get(service_id)

    def fetch_staff_member(self, staff_id):
        self._check()
        return self.staff.get(staff_id)

    def get_appointment(self, appointment_id):
        self._check()
        return self.appointments.get(appointment_id)

    def create_appointment(self, record):
        new_id = self._next_id
        self._next_id += 1
        fields = {
            "end_time": None,
            "notes": None,
            "admin_note": None,
            "customer_phone": None,
            "cancelled_by": None,
            "cancelled_at": None,
        }
        fields.update(record)
        self.appointments[new_id] = SimpleNamespace(id=new_id, **fields)
        return new_id

    def update_appointment(self, appointment_id, patch):
        if appointment_id not in self.appointments:
            raise NotFound("Appointment not found")
        for key, value in patch.items():
            setattr(self.appointments[appointment_id], key, value)

    def delete_appointment(self, appointment_id):
        if self.appointments.pop(appointment_id, None) is None:
            raise NotFound("Appointment not found")


@pytest.fixture
def store():
    """Store with a fixed-slot skin category and a flexible laser category."""
    fake = FakeStore()
    fake.add_category("skin", time_type="fixed", booking_limit=2)
    fake.add_category(
        "laser",
        time_type="flexible",
        booking_limit=3,
        forbidden_start_times=["08:00", "08:30", "16:30"],
        max_end_time="16:30",
    )
    fake.add_service("facial", "skin", duration=60, name="Facial")
    fake.add_service("laser-legs", "laser", duration=60, name="Laser legs")
    fake.add_staff("s1", "Rana")
    fake.add_staff("s2", "Lina")
    return fake


@pytest.fixture
def orchestrator(store):
    return BookingOrchestrator(store, clock=lambda: NOW)
