"""Tests for the SQLModel-backed appointment store."""
from datetime import datetime, timezone

import pytest
from sqlmodel import Session, SQLModel, create_engine

from clinic_booking.models import Appointment, Service, ServiceCategory, StaffMember
from clinic_booking.scheduling.errors import FetchError, NotFound
from clinic_booking.store import SqlAppointmentStore


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'store.db'}", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(session):
    session.add(
        ServiceCategory(
            id="skin",
            name="Skin care",
            time_type="fixed",
            fixed_time_slots=["10:00", "11:30"],
            booking_limit=2,
        )
    )
    session.add(Service(id="facial", name="Facial", category_id="skin", duration=45))
    session.add(StaffMember(id="s1", name="Rana"))
    session.commit()
    return SqlAppointmentStore(session)


def record(**fields):
    data = {
        "date": "2025-06-01",
        "time": "10:00",
        "service_id": "facial",
        "service_category_id": "skin",
        "service_duration": 45,
        "status": "pending",
    }
    data.update(fields)
    return data


def test_reference_data(store):
    category = store.fetch_category_policy("skin")
    assert category.fixed_time_slots == ["10:00", "11:30"]
    assert category.forbidden_start_times is None
    assert category.booking_limit == 2

    assert store.fetch_service_by_id("facial").duration == 45
    assert store.fetch_staff_member("s1").name == "Rana"
    assert store.fetch_service_by_id("missing") is None
    assert store.fetch_category_policy("missing") is None


def test_appointments_for_date(store):
    later = store.create_appointment(record(time="11:30"))
    earlier = store.create_appointment(record(time="09:00"))
    store.create_appointment(record(date="2025-06-02"))

    day = store.fetch_appointments_for_date("2025-06-01")

    assert [a.id for a in day] == [earlier, later]
    assert isinstance(day[0], Appointment)


def test_category_changes_are_seen_immediately(engine, store):
    assert store.fetch_category_policy("skin").booking_limit == 2

    # an admin lowers the limit from another request
    with Session(engine) as other:
        category = other.get(ServiceCategory, "skin")
        category.booking_limit = 1
        other.add(category)
        other.commit()

    assert store.fetch_category_policy("skin").booking_limit == 1


def test_update_and_delete(store):
    appt_id = store.create_appointment(record())

    store.update_appointment(appt_id, {"status": "confirmed", "staff_id": "s1", "staff_name": "Rana"})
    appt = store.get_appointment(appt_id)
    assert appt.status == "confirmed"
    assert appt.staff_name == "Rana"

    store.delete_appointment(appt_id)
    assert store.get_appointment(appt_id) is None


def test_missing_appointment(store):
    with pytest.raises(NotFound):
        store.update_appointment(404, {"status": "confirmed"})
    with pytest.raises(NotFound):
        store.delete_appointment(404)


def test_read_failures_become_fetch_errors(engine, store):
    SQLModel.metadata.drop_all(engine)
    with pytest.raises(FetchError):
        store.fetch_appointments_for_date("2025-06-01")


def test_writes_timestamps(store):
    appt_id = store.create_appointment(record())
    assert store.get_appointment(appt_id).created_at is not None

    store.update_appointment(
        appt_id,
        {"status": "cancelled", "cancelled_by": "admin", "cancelled_at": datetime.now(timezone.utc)},
    )
    appt = store.get_appointment(appt_id)
    assert appt.status == "cancelled"
    assert appt.cancelled_at is not None
