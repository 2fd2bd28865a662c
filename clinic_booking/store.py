# clinic_booking/store.py
"""
Data providers the booking core reads from and writes to.

The core only depends on ``AppointmentStore``; ``SqlAppointmentStore`` is the
SQLModel-backed implementation used by the API. Read failures surface as
``FetchError`` so the availability checks can fail open; write failures
propagate unchanged.
"""

from typing import List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .logging_config import get_logger
from .models import Appointment, Service, ServiceCategory, StaffMember
from .scheduling.errors import FetchError, NotFound

logger = get_logger(__name__)


class AppointmentStore(Protocol):
    def fetch_appointments_for_date(self, on_date: str) -> List[Appointment]:
        """All appointments on ``on_date``, any status."""
        ...

    def fetch_category_policy(self, category_id: str) -> Optional[ServiceCategory]:
        ...

    def fetch_service_by_id(self, service_id: str) -> Optional[Service]:
        ...

    def fetch_staff_member(self, staff_id: str) -> Optional[StaffMember]:
        ...

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        ...

    def create_appointment(self, record: dict) -> int:
        ...

    def update_appointment(self, appointment_id: int, patch: dict) -> None:
        ...

    def delete_appointment(self, appointment_id: int) -> None:
        ...


class SqlAppointmentStore:
    def __init__(self, session: Session):
        self.session = session

    def _read(self, what: str, fn):
        try:
            return fn()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("store_read_failed", what=what, error=str(exc))
            raise FetchError(f"Failed to read {what}") from exc

    def fetch_appointments_for_date(self, on_date: str) -> List[Appointment]:
        return self._read(
            "appointments",
            lambda: list(
                self.session.exec(
                    select(Appointment)
                    .where(Appointment.date == on_date)
                    .order_by(Appointment.time)
                ).all()
            ),
        )

    def fetch_category_policy(self, category_id: str) -> Optional[ServiceCategory]:
        # reload even if the row is already in the identity map
        return self._read(
            "category",
            lambda: self.session.get(ServiceCategory, category_id, populate_existing=True),
        )

    def fetch_service_by_id(self, service_id: str) -> Optional[Service]:
        return self._read("service", lambda: self.session.get(Service, service_id))

    def fetch_staff_member(self, staff_id: str) -> Optional[StaffMember]:
        return self._read("staff member", lambda: self.session.get(StaffMember, staff_id))

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self._read("appointment", lambda: self.session.get(Appointment, appointment_id))

    def create_appointment(self, record: dict) -> int:
        db_appt = Appointment(**record)
        self.session.add(db_appt)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        self.session.refresh(db_appt)  # fills db_appt.id
        logger.info("appointment_created", appointment_id=db_appt.id, date=db_appt.date, time=db_appt.time)
        return db_appt.id

    def update_appointment(self, appointment_id: int, patch: dict) -> None:
        target = self.session.get(Appointment, appointment_id)
        if target is None:
            raise NotFound("Appointment not found")
        for key, value in patch.items():
            setattr(target, key, value)
        self.session.add(target)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        logger.info("appointment_updated", appointment_id=appointment_id, fields=sorted(patch))

    def delete_appointment(self, appointment_id: int) -> None:
        target = self.session.get(Appointment, appointment_id)
        if target is None:
            raise NotFound("Appointment not found")
        self.session.delete(target)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        logger.info("appointment_deleted", appointment_id=appointment_id)
