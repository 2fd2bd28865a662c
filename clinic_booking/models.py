# clinic_booking/models.py

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.types import JSON
from sqlmodel import Column, Field, SQLModel


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    date: str = Field(index=True)  # YYYY-MM-DD, naive local date
    time: str  # HH:MM
    end_time: Optional[str] = None

    service_id: str
    service_name: Optional[str] = None
    # frozen at booking time, never re-derived from the service
    service_category_id: Optional[str] = Field(default=None, index=True)
    service_duration: Optional[int] = None

    status: str = "pending"

    staff_id: Optional[str] = Field(default=None, index=True)
    staff_name: Optional[str] = None

    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    admin_note: Optional[str] = None

    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ServiceCategory(SQLModel, table=True):
    id: str = Field(primary_key=True)
    name: Optional[str] = None
    # every policy field is optional; missing ones fall back to PolicyDefaults
    time_type: Optional[str] = None  # "fixed" or "flexible"
    fixed_time_slots: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    forbidden_start_times: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    max_end_time: Optional[str] = None
    booking_limit: Optional[int] = None


class Service(SQLModel, table=True):
    id: str = Field(primary_key=True)
    name: str
    category_id: Optional[str] = Field(default=None, index=True)
    duration: Optional[int] = None


class StaffMember(SQLModel, table=True):
    id: str = Field(primary_key=True)
    name: str
