# clinic_booking/schemas.py

from datetime import date as Date
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"

    @classmethod
    def parse(cls, value) -> "AppointmentStatus":
        """Canonical status for a stored value, including legacy Arabic labels."""
        if isinstance(value, cls):
            return value
        if value in LEGACY_STATUS_LABELS:
            return LEGACY_STATUS_LABELS[value]
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            # unknown labels still hold their slot
            return cls.pending


LEGACY_STATUS_LABELS = {
    "في الانتظار": AppointmentStatus.pending,
    "مؤكد": AppointmentStatus.confirmed,
    "مكتمل": AppointmentStatus.completed,
    "ملغي": AppointmentStatus.cancelled,
    # older spelling used by a few records
    "canceled": AppointmentStatus.cancelled,
}


class TimeType(str, Enum):
    fixed = "fixed"
    flexible = "flexible"


class UserRole(str, Enum):
    customer = "customer"
    admin = "admin"


class CategoryPolicy(BaseModel):
    category_id: str
    time_type: TimeType = TimeType.fixed
    fixed_time_slots: List[str]
    forbidden_start_times: List[str]
    max_end_time: str
    booking_limit: int

    @property
    def is_flexible(self) -> bool:
        return self.time_type == TimeType.flexible


class TimeAvailability(BaseModel):
    available: bool
    current: int
    limit: int
    # set when the answer came from the fail-open path
    degraded: bool = False


class StaffConflict(BaseModel):
    appointment_id: Optional[int] = None
    customer_name: Optional[str] = None
    service_name: Optional[str] = None
    time: str


class StaffAvailability(BaseModel):
    available: bool
    conflicts: List[StaffConflict] = []


class FlexibleTimeValidation(BaseModel):
    valid: bool
    end_time: Optional[str] = None
    warning: bool = False
    message: Optional[str] = None


class DecisionKind(str, Enum):
    admit = "admit"
    reject = "reject"
    warn = "warn"


class Decision(BaseModel):
    kind: DecisionKind
    reason: Optional[str] = None
    proceedable: bool = False
    current: int = 0
    limit: int = 0

    @property
    def admitted(self) -> bool:
        return self.kind == DecisionKind.admit


def _check_date(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        Date.fromisoformat(value)
    except ValueError:
        raise ValueError("date must be YYYY-MM-DD")
    return value


DateStr = Annotated[str, AfterValidator(_check_date)]


class BookingCreate(BaseModel):
    service_id: str
    date: DateStr
    time: str
    # flexible categories let the customer pick a session length
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    staff_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None


class AdminAppointmentCreate(BaseModel):
    service_id: str
    date: DateStr
    time: str
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    staff_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    acknowledge: bool = False


class AppointmentUpdate(BaseModel):
    date: Optional[DateStr] = None
    time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    staff_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    admin_note: Optional[str] = None
    acknowledge: bool = False


class ConfirmRequest(BaseModel):
    staff_id: str
    admin_note: Optional[str] = None
    acknowledge: bool = False


class FlexibleTimeCheck(BaseModel):
    start_time: str
    duration_minutes: int = Field(gt=0)


class BookingPlan(BaseModel):
    service_id: str
    category_id: str
    date: str
    time: str
    end_time: str
    duration: int
    current: int
    limit: int


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: str
    time: str
    end_time: Optional[str] = None
    service_id: str
    service_name: Optional[str] = None
    service_category_id: Optional[str] = None
    service_duration: Optional[int] = None
    status: str
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    admin_note: Optional[str] = None


class OverrideWarning(BaseModel):
    detail: str
    warnings: List[str]
