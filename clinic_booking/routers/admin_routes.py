# clinic_booking/routers/admin_routes.py

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import get_current_user
from ..deps import get_orchestrator, require_role
from ..scheduling import BookingOrchestrator
from ..schemas import (
    AdminAppointmentCreate,
    AppointmentPublic,
    AppointmentUpdate,
    ConfirmRequest,
    StaffAvailability,
)


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "admin")
    return current_user


router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/staff/{staff_id}/availability", response_model=StaffAvailability)
def staff_availability(
    staff_id: str,
    date: str,
    time: str,
    duration: int = 60,
    exclude_id: Optional[int] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.staff.check_staff_availability(staff_id, date, time, duration, exclude_id)


@router.get("/overlap")
def category_overlap(
    date: str,
    start_time: str,
    end_time: str,
    category_id: str,
    exclude_id: Optional[int] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    count = orchestrator.availability.check_overlap(date, start_time, end_time, category_id, exclude_id)
    return {"count": count}


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AdminAppointmentCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(require_admin),
):
    return orchestrator.admin_create(appt, admin_id=current_user["id"])


@router.patch("/appointments/{appt_id}", response_model=AppointmentPublic)
def update_appointment(
    appt_id: int,
    patch: AppointmentUpdate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(require_admin),
):
    return orchestrator.admin_update(appt_id, patch, admin_id=current_user["id"])


@router.post("/appointments/{appt_id}/confirm", response_model=AppointmentPublic)
def confirm_appointment(
    appt_id: int,
    body: ConfirmRequest,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(require_admin),
):
    return orchestrator.confirm(appt_id, body, admin_id=current_user["id"])


@router.post("/appointments/{appt_id}/complete", response_model=AppointmentPublic)
def complete_appointment(
    appt_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.complete(appt_id)


@router.post("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.cancel(appt_id, cancelled_by="admin")


@router.delete("/appointments/{appt_id}", status_code=204)
def delete_appointment(
    appt_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    orchestrator.delete(appt_id)
