# clinic_booking/routers/appointments_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..auth import get_current_user
from ..deps import get_orchestrator, require_role
from ..scheduling import Actor, BookingOrchestrator
from ..schemas import (
    AppointmentPublic,
    BookingCreate,
    BookingPlan,
    FlexibleTimeCheck,
    FlexibleTimeValidation,
    TimeAvailability,
)

router = APIRouter(
    tags=["booking"],
)


@router.get("/services/{service_id}/availability", response_model=TimeAvailability)
def time_availability(
    service_id: str,
    date: str,
    time: str,
    duration: Optional[int] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.availability.check_time_availability(date, time, service_id, duration)


@router.get("/services/{service_id}/slots", response_model=List[str])
def available_slots(
    service_id: str,
    date: str,
    duration: Optional[int] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    # the customer's own pending bookings are hidden from their slot list
    return orchestrator.available_slots(date, service_id, current_user["id"], duration)


@router.get("/services/{service_id}/flexible-times", response_model=List[str])
def flexible_times(
    service_id: str,
    duration: Optional[int] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.availability.flexible_start_times(service_id, duration)


@router.post("/services/{service_id}/validate-time", response_model=FlexibleTimeValidation)
def validate_time(
    service_id: str,
    body: FlexibleTimeCheck,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    actor = Actor.admin if current_user["role"] == "admin" else Actor.customer
    return orchestrator.availability.validate_flexible_time(
        body.start_time, body.duration_minutes, service_id, actor
    )


@router.post("/bookings/prepare", response_model=BookingPlan)
def prepare_booking(
    booking: BookingCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")
    return orchestrator.prepare_booking(booking)


@router.post("/bookings", response_model=AppointmentPublic, status_code=201)
def create_booking(
    booking: BookingCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")
    return orchestrator.book(booking, customer_id=current_user["id"], customer_name=current_user.get("name"))
