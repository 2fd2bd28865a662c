# clinic_booking/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from .config import policy_defaults
from .db import get_session
from .scheduling import BookingOrchestrator
from .store import SqlAppointmentStore


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_store(session: Session = Depends(get_session)) -> SqlAppointmentStore:
    return SqlAppointmentStore(session)


def get_orchestrator(store: SqlAppointmentStore = Depends(get_store)) -> BookingOrchestrator:
    return BookingOrchestrator(store, policy_defaults())
