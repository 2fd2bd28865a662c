"""Appointment capacity and conflict checks."""

from .availability import Actor, AvailabilityService
from .orchestrator import BookingOrchestrator, can_transition
from .overlap import Interval, max_concurrency, overlaps, peak_load
from .policy import CategoryPolicyResolver, PolicyDefaults
from .staff import StaffConflictChecker

__all__ = [
    "Actor",
    "AvailabilityService",
    "BookingOrchestrator",
    "CategoryPolicyResolver",
    "Interval",
    "PolicyDefaults",
    "StaffConflictChecker",
    "can_transition",
    "max_concurrency",
    "overlaps",
    "peak_load",
]
