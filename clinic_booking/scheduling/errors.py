# clinic_booking/scheduling/errors.py

from typing import List, Optional


class SchedulingError(Exception):
    """Base class for every error the booking core raises."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed or policy-violating input (forbidden start, past cutoff, ...)."""


class NotFound(SchedulingError):
    pass


class CapacityConflict(SchedulingError):
    """The category is already at its booking limit somewhere in the window."""

    def __init__(self, message: str, current: int, limit: int):
        super().__init__(message)
        self.current = current
        self.limit = limit


class StaffConflictError(SchedulingError):
    def __init__(self, message: str, conflicts: Optional[list] = None):
        super().__init__(message)
        self.conflicts = conflicts or []


class OverrideRequired(SchedulingError):
    """
    Raised by admin flows when at least one warning needs explicit
    acknowledgment. Resubmitting with ``acknowledge=True`` proceeds.
    """

    def __init__(self, warnings: List[str]):
        super().__init__("; ".join(warnings))
        self.warnings = list(warnings)


class InvalidTransition(SchedulingError):
    pass


class FetchError(SchedulingError):
    """A read from the appointment/category store failed."""
