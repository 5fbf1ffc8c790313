"""
Scheduling Domain Exceptions

Error taxonomy of the scheduling engine. The availability facade converts
these into typed results; they never cross the facade boundary.
"""

from datetime import date, time
from typing import Any

from app.core.domain import DomainException, InvalidOperationException

from .value_objects import Conflict, format_hhmm


class NotConfiguredException(DomainException):
    """Raised when a doctor has no working-hours template at all."""

    def __init__(self, doctor_id: int):
        self.doctor_id = doctor_id
        super().__init__(
            f"Doctor {doctor_id} has no working-hours template configured",
            "NOT_CONFIGURED",
            {"doctor_id": doctor_id},
        )


class InvalidConfigException(DomainException):
    """Raised when a template, override or effective day is malformed."""

    def __init__(self, message: str, issues: list[str] | None = None, details: dict[str, Any] | None = None):
        self.issues = issues or [message]
        details = details or {}
        details["issues"] = self.issues
        super().__init__(message, "INVALID_CONFIG", details)


class SchedulingConflictException(DomainException):
    """Raised when a proposed booking has one or more conflicts."""

    def __init__(self, conflicts: list[Conflict], message: str | None = None):
        self.conflicts = conflicts
        msg = message or "; ".join(conflict.message for conflict in conflicts) or "Scheduling conflict"
        super().__init__(
            msg,
            "SCHEDULING_CONFLICT",
            {"conflicts": [conflict.to_dict() for conflict in conflicts]},
        )


class IllegalTransitionException(InvalidOperationException):
    """Raised when a lifecycle transition is not allowed from the current state."""

    def __init__(self, from_status: Any, to_status: Any, operation: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        from_value = getattr(from_status, "value", str(from_status))
        to_value = getattr(to_status, "value", str(to_status))
        super().__init__(
            operation=operation or f"transition_to_{to_value}",
            current_state=from_value,
            message=f"Illegal transition from '{from_value}' to '{to_value}'",
            code="ILLEGAL_TRANSITION",
        )
        self.details["to_state"] = to_value


class SlotAlreadyTakenException(DomainException):
    """Raised by storage when a write would violate the one-active-booking-per-slot constraint."""

    def __init__(self, doctor_id: int, appointment_date: date, start_time: time):
        self.doctor_id = doctor_id
        self.appointment_date = appointment_date
        self.start_time = start_time
        super().__init__(
            f"Slot {appointment_date.isoformat()} {format_hhmm(start_time)} is already taken for doctor {doctor_id}",
            "SLOT_ALREADY_TAKEN",
            {
                "doctor_id": doctor_id,
                "date": appointment_date.isoformat(),
                "time": format_hhmm(start_time),
            },
        )
