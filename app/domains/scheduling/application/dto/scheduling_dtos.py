"""Scheduling DTOs.

Request objects and typed results for the availability facade. Results never
raise: failures are reported through ``error_code``/``error_message``.
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import Any

from app.domains.scheduling.domain.entities.appointment import Appointment
from app.domains.scheduling.domain.entities.schedule_override import ScheduleOverride
from app.domains.scheduling.domain.entities.working_day_template import WorkingDayTemplate
from app.domains.scheduling.domain.services.slot_generator import TimeSlot
from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    BookingSource,
    Conflict,
    EffectiveDay,
    OverrideKind,
    TransitionActor,
)

# =============================================================================
# Result codes
# =============================================================================

SCHEDULING_CONFLICT = "SCHEDULING_CONFLICT"
NOT_CONFIGURED = "NOT_CONFIGURED"
INVALID_CONFIG = "INVALID_CONFIG"
ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
NOT_FOUND = "NOT_FOUND"
VALIDATION_ERROR = "VALIDATION_ERROR"
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"

# =============================================================================
# Request DTOs
# =============================================================================


@dataclass(frozen=True)
class BookAppointmentRequest:
    """Request DTO for booking a new appointment."""

    doctor_id: int
    patient_id: int
    appointment_date: date
    start_time: time
    duration_minutes: int | None = None  # None = doctor's configured duration
    appointment_type: str = "consultation"
    reason: str | None = None
    actor: TransitionActor = TransitionActor.PATIENT
    request_id: str | None = None  # client idempotency key
    booking_source: BookingSource = BookingSource.DETERMINISTIC
    advisory_confidence: float | None = None


@dataclass(frozen=True)
class OverrideRequest:
    """Request DTO for a dated schedule override."""

    doctor_id: int
    start_date: date
    end_date: date
    kind: OverrideKind = OverrideKind.LEAVE
    reason: str | None = None
    start_time: time | None = None
    end_time: time | None = None
    break_start: time | None = None
    break_end: time | None = None
    appointment_duration: int | None = None
    buffer_time: int | None = None
    max_appointments: int | None = None


# =============================================================================
# Result DTOs
# =============================================================================


@dataclass
class UseCaseResult:
    """Generic result for facade operations."""

    success: bool
    data: Any | None = None
    error_code: str | None = None
    error_message: str | None = None
    retryable: bool = False

    @classmethod
    def ok(cls, data: Any = None, **fields: Any):
        """Create successful result."""
        return cls(success=True, data=data, **fields)

    @classmethod
    def error(cls, code: str, message: str, **fields: Any):
        """Create error result."""
        return cls(success=False, error_code=code, error_message=message, **fields)


@dataclass
class SchedulingResult(UseCaseResult):
    """Result for book, reschedule, cancel and status transitions."""

    appointment: Appointment | None = None
    conflicts: list[Conflict] = field(default_factory=list)
    replayed: bool = False

    @property
    def status(self) -> AppointmentStatus | None:
        return self.appointment.status if self.appointment else None


@dataclass
class AvailableSlotsResult(UseCaseResult):
    """Result for slot listing."""

    slots: list[TimeSlot] = field(default_factory=list)
    effective_day: EffectiveDay | None = None

    @property
    def available(self) -> list[TimeSlot]:
        return [slot for slot in self.slots if slot.is_available]


@dataclass
class ConflictCheckResult(UseCaseResult):
    """Result for a read-only conflict check."""

    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


@dataclass
class NextAvailableResult(UseCaseResult):
    """Result for next-available lookup. ``slot`` is None when nothing was found."""

    slot: TimeSlot | None = None
    days_searched: int = 0


@dataclass
class DaySummaryResult(UseCaseResult):
    """Result for the per-day utilization summary."""

    doctor_id: int = 0
    day: date | None = None
    is_working: bool = False
    total_slots: int = 0
    booked_slots: int = 0
    available_slots: int = 0
    utilization_rate: float = 0.0
    status_counts: dict[str, int] = field(default_factory=dict)
    next_available: TimeSlot | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "doctor_id": self.doctor_id,
            "date": self.day.isoformat() if self.day else None,
            "is_working": self.is_working,
            "total_slots": self.total_slots,
            "booked_slots": self.booked_slots,
            "available_slots": self.available_slots,
            "utilization_rate": self.utilization_rate,
            "status_counts": self.status_counts,
            "next_available": self.next_available.to_dict() if self.next_available else None,
        }


@dataclass
class TemplateUpdateResult(UseCaseResult):
    """Result for template upserts, with impact diagnostics on upcoming bookings."""

    template: WorkingDayTemplate | None = None
    diagnostics: list[Conflict] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)


@dataclass
class OverrideResult(UseCaseResult):
    """Result for override workflow operations."""

    override: ScheduleOverride | None = None
