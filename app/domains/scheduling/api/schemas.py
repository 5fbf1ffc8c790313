"""
Scheduling API Schemas

Pydantic schemas for API request/response validation. Times travel as
"HH:MM" strings in both directions.
"""

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    DayOfWeek,
    OverrideKind,
    RecurrencePattern,
    TransitionActor,
    parse_hhmm,
)


def _parse_time(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return parse_hhmm(value)
        except ValueError as e:
            raise ValueError(f"Expected HH:MM, got '{value}'") from e
    return value


class HHMMRequest(BaseModel):
    """Base for requests carrying HH:MM time fields."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    @field_validator(
        "start_time",
        "end_time",
        "break_start",
        "break_end",
        "new_time",
        mode="before",
        check_fields=False,
    )
    @classmethod
    def parse_hhmm_fields(cls, value: Any) -> Any:
        return _parse_time(value)


# =============================================================================
# Shared response parts
# =============================================================================


class ConflictResponse(BaseModel):
    """Conflict schema."""

    kind: str
    severity: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class TimeSlotResponse(BaseModel):
    """Time slot schema."""

    doctor_id: int
    date: date
    start_time: str
    end_time: str
    is_available: bool
    is_booked: bool
    appointment_id: int | None = None


# =============================================================================
# Availability
# =============================================================================


class EffectiveHoursResponse(BaseModel):
    """Effective working hours schema."""

    doctor_id: int
    date: date
    source: str
    is_working: bool
    start_time: str | None = None
    end_time: str | None = None
    break_start: str | None = None
    break_end: str | None = None
    appointment_duration: int
    buffer_time: int
    max_appointments: int | None = None
    timezone: str
    reason: str | None = None


class SlotsResponse(BaseModel):
    """Slot listing schema."""

    doctor_id: int
    date: date
    source: str
    slots: list[TimeSlotResponse]


class NextAvailableResponse(BaseModel):
    """Next available slot schema."""

    doctor_id: int
    slot: TimeSlotResponse | None = None
    days_searched: int


class DaySummaryResponse(BaseModel):
    """Per-day utilization schema."""

    doctor_id: int
    date: date
    is_working: bool
    total_slots: int
    booked_slots: int
    available_slots: int
    utilization_rate: float
    status_counts: dict[str, int]
    next_available: TimeSlotResponse | None = None


class ConflictCheckRequest(HHMMRequest):
    """Conflict check request schema."""

    doctor_id: int
    date: date
    start_time: time
    duration_minutes: int | None = Field(default=None, gt=0)
    exclude_appointment_id: int | None = None


class ConflictCheckResponse(BaseModel):
    """Conflict check response schema."""

    has_conflicts: bool
    conflicts: list[ConflictResponse]


# =============================================================================
# Templates and overrides
# =============================================================================


class TemplateRequest(HHMMRequest):
    """Weekly template request schema."""

    is_working: bool = True
    start_time: time | None = None
    end_time: time | None = None
    break_start: time | None = None
    break_end: time | None = None
    appointment_duration: int = Field(default=30, gt=0)
    buffer_time: int = Field(default=0, ge=0)
    max_appointments_per_day: int = Field(default=14, ge=0)
    timezone: str = "UTC"
    recurrence: RecurrencePattern = RecurrencePattern.WEEKLY
    effective_from: date | None = None
    effective_until: date | None = None


class TemplateResponse(BaseModel):
    """Weekly template schema."""

    id: int | None
    doctor_id: int
    day_of_week: DayOfWeek
    is_working: bool
    start_time: str | None = None
    end_time: str | None = None
    break_start: str | None = None
    break_end: str | None = None
    appointment_duration: int
    buffer_time: int
    max_appointments_per_day: int
    timezone: str
    recurrence: RecurrencePattern
    effective_from: date | None = None
    effective_until: date | None = None
    is_active: bool


class TemplateUpdateResponse(BaseModel):
    """Template upsert response with impact diagnostics."""

    template: TemplateResponse
    diagnostics: list[ConflictResponse]


class OverrideCreateRequest(HHMMRequest):
    """Schedule override request schema."""

    start_date: date
    end_date: date
    kind: OverrideKind
    reason: str | None = None
    start_time: time | None = None
    end_time: time | None = None
    break_start: time | None = None
    break_end: time | None = None
    appointment_duration: int | None = Field(default=None, gt=0)
    buffer_time: int | None = Field(default=None, ge=0)
    max_appointments: int | None = Field(default=None, ge=0)


class OverrideDecisionRequest(BaseModel):
    """Override approval/rejection/cancellation schema."""

    decided_by: str | None = None
    reason: str | None = None


class OverrideResponse(BaseModel):
    """Schedule override schema."""

    id: int | None
    doctor_id: int
    start_date: date
    end_date: date
    kind: OverrideKind
    status: str
    reason: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    break_start: str | None = None
    break_end: str | None = None
    appointment_duration: int | None = None
    buffer_time: int | None = None
    max_appointments: int | None = None
    decided_by: str | None = None
    decided_at: datetime | None = None


# =============================================================================
# Appointments
# =============================================================================


class AppointmentCreateRequest(HHMMRequest):
    """Appointment booking request schema."""

    doctor_id: int
    patient_id: int
    appointment_date: date
    start_time: time
    duration_minutes: int | None = Field(default=None, gt=0)
    appointment_type: str = "consultation"
    reason: str | None = None
    actor: TransitionActor = TransitionActor.PATIENT
    request_id: str | None = Field(default=None, max_length=100)
    use_advisory: bool = False


class RescheduleRequest(HHMMRequest):
    """Reschedule request schema."""

    new_date: date
    new_time: time
    actor: TransitionActor = TransitionActor.PATIENT


class CancelRequest(BaseModel):
    """Cancellation request schema."""

    reason: str | None = None
    cancelled_by: TransitionActor = TransitionActor.PATIENT


class StatusChangeRequest(BaseModel):
    """Lifecycle transition request schema."""

    status: AppointmentStatus
    actor: TransitionActor = TransitionActor.STAFF


class AppointmentResponse(BaseModel):
    """Appointment schema."""

    id: int
    doctor_id: int
    patient_id: int
    date: date
    time: str
    end_time: str | None = None
    duration_minutes: int
    status: str
    appointment_type: str
    reason: str | None = None
    timezone: str
    request_id: str | None = None
    booking_source: str
    advisory_confidence: float | None = None
    cancellation_reason: str | None = None
    cancelled_by: str | None = None
    reschedule_count: int = 0


class SchedulingResponse(BaseModel):
    """Booking operation response schema."""

    appointment: AppointmentResponse
    replayed: bool = False
