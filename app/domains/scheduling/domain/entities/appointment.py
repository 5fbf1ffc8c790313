"""
Appointment Entity for Scheduling Domain

Represents a booked appointment holding a slot in a doctor's day.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from app.core.domain import AggregateRoot

from ..events import AppointmentEvent
from ..value_objects import (
    AppointmentStatus,
    BookingSource,
    TimeWindow,
    TransitionActor,
    format_hhmm,
    intervals_overlap,
    to_minutes,
)


@dataclass
class Appointment(AggregateRoot[int]):
    """
    Appointment aggregate root for the scheduling domain.

    Status, date and time are only changed through the BookingStateMachine,
    which enforces the legal transitions and records domain events.

    Example:
        ```python
        appointment = Appointment(
            doctor_id=7,
            patient_id=42,
            appointment_date=date(2024, 1, 15),
            start_time=time(9, 0),
            duration_minutes=30,
        )
        appointment.end_time  # time(9, 30)
        ```
    """

    # References
    doctor_id: int = 0
    patient_id: int = 0

    # Scheduling
    appointment_date: date | None = None
    start_time: time | None = None
    duration_minutes: int = 30
    timezone: str = "UTC"

    # Type
    appointment_type: str = "consultation"  # consultation, follow_up, procedure, ...
    reason: str | None = None

    # Status
    status: AppointmentStatus = AppointmentStatus.PENDING

    # Booking provenance
    request_id: str | None = None
    booking_source: BookingSource = BookingSource.DETERMINISTIC
    advisory_confidence: float | None = None
    booked_by: TransitionActor = TransitionActor.PATIENT

    # Timestamps
    confirmed_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    # Cancellation
    cancellation_reason: str | None = None
    cancelled_by: TransitionActor | None = None

    # Rescheduling
    reschedule_count: int = 0
    rescheduled_at: datetime | None = None

    @property
    def start_minute(self) -> int | None:
        if self.start_time is None:
            return None
        return to_minutes(self.start_time)

    @property
    def end_minute(self) -> int | None:
        """End as minutes since midnight; may exceed one day for malformed rows."""
        if self.start_time is None:
            return None
        return to_minutes(self.start_time) + self.duration_minutes

    @property
    def end_time(self) -> time | None:
        if self.appointment_date is None or self.start_time is None:
            return None
        end_dt = datetime.combine(self.appointment_date, self.start_time) + timedelta(minutes=self.duration_minutes)
        return end_dt.time()

    @property
    def window(self) -> TimeWindow | None:
        if self.start_time is None:
            return None
        return TimeWindow.starting_at(self.start_time, self.duration_minutes)

    @property
    def datetime_start(self) -> datetime | None:
        """Get start as naive local datetime."""
        if self.appointment_date and self.start_time:
            return datetime.combine(self.appointment_date, self.start_time)
        return None

    def is_active(self) -> bool:
        """Check if appointment still occupies its slot."""
        return self.status.is_active()

    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    def overlaps(self, on_date: date, start_minute: int, end_minute: int) -> bool:
        """Check if this appointment's interval intersects [start_minute, end_minute) on a date."""
        if self.appointment_date != on_date or self.start_minute is None or self.end_minute is None:
            return False
        return intervals_overlap(self.start_minute, self.end_minute, start_minute, end_minute)

    def conflicts_with(self, other: "Appointment") -> bool:
        """Check if two active appointments of the same doctor overlap."""
        if self.doctor_id != other.doctor_id or not (self.is_active() and other.is_active()):
            return False
        if other.appointment_date is None or other.start_minute is None or other.end_minute is None:
            return False
        return self.overlaps(other.appointment_date, other.start_minute, other.end_minute)

    # State mutators used by the BookingStateMachine

    def apply_status(self, new_status: AppointmentStatus) -> None:
        """Set a new status and stamp the matching timestamp."""
        now = datetime.now(UTC)
        self.status = new_status
        if new_status == AppointmentStatus.SCHEDULED:
            self.confirmed_at = now
        elif new_status == AppointmentStatus.IN_PROGRESS:
            self.started_at = now
        elif new_status == AppointmentStatus.COMPLETED:
            self.completed_at = now
        elif new_status == AppointmentStatus.CANCELLED:
            self.cancelled_at = now
        self.touch()

    def move_to(self, new_date: date, new_time: time) -> None:
        """Change date and time in place."""
        self.appointment_date = new_date
        self.start_time = new_time
        self.reschedule_count += 1
        self.rescheduled_at = datetime.now(UTC)
        self.touch()

    def snapshot_event(self, event_type: type[AppointmentEvent], actor: TransitionActor, **extra: Any) -> AppointmentEvent:
        """Build an event carrying the current appointment snapshot."""
        return event_type(
            appointment_id=self.id,
            doctor_id=self.doctor_id,
            patient_id=self.patient_id,
            appointment_date=self.appointment_date,
            start_time=self.start_time,
            duration_minutes=self.duration_minutes,
            timezone=self.timezone,
            actor=actor,
            **extra,
        )

    def record(self, event: AppointmentEvent) -> None:
        self._record_event(event)

    # Serialization

    def to_summary_dict(self) -> dict[str, Any]:
        """Convert to summary dictionary."""
        return {
            "id": self.id,
            "doctor_id": self.doctor_id,
            "patient_id": self.patient_id,
            "date": self.appointment_date.isoformat() if self.appointment_date else None,
            "time": format_hhmm(self.start_time) if self.start_time else None,
            "duration_minutes": self.duration_minutes,
            "status": self.status.value,
        }

    def to_detail_dict(self) -> dict[str, Any]:
        """Convert to detailed dictionary."""
        end_time = self.end_time
        return {
            **self.to_summary_dict(),
            "end_time": format_hhmm(end_time) if end_time else None,
            "appointment_type": self.appointment_type,
            "reason": self.reason,
            "timezone": self.timezone,
            "request_id": self.request_id,
            "booking_source": self.booking_source.value,
            "advisory_confidence": self.advisory_confidence,
            "cancellation_reason": self.cancellation_reason,
            "cancelled_by": self.cancelled_by.value if self.cancelled_by else None,
            "reschedule_count": self.reschedule_count,
        }
