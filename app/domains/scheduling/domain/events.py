"""
Scheduling Domain Events

Recorded on the Appointment aggregate by the booking state machine and
published after the storage write succeeds.
"""

from dataclasses import dataclass
from datetime import date, time

from app.core.domain import DomainEvent

from .value_objects import AppointmentStatus, BookingSource, TransitionActor


@dataclass(frozen=True)
class AppointmentEvent(DomainEvent):
    """Common appointment snapshot carried by every scheduling event."""

    appointment_id: int | None = None
    doctor_id: int = 0
    patient_id: int = 0
    appointment_date: date | None = None
    start_time: time | None = None
    duration_minutes: int = 0
    timezone: str = "UTC"
    actor: TransitionActor = TransitionActor.SYSTEM


@dataclass(frozen=True)
class AppointmentBooked(AppointmentEvent):
    status: AppointmentStatus = AppointmentStatus.PENDING
    booking_source: BookingSource = BookingSource.DETERMINISTIC


@dataclass(frozen=True)
class AppointmentStatusChanged(AppointmentEvent):
    previous_status: AppointmentStatus = AppointmentStatus.PENDING
    new_status: AppointmentStatus = AppointmentStatus.PENDING


@dataclass(frozen=True)
class AppointmentRescheduled(AppointmentEvent):
    previous_date: date | None = None
    previous_start_time: time | None = None


@dataclass(frozen=True)
class AppointmentCancelled(AppointmentEvent):
    previous_status: AppointmentStatus = AppointmentStatus.PENDING
    reason: str | None = None
