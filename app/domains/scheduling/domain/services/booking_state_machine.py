"""
Booking State Machine

Owns the appointment lifecycle: which status changes are legal, the initial
status of a new booking, and in-place rescheduling. Every successful change
records a domain event on the aggregate.
"""

import logging
from datetime import date, time

from ..entities.appointment import Appointment
from ..events import (
    AppointmentBooked,
    AppointmentCancelled,
    AppointmentRescheduled,
    AppointmentStatusChanged,
)
from ..exceptions import IllegalTransitionException
from ..value_objects import AppointmentStatus, BookingSource, TransitionActor

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

_ENTRY_STATES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED})
_RESCHEDULABLE_STATES = frozenset({AppointmentStatus.SCHEDULED})


class BookingStateMachine:
    """
    Appointment lifecycle rules.

    Valid transitions:
    - PENDING -> SCHEDULED, CANCELLED
    - SCHEDULED -> IN_PROGRESS, CANCELLED, NO_SHOW (and reschedule in place)
    - IN_PROGRESS -> COMPLETED, CANCELLED
    - COMPLETED, CANCELLED, NO_SHOW -> (terminal)

    The rules do not depend on who triggers the change; the actor is only
    recorded on the appointment and its events.

    Example:
        ```python
        machine = BookingStateMachine()
        appointment = machine.create(
            doctor_id=7,
            patient_id=42,
            appointment_date=date(2024, 1, 15),
            start_time=time(9, 0),
            duration_minutes=30,
            actor=TransitionActor.PATIENT,
        )
        machine.confirm(appointment, TransitionActor.DOCTOR)
        machine.start(appointment)
        machine.complete(appointment)
        ```
    """

    def can_transition(self, from_status: AppointmentStatus, to_status: AppointmentStatus) -> bool:
        """Check if a status change is legal."""
        return to_status in _TRANSITIONS.get(from_status, frozenset())

    def allowed_transitions(self, status: AppointmentStatus) -> frozenset[AppointmentStatus]:
        return _TRANSITIONS.get(status, frozenset())

    def initial_status(self, actor: TransitionActor) -> AppointmentStatus:
        """Doctor and staff bookings start SCHEDULED, everything else PENDING."""
        return AppointmentStatus.SCHEDULED if actor.books_directly() else AppointmentStatus.PENDING

    def create(
        self,
        doctor_id: int,
        patient_id: int,
        appointment_date: date,
        start_time: time,
        duration_minutes: int,
        actor: TransitionActor = TransitionActor.PATIENT,
        appointment_type: str = "consultation",
        reason: str | None = None,
        timezone: str = "UTC",
        request_id: str | None = None,
        booking_source: BookingSource = BookingSource.DETERMINISTIC,
        advisory_confidence: float | None = None,
        initial_status: AppointmentStatus | None = None,
    ) -> Appointment:
        """
        Build a new, not yet persisted appointment in its entry state.

        Raises:
            IllegalTransitionException: If the requested initial status is not an entry state
        """
        status = initial_status or self.initial_status(actor)
        if status not in _ENTRY_STATES:
            raise IllegalTransitionException("new", status, operation="create")

        appointment = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            appointment_date=appointment_date,
            start_time=start_time,
            duration_minutes=duration_minutes,
            timezone=timezone,
            appointment_type=appointment_type,
            reason=reason,
            status=status,
            request_id=request_id,
            booking_source=booking_source,
            advisory_confidence=advisory_confidence,
            booked_by=actor,
        )
        if status == AppointmentStatus.SCHEDULED:
            appointment.apply_status(AppointmentStatus.SCHEDULED)
        return appointment

    def record_booking(self, appointment: Appointment, actor: TransitionActor) -> None:
        """Record the booking event once storage has assigned an ID."""
        appointment.record(
            appointment.snapshot_event(
                AppointmentBooked,
                actor,
                status=appointment.status,
                booking_source=appointment.booking_source,
            )
        )

    def transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        actor: TransitionActor = TransitionActor.SYSTEM,
    ) -> Appointment:
        """
        Move an appointment to a new status.

        Raises:
            IllegalTransitionException: If the change is not allowed; the appointment is left unchanged
        """
        if target == AppointmentStatus.CANCELLED:
            self.cancel(appointment, actor=actor)
            return appointment

        current = appointment.status
        if not self.can_transition(current, target):
            raise IllegalTransitionException(current, target)

        appointment.apply_status(target)
        appointment.record(
            appointment.snapshot_event(
                AppointmentStatusChanged,
                actor,
                previous_status=current,
                new_status=target,
            )
        )
        logger.info(f"Appointment {appointment.id}: {current.value} -> {target.value} by {actor.value}")
        return appointment

    def confirm(self, appointment: Appointment, actor: TransitionActor = TransitionActor.DOCTOR) -> Appointment:
        return self.transition(appointment, AppointmentStatus.SCHEDULED, actor)

    def start(self, appointment: Appointment, actor: TransitionActor = TransitionActor.DOCTOR) -> Appointment:
        return self.transition(appointment, AppointmentStatus.IN_PROGRESS, actor)

    def complete(self, appointment: Appointment, actor: TransitionActor = TransitionActor.DOCTOR) -> Appointment:
        return self.transition(appointment, AppointmentStatus.COMPLETED, actor)

    def mark_no_show(self, appointment: Appointment, actor: TransitionActor = TransitionActor.SYSTEM) -> Appointment:
        return self.transition(appointment, AppointmentStatus.NO_SHOW, actor)

    def cancel(
        self,
        appointment: Appointment,
        reason: str | None = None,
        actor: TransitionActor = TransitionActor.SYSTEM,
    ) -> bool:
        """
        Cancel an appointment.

        Returns:
            True if the status changed, False if it was already cancelled

        Raises:
            IllegalTransitionException: If the appointment is COMPLETED or NO_SHOW
        """
        current = appointment.status
        if current == AppointmentStatus.CANCELLED:
            return False
        if not self.can_transition(current, AppointmentStatus.CANCELLED):
            raise IllegalTransitionException(current, AppointmentStatus.CANCELLED, operation="cancel")

        appointment.apply_status(AppointmentStatus.CANCELLED)
        appointment.cancellation_reason = reason
        appointment.cancelled_by = actor
        appointment.record(
            appointment.snapshot_event(
                AppointmentCancelled,
                actor,
                previous_status=current,
                reason=reason,
            )
        )
        return True

    def ensure_reschedulable(self, appointment: Appointment) -> None:
        """
        Raises:
            IllegalTransitionException: If the appointment is not SCHEDULED
        """
        if appointment.status not in _RESCHEDULABLE_STATES:
            raise IllegalTransitionException(appointment.status, "rescheduled", operation="reschedule")

    def reschedule(
        self,
        appointment: Appointment,
        new_date: date,
        new_time: time,
        actor: TransitionActor = TransitionActor.SYSTEM,
    ) -> Appointment:
        """
        Move a SCHEDULED appointment to a new date/time, keeping its status.

        Conflict clearance for the new time is the caller's responsibility.
        """
        self.ensure_reschedulable(appointment)
        previous_date, previous_time = appointment.appointment_date, appointment.start_time
        appointment.move_to(new_date, new_time)
        appointment.record(
            appointment.snapshot_event(
                AppointmentRescheduled,
                actor,
                previous_date=previous_date,
                previous_start_time=previous_time,
            )
        )
        return appointment
