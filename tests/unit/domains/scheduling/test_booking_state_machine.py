"""
Unit tests for BookingStateMachine.

Tests the appointment lifecycle: entry states, legal and illegal
transitions, cancellation and rescheduling, and the events recorded on the
aggregate.
"""

from datetime import date, time

import pytest

from app.domains.scheduling.domain.entities import Appointment
from app.domains.scheduling.domain.events import (
    AppointmentBooked,
    AppointmentCancelled,
    AppointmentRescheduled,
    AppointmentStatusChanged,
)
from app.domains.scheduling.domain.exceptions import IllegalTransitionException
from app.domains.scheduling.domain.services import BookingStateMachine
from app.domains.scheduling.domain.value_objects import AppointmentStatus, TransitionActor

DAY = date(2030, 1, 7)

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def machine() -> BookingStateMachine:
    return BookingStateMachine()


@pytest.fixture
def make_appointment(machine):
    """Persisted-looking appointment in the given status, with no pending events."""

    def _make(status: AppointmentStatus = AppointmentStatus.SCHEDULED) -> Appointment:
        appointment = Appointment(
            id=11,
            doctor_id=7,
            patient_id=42,
            appointment_date=DAY,
            start_time=time(9, 0),
            duration_minutes=30,
            status=status,
        )
        appointment.clear_domain_events()
        return appointment

    return _make


# ============================================================================
# Creation
# ============================================================================


@pytest.mark.unit
class TestCreate:
    """Tests for new bookings."""

    def test_patient_booking_starts_pending(self, machine):
        appointment = machine.create(7, 42, DAY, time(9, 0), 30, actor=TransitionActor.PATIENT)

        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.confirmed_at is None
        assert appointment.booked_by == TransitionActor.PATIENT
        assert appointment.get_domain_events() == []

    @pytest.mark.parametrize("actor", [TransitionActor.DOCTOR, TransitionActor.STAFF])
    def test_doctor_and_staff_bookings_start_scheduled(self, machine, actor):
        appointment = machine.create(7, 42, DAY, time(9, 0), 30, actor=actor)

        assert appointment.status == AppointmentStatus.SCHEDULED
        assert appointment.confirmed_at is not None

    def test_non_entry_initial_status_is_rejected(self, machine):
        with pytest.raises(IllegalTransitionException):
            machine.create(7, 42, DAY, time(9, 0), 30, initial_status=AppointmentStatus.COMPLETED)

    def test_record_booking_snapshots_the_appointment(self, machine, make_appointment):
        appointment = make_appointment(AppointmentStatus.PENDING)

        machine.record_booking(appointment, TransitionActor.PATIENT)

        [event] = appointment.pull_domain_events()
        assert isinstance(event, AppointmentBooked)
        assert event.appointment_id == 11
        assert event.status == AppointmentStatus.PENDING
        assert event.start_time == time(9, 0)


# ============================================================================
# Transitions
# ============================================================================


@pytest.mark.unit
class TestTransitions:
    """Tests for status transitions."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED),
            (AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS),
            (AppointmentStatus.SCHEDULED, AppointmentStatus.NO_SHOW),
            (AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED),
        ],
    )
    def test_legal_transitions(self, machine, make_appointment, current, target):
        appointment = make_appointment(current)

        machine.transition(appointment, target, TransitionActor.DOCTOR)

        assert appointment.status == target
        [event] = appointment.pull_domain_events()
        assert isinstance(event, AppointmentStatusChanged)
        assert (event.previous_status, event.new_status) == (current, target)
        assert event.actor == TransitionActor.DOCTOR

    @pytest.mark.parametrize(
        "current,target",
        [
            (AppointmentStatus.PENDING, AppointmentStatus.IN_PROGRESS),
            (AppointmentStatus.PENDING, AppointmentStatus.COMPLETED),
            (AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED),
            (AppointmentStatus.IN_PROGRESS, AppointmentStatus.NO_SHOW),
            (AppointmentStatus.COMPLETED, AppointmentStatus.SCHEDULED),
            (AppointmentStatus.NO_SHOW, AppointmentStatus.SCHEDULED),
            (AppointmentStatus.CANCELLED, AppointmentStatus.SCHEDULED),
        ],
    )
    def test_illegal_transitions_leave_the_appointment_unchanged(self, machine, make_appointment, current, target):
        appointment = make_appointment(current)

        with pytest.raises(IllegalTransitionException) as exc_info:
            machine.transition(appointment, target)

        assert appointment.status == current
        assert appointment.get_domain_events() == []
        assert exc_info.value.code == "ILLEGAL_TRANSITION"
        assert exc_info.value.message == f"Illegal transition from '{current.value}' to '{target.value}'"

    def test_full_happy_path(self, machine):
        appointment = machine.create(7, 42, DAY, time(9, 0), 30)

        machine.confirm(appointment)
        machine.start(appointment)
        machine.complete(appointment)

        assert appointment.status == AppointmentStatus.COMPLETED
        assert appointment.started_at is not None
        assert appointment.completed_at is not None
        assert len(appointment.pull_domain_events()) == 3

    def test_allowed_transitions_of_terminal_state_is_empty(self, machine):
        assert machine.allowed_transitions(AppointmentStatus.COMPLETED) == frozenset()


# ============================================================================
# Cancellation
# ============================================================================


@pytest.mark.unit
class TestCancel:
    """Tests for cancellation."""

    @pytest.mark.parametrize(
        "status",
        [AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS],
    )
    def test_active_appointments_can_be_cancelled(self, machine, make_appointment, status):
        appointment = make_appointment(status)

        changed = machine.cancel(appointment, reason="Patient request", actor=TransitionActor.PATIENT)

        assert changed is True
        assert appointment.status == AppointmentStatus.CANCELLED
        assert appointment.cancellation_reason == "Patient request"
        assert appointment.cancelled_by == TransitionActor.PATIENT
        [event] = appointment.pull_domain_events()
        assert isinstance(event, AppointmentCancelled)
        assert event.previous_status == status

    def test_cancelling_twice_is_a_no_op(self, machine, make_appointment):
        appointment = make_appointment(AppointmentStatus.CANCELLED)

        assert machine.cancel(appointment) is False
        assert appointment.get_domain_events() == []

    @pytest.mark.parametrize("status", [AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW])
    def test_finished_appointments_cannot_be_cancelled(self, machine, make_appointment, status):
        with pytest.raises(IllegalTransitionException):
            machine.cancel(make_appointment(status))

    def test_transition_to_cancelled_delegates_to_cancel(self, machine, make_appointment):
        appointment = make_appointment()

        machine.transition(appointment, AppointmentStatus.CANCELLED, TransitionActor.STAFF)

        assert appointment.cancelled_by == TransitionActor.STAFF


# ============================================================================
# Rescheduling
# ============================================================================


@pytest.mark.unit
class TestReschedule:
    """Tests for in-place rescheduling."""

    def test_moves_scheduled_appointment(self, machine, make_appointment):
        appointment = make_appointment()
        new_day = date(2030, 1, 8)

        machine.reschedule(appointment, new_day, time(14, 0), TransitionActor.PATIENT)

        assert appointment.appointment_date == new_day
        assert appointment.start_time == time(14, 0)
        assert appointment.status == AppointmentStatus.SCHEDULED
        assert appointment.reschedule_count == 1
        [event] = appointment.pull_domain_events()
        assert isinstance(event, AppointmentRescheduled)
        assert event.previous_date == DAY
        assert event.previous_start_time == time(9, 0)
        assert event.appointment_date == new_day

    @pytest.mark.parametrize(
        "status",
        [AppointmentStatus.PENDING, AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED],
    )
    def test_only_scheduled_appointments_move(self, machine, make_appointment, status):
        appointment = make_appointment(status)

        with pytest.raises(IllegalTransitionException):
            machine.reschedule(appointment, date(2030, 1, 8), time(14, 0))

        assert appointment.appointment_date == DAY
