"""
Unit tests for AvailabilityService (scheduling facade).

Tests:
- Availability queries (effective hours, slots, next available, summary)
- Booking, idempotent replay and concurrent bookings
- Reschedule, cancel and status transitions
- Error mapping to result codes
- Event side effects after commit
"""

import asyncio
from datetime import datetime, time, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.core.domain import PersistenceException
from app.domains.scheduling.application.dto import (
    ILLEGAL_TRANSITION,
    INVALID_CONFIG,
    NOT_CONFIGURED,
    NOT_FOUND,
    PERSISTENCE_ERROR,
    SCHEDULING_CONFLICT,
    VALIDATION_ERROR,
    BookAppointmentRequest,
    OverrideRequest,
)
from app.domains.scheduling.application.services import AvailabilityService
from app.domains.scheduling.domain.events import (
    AppointmentBooked,
    AppointmentCancelled,
    AppointmentRescheduled,
    AppointmentStatusChanged,
)
from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    ConflictKind,
    EffectiveDaySource,
    OverrideKind,
    TransitionActor,
)

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def book_request(doctor_id, monday):
    """Factory for booking requests on the Monday."""

    def _make(start: time = time(9, 0), **overrides) -> BookAppointmentRequest:
        values = {
            "doctor_id": doctor_id,
            "patient_id": 42,
            "appointment_date": monday,
            "start_time": start,
        }
        values.update(overrides)
        return BookAppointmentRequest(**values)

    return _make


@pytest.fixture
def recorded_events(event_publisher):
    """Collect every appointment event published by the service."""
    events = []

    async def record(event):
        events.append(event)

    for event_type in (AppointmentBooked, AppointmentRescheduled, AppointmentCancelled, AppointmentStatusChanged):
        event_publisher.subscribe(event_type, record)
    return events


async def approve_leave(service: AvailabilityService, doctor_id: int, day) -> None:
    result = await service.request_override(
        OverrideRequest(doctor_id=doctor_id, start_date=day, end_date=day, kind=OverrideKind.LEAVE, reason="Leave")
    )
    await service.approve_override(result.override.id, decided_by="admin")


# ============================================================================
# Availability queries
# ============================================================================


@pytest.mark.unit
@pytest.mark.use_case
@pytest.mark.asyncio
class TestAvailabilityQueries:
    """Read-only facade operations."""

    async def test_unconfigured_doctor(self, availability_service, doctor_id, monday):
        result = await availability_service.get_available_slots(doctor_id, monday)

        assert result.success is False
        assert result.error_code == NOT_CONFIGURED

    async def test_effective_hours(self, configured_service, doctor_id, monday):
        result = await configured_service.get_effective_hours(doctor_id, monday)

        assert result.success
        assert result.data.source == EffectiveDaySource.TEMPLATE

    async def test_slots_for_a_standard_day(self, configured_service, doctor_id, monday):
        result = await configured_service.get_available_slots(doctor_id, monday)

        assert result.success
        assert len(result.slots) == 14
        assert result.effective_day.max_appointments == 14

    async def test_only_available_filters_booked_slots(self, configured_service, book_request, doctor_id, monday):
        await configured_service.book(book_request(time(9, 0)))

        every = await configured_service.get_available_slots(doctor_id, monday)
        free = await configured_service.get_available_slots(doctor_id, monday, only_available=True)

        assert len(every.slots) == 14
        assert len(free.slots) == 13
        assert free.slots[0].start_time == time(9, 30)

    async def test_duration_longer_than_configured_is_rejected(self, configured_service, doctor_id, monday):
        result = await configured_service.get_available_slots(doctor_id, monday, duration=45)

        assert result.error_code == VALIDATION_ERROR

    async def test_zero_duration_is_rejected(self, configured_service, doctor_id, monday):
        result = await configured_service.get_available_slots(doctor_id, monday, duration=0)

        assert result.error_code == VALIDATION_ERROR

    async def test_weekend_has_no_slots(self, configured_service, doctor_id, saturday):
        result = await configured_service.get_available_slots(doctor_id, saturday)

        assert result.success
        assert result.slots == []
        assert result.effective_day.source == EffectiveDaySource.UNAVAILABLE

    async def test_check_conflicts_is_read_only(self, configured_service, appointment_repository, doctor_id, monday):
        result = await configured_service.check_conflicts(doctor_id, monday, time(12, 15))

        assert result.success
        assert result.has_conflicts
        assert [c.kind for c in result.conflicts] == [ConflictKind.BREAK_VIOLATION]
        assert len(appointment_repository) == 0

    async def test_next_available_skips_the_weekend(self, configured_service, doctor_id, saturday):
        result = await configured_service.find_next_available(doctor_id, datetime.combine(saturday, time(8, 0)))

        assert result.success
        assert result.slot.date == saturday + timedelta(days=2)
        assert result.slot.start_time == time(9, 0)
        assert result.days_searched == 3

    async def test_next_available_respects_the_start_time(self, configured_service, doctor_id, monday):
        result = await configured_service.find_next_available(doctor_id, datetime.combine(monday, time(11, 40)))

        assert result.slot.date == monday
        assert result.slot.start_time == time(13, 0)

    async def test_next_available_skips_leave(self, configured_service, doctor_id, monday):
        await approve_leave(configured_service, doctor_id, monday)

        result = await configured_service.find_next_available(doctor_id, monday)

        assert result.slot.date == monday + timedelta(days=1)

    async def test_next_available_returns_none_within_horizon(self, configured_service, doctor_id, saturday):
        result = await configured_service.find_next_available(doctor_id, saturday, within_days=2)

        assert result.success
        assert result.slot is None
        assert result.days_searched == 2

    async def test_next_available_unconfigured(self, availability_service, doctor_id, monday):
        result = await availability_service.find_next_available(doctor_id, monday)

        assert result.error_code == NOT_CONFIGURED

    async def test_day_summary(self, configured_service, book_request, doctor_id, monday):
        await configured_service.book(book_request(time(9, 0)))
        await configured_service.book(book_request(time(9, 30), patient_id=43, actor=TransitionActor.STAFF))

        result = await configured_service.get_day_summary(doctor_id, monday)

        assert result.total_slots == 14
        assert result.booked_slots == 2
        assert result.available_slots == 12
        assert result.utilization_rate == 14.3
        assert result.status_counts == {"pending": 1, "scheduled": 1}
        assert result.next_available.start_time == time(10, 0)
        assert result.to_dict()["date"] == monday.isoformat()


# ============================================================================
# Booking
# ============================================================================


@pytest.mark.unit
@pytest.mark.use_case
@pytest.mark.asyncio
class TestBook:
    """Tests for the validated booking path."""

    async def test_patient_booking_is_pending(self, configured_service, book_request):
        result = await configured_service.book(book_request())

        assert result.success
        assert result.appointment.id is not None
        assert result.status == AppointmentStatus.PENDING
        assert result.appointment.duration_minutes == 30
        assert result.replayed is False

    async def test_staff_booking_is_scheduled(self, configured_service, book_request):
        result = await configured_service.book(book_request(actor=TransitionActor.STAFF))

        assert result.status == AppointmentStatus.SCHEDULED

    async def test_booked_slot_is_no_longer_available(self, configured_service, book_request):
        await configured_service.book(book_request(time(10, 0)))

        result = await configured_service.book(book_request(time(10, 0), patient_id=43))

        assert result.error_code == SCHEDULING_CONFLICT
        assert [c.kind for c in result.conflicts] == [ConflictKind.OVERLAP]

    async def test_booking_past_closing_is_rejected(self, configured_service, book_request):
        result = await configured_service.book(book_request(time(16, 45)))

        assert result.success is False
        assert [c.kind for c in result.conflicts] == [ConflictKind.WORKING_HOURS_VIOLATION]

    async def test_booking_on_leave(self, configured_service, book_request, doctor_id, monday):
        await approve_leave(configured_service, doctor_id, monday)

        result = await configured_service.book(book_request())

        assert result.error_code == SCHEDULING_CONFLICT
        assert result.conflicts[0].kind == ConflictKind.LEAVE_CONFLICT

    async def test_capacity_limit(self, configured_service, book_request, doctor_id, monday):
        capacity = await configured_service.request_override(
            OverrideRequest(
                doctor_id=doctor_id,
                start_date=monday,
                end_date=monday,
                kind=OverrideKind.CAPACITY_UPDATE,
                max_appointments=1,
            )
        )
        await configured_service.approve_override(capacity.override.id)
        await configured_service.book(book_request(time(9, 0)))

        result = await configured_service.book(book_request(time(14, 0), patient_id=43))

        assert [c.kind for c in result.conflicts] == [ConflictKind.CAPACITY_EXCEEDED]

    async def test_shorter_duration_fits_before_the_break(self, configured_service, book_request):
        result = await configured_service.book(book_request(time(11, 45), duration_minutes=15))

        assert result.success
        assert result.appointment.end_time == time(12, 0)

    async def test_non_positive_duration_is_a_validation_error(self, configured_service, book_request):
        result = await configured_service.book(book_request(duration_minutes=0))

        assert result.error_code == VALIDATION_ERROR

    async def test_unconfigured_doctor(self, availability_service, book_request):
        result = await availability_service.book(book_request())

        assert result.error_code == NOT_CONFIGURED

    async def test_repeated_request_id_replays_the_booking(self, configured_service, appointment_repository, book_request):
        first = await configured_service.book(book_request(request_id="req-1"))

        second = await configured_service.book(book_request(request_id="req-1"))

        assert second.success
        assert second.replayed is True
        assert second.appointment.id == first.appointment.id
        assert len(appointment_repository) == 1

    async def test_concurrent_bookings_for_one_slot(self, configured_service, appointment_repository, book_request):
        # Act
        results = await asyncio.gather(
            *(configured_service.book(book_request(time(9, 0), patient_id=100 + i)) for i in range(5))
        )

        # Assert
        winners = [r for r in results if r.success]
        losers = [r for r in results if not r.success]
        assert len(winners) == 1
        assert all(r.error_code == SCHEDULING_CONFLICT for r in losers)
        assert len(appointment_repository) == 1

    async def test_concurrent_bookings_for_different_slots(self, configured_service, appointment_repository, book_request):
        starts = [time(9, 0), time(9, 30), time(10, 0), time(10, 30)]

        results = await asyncio.gather(*(configured_service.book(book_request(start)) for start in starts))

        assert all(r.success for r in results)
        assert len(appointment_repository) == 4

    async def test_persistence_failure_is_retryable(self, registry, template_repository, make_template, book_request):
        # Arrange
        await template_repository.save_template(make_template())
        appointments = AsyncMock()
        appointments.find_by_request_id.return_value = None
        appointments.find_by_doctor_and_date.return_value = []
        appointments.add.side_effect = PersistenceException("add_appointment", OperationalError("INSERT", {}, None))
        service = AvailabilityService(registry, appointments)

        # Act
        result = await service.book(book_request())

        # Assert
        assert result.success is False
        assert result.error_code == PERSISTENCE_ERROR
        assert result.retryable is True

    async def test_unexpected_error_is_reported_as_persistence_error(self, registry, book_request):
        registry.effective_hours = AsyncMock(side_effect=RuntimeError("boom"))
        service = AvailabilityService(registry, AsyncMock())

        result = await service.book(book_request())

        assert result.error_code == PERSISTENCE_ERROR
        assert "boom" in result.error_message


# ============================================================================
# Lifecycle after booking
# ============================================================================


@pytest.mark.unit
@pytest.mark.use_case
@pytest.mark.asyncio
class TestLifecycle:
    """Reschedule, cancel and status transitions."""

    async def test_reschedule_moves_the_appointment(self, configured_service, book_request, monday):
        booked = await configured_service.book(book_request(actor=TransitionActor.STAFF))

        result = await configured_service.reschedule(booked.appointment.id, monday + timedelta(days=1), time(14, 0))

        assert result.success
        assert result.appointment.appointment_date == monday + timedelta(days=1)
        assert result.appointment.reschedule_count == 1

    async def test_reschedule_within_own_slot(self, configured_service, book_request, monday):
        booked = await configured_service.book(book_request(time(9, 0), actor=TransitionActor.STAFF))

        result = await configured_service.reschedule(booked.appointment.id, monday, time(9, 15))

        assert result.success

    async def test_reschedule_into_conflict_leaves_storage_untouched(
        self, configured_service, book_request, monday
    ):
        booked = await configured_service.book(book_request(time(9, 0), actor=TransitionActor.STAFF))
        await configured_service.book(book_request(time(10, 0), patient_id=43))

        result = await configured_service.reschedule(booked.appointment.id, monday, time(10, 0))

        assert result.error_code == SCHEDULING_CONFLICT
        stored = await configured_service.get_appointment(booked.appointment.id)
        assert stored.appointment.start_time == time(9, 0)
        assert stored.appointment.reschedule_count == 0

    async def test_pending_appointment_cannot_be_rescheduled(self, configured_service, book_request, monday):
        booked = await configured_service.book(book_request())

        result = await configured_service.reschedule(booked.appointment.id, monday, time(14, 0))

        assert result.error_code == ILLEGAL_TRANSITION

    async def test_reschedule_unknown_appointment(self, configured_service, monday):
        result = await configured_service.reschedule(999, monday, time(9, 0))

        assert result.error_code == NOT_FOUND

    async def test_cancel_frees_the_slot_and_is_idempotent(self, configured_service, book_request):
        booked = await configured_service.book(book_request())

        first = await configured_service.cancel(booked.appointment.id, reason="Sick", cancelled_by=TransitionActor.PATIENT)
        second = await configured_service.cancel(booked.appointment.id)
        rebooked = await configured_service.book(book_request(patient_id=43))

        assert first.status == AppointmentStatus.CANCELLED
        assert first.appointment.cancellation_reason == "Sick"
        assert second.success
        assert second.status == AppointmentStatus.CANCELLED
        assert rebooked.success

    async def test_transition_chain(self, configured_service, book_request):
        booked = await configured_service.book(book_request())
        appointment_id = booked.appointment.id

        for status in (AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED):
            result = await configured_service.transition(appointment_id, status, TransitionActor.DOCTOR)
            assert result.success

        assert result.status == AppointmentStatus.COMPLETED

    async def test_illegal_transition(self, configured_service, book_request):
        booked = await configured_service.book(book_request())

        result = await configured_service.transition(booked.appointment.id, AppointmentStatus.COMPLETED)

        assert result.error_code == ILLEGAL_TRANSITION
        stored = await configured_service.get_appointment(booked.appointment.id)
        assert stored.status == AppointmentStatus.PENDING

    async def test_completed_appointment_cannot_be_cancelled(self, configured_service, book_request):
        booked = await configured_service.book(book_request(actor=TransitionActor.DOCTOR))
        appointment_id = booked.appointment.id
        await configured_service.transition(appointment_id, AppointmentStatus.IN_PROGRESS)
        await configured_service.transition(appointment_id, AppointmentStatus.COMPLETED)

        result = await configured_service.cancel(appointment_id)

        assert result.error_code == ILLEGAL_TRANSITION

    async def test_transition_to_cancelled_goes_through_cancel(self, configured_service, book_request):
        booked = await configured_service.book(book_request())

        result = await configured_service.transition(
            booked.appointment.id, AppointmentStatus.CANCELLED, TransitionActor.STAFF
        )

        assert result.appointment.cancelled_by == TransitionActor.STAFF


# ============================================================================
# Working hours administration
# ============================================================================


@pytest.mark.unit
@pytest.mark.use_case
@pytest.mark.asyncio
class TestAdministration:
    """Template and override operations through the facade."""

    async def test_invalid_template_returns_issues(self, availability_service, make_template, monday):
        result = await availability_service.update_template(make_template(max_appointments_per_day=16), today=monday)

        assert result.error_code == INVALID_CONFIG
        assert result.issues == ["Max appointments per day (16) exceeds the 14 slots the hours allow"]

    async def test_template_update_returns_diagnostics(self, configured_service, book_request, make_template, monday):
        await configured_service.book(book_request(time(16, 0)))

        result = await configured_service.update_template(
            make_template(end_time=time(15, 0), max_appointments_per_day=10),
            today=monday,
        )

        assert result.success
        assert [c.kind for c in result.diagnostics] == [ConflictKind.WORKING_HOURS_VIOLATION]

    async def test_list_templates(self, configured_service, doctor_id):
        result = await configured_service.list_templates(doctor_id)

        assert len(result.data) == 5

    async def test_override_not_found(self, configured_service):
        result = await configured_service.approve_override(404)

        assert result.error_code == NOT_FOUND

    async def test_invalid_override_request(self, configured_service, doctor_id, monday):
        result = await configured_service.request_override(
            OverrideRequest(doctor_id=doctor_id, start_date=monday, end_date=monday - timedelta(days=1))
        )

        assert result.error_code == INVALID_CONFIG

    async def test_double_approval_is_illegal(self, configured_service, doctor_id, monday):
        requested = await configured_service.request_override(
            OverrideRequest(doctor_id=doctor_id, start_date=monday, end_date=monday)
        )
        await configured_service.approve_override(requested.override.id)

        result = await configured_service.approve_override(requested.override.id)

        assert result.error_code == ILLEGAL_TRANSITION


# ============================================================================
# Side effects
# ============================================================================


@pytest.mark.unit
@pytest.mark.use_case
@pytest.mark.asyncio
class TestSideEffects:
    """Events are published after commit, in order, and never fail a booking."""

    async def test_booking_publishes_event_with_id(self, configured_service, dispatcher, recorded_events, book_request):
        result = await configured_service.book(book_request())
        await dispatcher.drain()

        [event] = recorded_events
        assert isinstance(event, AppointmentBooked)
        assert event.appointment_id == result.appointment.id

    async def test_lifecycle_events_in_order(self, configured_service, dispatcher, recorded_events, book_request, monday):
        booked = await configured_service.book(book_request(actor=TransitionActor.STAFF))
        await configured_service.reschedule(booked.appointment.id, monday, time(14, 0))
        await configured_service.cancel(booked.appointment.id)
        await dispatcher.drain()

        assert [type(e) for e in recorded_events] == [
            AppointmentBooked,
            AppointmentRescheduled,
            AppointmentCancelled,
        ]

    async def test_replay_and_rejection_publish_nothing(
        self, configured_service, dispatcher, recorded_events, book_request
    ):
        await configured_service.book(book_request(request_id="req-1"))
        await configured_service.book(book_request(request_id="req-1"))
        await configured_service.book(book_request(time(12, 0)))
        await dispatcher.drain()

        assert len(recorded_events) == 1

    async def test_failing_handler_does_not_fail_the_booking(
        self, configured_service, dispatcher, event_publisher, book_request
    ):
        event_publisher.subscribe(AppointmentBooked, AsyncMock(side_effect=RuntimeError("SMTP down")))

        result = await configured_service.book(book_request())
        await dispatcher.drain()

        assert result.success
        assert dispatcher.pending == 0
