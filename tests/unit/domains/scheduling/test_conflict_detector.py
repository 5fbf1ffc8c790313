"""
Unit tests for ConflictDetector.

Tests:
- Each conflict kind in isolation
- Multiple conflicts on one proposal, in rank order
- Reschedule exclusion
- Template impact audit
"""

from datetime import date, time

import pytest

from app.domains.scheduling.domain.entities import Appointment
from app.domains.scheduling.domain.exceptions import InvalidConfigException
from app.domains.scheduling.domain.services import ConflictDetector
from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    ConflictKind,
    EffectiveDay,
    EffectiveDaySource,
)

DAY = date(2030, 1, 7)

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def detector() -> ConflictDetector:
    return ConflictDetector()


@pytest.fixture
def monday_hours() -> EffectiveDay:
    return EffectiveDay(
        doctor_id=7,
        day=DAY,
        source=EffectiveDaySource.TEMPLATE,
        is_working=True,
        start_time=time(9, 0),
        end_time=time(17, 0),
        break_start=time(12, 0),
        break_end=time(13, 0),
        appointment_duration=30,
        max_appointments=14,
    )


def appointment(appointment_id: int, start: time, duration: int = 30, **overrides) -> Appointment:
    values = {
        "id": appointment_id,
        "doctor_id": 7,
        "patient_id": 42,
        "appointment_date": DAY,
        "start_time": start,
        "duration_minutes": duration,
        "status": AppointmentStatus.SCHEDULED,
    }
    values.update(overrides)
    return Appointment(**values)


def kinds(conflicts) -> list[ConflictKind]:
    return [conflict.kind for conflict in conflicts]


# ============================================================================
# Single checks
# ============================================================================


@pytest.mark.unit
class TestSingleChecks:
    """Each check in isolation."""

    def test_clear_proposal_has_no_conflicts(self, detector, monday_hours):
        assert detector.check(monday_hours, time(9, 0), 30, []) == []

    def test_exact_fit_at_day_end(self, detector, monday_hours):
        assert detector.check(monday_hours, time(16, 30), 30, []) == []

    def test_starts_before_opening(self, detector, monday_hours):
        conflicts = detector.check(monday_hours, time(8, 45), 30, [])

        assert kinds(conflicts) == [ConflictKind.WORKING_HOURS_VIOLATION]
        assert conflicts[0].details["working_hours"] == "09:00 - 17:00"

    def test_runs_past_closing(self, detector, monday_hours):
        assert kinds(detector.check(monday_hours, time(16, 45), 30, [])) == [ConflictKind.WORKING_HOURS_VIOLATION]

    def test_runs_past_midnight(self, detector, monday_hours):
        conflicts = detector.check(monday_hours, time(23, 45), 30, [])

        assert kinds(conflicts) == [ConflictKind.WORKING_HOURS_VIOLATION]
        assert "past midnight" in conflicts[0].message

    def test_non_working_day(self, detector):
        day_off = EffectiveDay.unavailable(7, DAY, reason="Non-working day")

        conflicts = detector.check(day_off, time(10, 0), 30, [])

        assert kinds(conflicts) == [ConflictKind.WORKING_HOURS_VIOLATION]
        assert conflicts[0].details["source"] == "unavailable"

    def test_leave_day(self, detector):
        leave = EffectiveDay.on_leave(7, DAY, override_id=5, reason="Conference")

        conflicts = detector.check(leave, time(10, 0), 30, [])

        assert kinds(conflicts) == [ConflictKind.LEAVE_CONFLICT, ConflictKind.WORKING_HOURS_VIOLATION]
        assert conflicts[0].details == {"override_id": 5}
        assert "Conference" in conflicts[0].message

    def test_overlap_with_active_appointment(self, detector, monday_hours):
        conflicts = detector.check(monday_hours, time(9, 15), 30, [appointment(3, time(9, 0))])

        assert kinds(conflicts) == [ConflictKind.OVERLAP]
        assert conflicts[0].details == {"appointment_id": 3}

    def test_adjacent_appointment_is_not_an_overlap(self, detector, monday_hours):
        assert detector.check(monday_hours, time(9, 30), 30, [appointment(3, time(9, 0))]) == []

    @pytest.mark.parametrize(
        "status",
        [AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW],
    )
    def test_terminal_appointments_free_their_slot(self, detector, monday_hours, status):
        assert detector.check(monday_hours, time(9, 0), 30, [appointment(3, time(9, 0), status=status)]) == []

    def test_other_doctor_or_date_is_ignored(self, detector, monday_hours):
        others = [
            appointment(3, time(9, 0), doctor_id=8),
            appointment(4, time(9, 0), appointment_date=date(2030, 1, 8)),
        ]
        assert detector.check(monday_hours, time(9, 0), 30, others) == []

    def test_capacity_reached(self, detector, monday_hours):
        limited = EffectiveDay(**{**monday_hours.__dict__, "max_appointments": 1})

        conflicts = detector.check(limited, time(14, 0), 30, [appointment(3, time(9, 0))])

        assert kinds(conflicts) == [ConflictKind.CAPACITY_EXCEEDED]
        assert conflicts[0].details == {"max_appointments": 1, "booked": 1}

    def test_break_overlap(self, detector, monday_hours):
        conflicts = detector.check(monday_hours, time(11, 45), 30, [])

        assert kinds(conflicts) == [ConflictKind.BREAK_VIOLATION]
        assert conflicts[0].details["break_window"] == "12:00 - 13:00"

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_is_invalid(self, detector, monday_hours, duration):
        with pytest.raises(InvalidConfigException):
            detector.check(monday_hours, time(9, 0), duration, [])


# ============================================================================
# Combined checks
# ============================================================================


@pytest.mark.unit
class TestCombinedChecks:
    """Several conflicts reported together."""

    def test_every_conflict_is_reported_in_rank_order(self, detector, monday_hours):
        existing = [appointment(3, time(11, 30)), appointment(4, time(12, 30), status=AppointmentStatus.PENDING)]

        conflicts = detector.check(monday_hours, time(11, 45), 60, existing)

        assert kinds(conflicts) == [ConflictKind.OVERLAP, ConflictKind.OVERLAP, ConflictKind.BREAK_VIOLATION]
        assert [c.details.get("appointment_id") for c in conflicts[:2]] == [3, 4]

    def test_exclude_own_appointment_when_rescheduling(self, detector, monday_hours):
        existing = [appointment(3, time(9, 0))]

        conflicts = detector.check(monday_hours, time(9, 15), 30, existing, exclude_appointment_id=3)

        assert conflicts == []

    def test_has_conflicts(self, detector, monday_hours):
        assert not detector.has_conflicts([])
        assert detector.has_conflicts(detector.check(monday_hours, time(12, 0), 30, []))


# ============================================================================
# Audit
# ============================================================================


@pytest.mark.unit
class TestAuditDay:
    """Tests for audit_day used by template impact diagnostics."""

    def test_reports_each_affected_appointment(self, detector, monday_hours):
        shorter = EffectiveDay(**{**monday_hours.__dict__, "end_time": time(15, 0)})
        existing = [
            appointment(1, time(9, 0)),
            appointment(2, time(15, 30)),
            appointment(3, time(16, 0), status=AppointmentStatus.CANCELLED),
        ]

        conflicts = detector.audit_day(shorter, existing)

        assert kinds(conflicts) == [ConflictKind.WORKING_HOURS_VIOLATION]
        assert conflicts[0].details["appointment_id"] == 2

    def test_overlaps_between_existing_bookings_are_not_reported(self, detector, monday_hours):
        existing = [appointment(1, time(9, 0)), appointment(2, time(9, 0))]

        assert detector.audit_day(monday_hours, existing) == []
