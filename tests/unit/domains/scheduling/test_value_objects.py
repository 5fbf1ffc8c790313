"""
Unit tests for Scheduling Value Objects.

Tests:
- HH:MM parsing and formatting
- TimeWindow arithmetic
- Conflict kinds, severities and ordering
- Status enums
- SchedulingPolicy validation
"""

from datetime import date, time

import pytest

from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    Conflict,
    ConflictKind,
    ConflictSeverity,
    DayOfWeek,
    EffectiveDay,
    EffectiveDaySource,
    OverrideKind,
    OverrideStatus,
    SchedulingPolicy,
    TimeWindow,
    TransitionActor,
    format_hhmm,
    from_minutes,
    intervals_overlap,
    parse_hhmm,
    sort_conflicts,
    to_minutes,
)

# ============================================================================
# Time helpers
# ============================================================================


@pytest.mark.unit
class TestHHMM:
    """Tests for HH:MM parsing and formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("09:00", time(9, 0)),
            ("00:00", time(0, 0)),
            ("23:59", time(23, 59)),
            (" 12:30 ", time(12, 30)),
        ],
    )
    def test_parses_valid_times(self, value, expected):
        assert parse_hhmm(value) == expected

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "12-30", "noon", "", "12:30:00"])
    def test_rejects_invalid_times(self, value):
        with pytest.raises(ValueError, match="expected HH:MM"):
            parse_hhmm(value)

    def test_format_pads_hours(self):
        assert format_hhmm(time(7, 5)) == "07:05"

    def test_minute_conversion(self):
        assert to_minutes(time(13, 45)) == 825
        assert from_minutes(825) == time(13, 45)

    def test_from_minutes_rejects_next_day(self):
        with pytest.raises(ValueError):
            from_minutes(24 * 60)

    def test_half_open_intervals_do_not_overlap_when_adjacent(self):
        assert intervals_overlap(540, 570, 570, 600) is False
        assert intervals_overlap(540, 571, 570, 600) is True


@pytest.mark.unit
class TestTimeWindow:
    """Tests for TimeWindow."""

    def test_start_must_precede_end(self):
        with pytest.raises(ValueError, match="Start time must be before end time"):
            TimeWindow(start=time(10, 0), end=time(9, 0))

    def test_starting_at(self):
        window = TimeWindow.starting_at(time(11, 30), 45)
        assert window.end == time(12, 15)
        assert window.minutes == 45

    def test_starting_at_cannot_cross_midnight(self):
        with pytest.raises(ValueError):
            TimeWindow.starting_at(time(23, 45), 30)

    def test_contains_and_overlaps(self):
        morning = TimeWindow(start=time(9, 0), end=time(12, 0))
        inside = TimeWindow.starting_at(time(11, 30), 30)
        straddling = TimeWindow.starting_at(time(11, 45), 30)
        after = TimeWindow.starting_at(time(12, 0), 30)

        assert morning.contains(inside)
        assert not morning.contains(straddling)
        assert morning.overlaps_with(straddling)
        assert not morning.overlaps_with(after)

    def test_str(self):
        assert str(TimeWindow(start=time(9, 0), end=time(17, 0))) == "09:00 - 17:00"


# ============================================================================
# Conflicts
# ============================================================================


@pytest.mark.unit
class TestConflict:
    """Tests for Conflict and ConflictKind."""

    def test_severities(self):
        assert ConflictKind.LEAVE_CONFLICT.severity == ConflictSeverity.CRITICAL
        assert ConflictKind.WORKING_HOURS_VIOLATION.severity == ConflictSeverity.HIGH
        assert ConflictKind.OVERLAP.severity == ConflictSeverity.HIGH
        assert ConflictKind.CAPACITY_EXCEEDED.severity == ConflictSeverity.HIGH
        assert ConflictKind.BREAK_VIOLATION.severity == ConflictSeverity.MEDIUM

    def test_sort_orders_by_kind_rank_and_keeps_detection_order(self):
        conflicts = [
            Conflict.of(ConflictKind.BREAK_VIOLATION, "break"),
            Conflict.of(ConflictKind.OVERLAP, "first overlap", appointment_id=1),
            Conflict.of(ConflictKind.LEAVE_CONFLICT, "leave"),
            Conflict.of(ConflictKind.OVERLAP, "second overlap", appointment_id=2),
        ]

        ordered = sort_conflicts(conflicts)

        assert [c.message for c in ordered] == ["leave", "first overlap", "second overlap", "break"]

    def test_to_dict(self):
        conflict = Conflict.of(ConflictKind.OVERLAP, "Doctor already has an appointment at 09:00", appointment_id=3)

        assert conflict.to_dict() == {
            "kind": "overlap",
            "severity": "high",
            "message": "Doctor already has an appointment at 09:00",
            "details": {"appointment_id": 3},
        }


# ============================================================================
# Status enums
# ============================================================================


@pytest.mark.unit
class TestStatuses:
    """Tests for lifecycle and classification enums."""

    def test_active_and_terminal_statuses(self):
        active = {s for s in AppointmentStatus if s.is_active()}
        terminal = {s for s in AppointmentStatus if s.is_terminal()}

        assert active == {AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS}
        assert terminal == {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}

    def test_only_doctor_and_staff_book_directly(self):
        assert TransitionActor.DOCTOR.books_directly()
        assert TransitionActor.STAFF.books_directly()
        assert not TransitionActor.PATIENT.books_directly()
        assert not TransitionActor.SYSTEM.books_directly()

    def test_day_of_week_from_date(self):
        assert DayOfWeek.from_date(date(2030, 1, 7)) == DayOfWeek.MONDAY
        assert DayOfWeek.from_date(date(2030, 1, 13)) == DayOfWeek.SUNDAY
        assert DayOfWeek.FRIDAY.weekday == 4

    def test_capacity_update_is_the_only_available_override(self):
        assert not OverrideKind.CAPACITY_UPDATE.makes_unavailable()
        assert OverrideKind.LEAVE.makes_unavailable()
        assert OverrideKind.EMERGENCY_UNAVAILABLE.makes_unavailable()

    def test_override_workflow_transitions(self):
        assert OverrideStatus.PENDING.can_transition_to(OverrideStatus.APPROVED)
        assert OverrideStatus.APPROVED.can_transition_to(OverrideStatus.CANCELLED)
        assert not OverrideStatus.APPROVED.can_transition_to(OverrideStatus.REJECTED)
        assert not OverrideStatus.REJECTED.can_transition_to(OverrideStatus.APPROVED)

    def test_from_string_is_case_insensitive(self):
        assert AppointmentStatus.from_string("NO_SHOW") == AppointmentStatus.NO_SHOW


# ============================================================================
# EffectiveDay and SchedulingPolicy
# ============================================================================


@pytest.mark.unit
class TestEffectiveDay:
    """Tests for EffectiveDay."""

    def test_working_day_requires_hours(self):
        with pytest.raises(ValueError):
            EffectiveDay(doctor_id=1, day=date(2030, 1, 7), source=EffectiveDaySource.TEMPLATE, is_working=True)

    def test_unavailable_has_no_windows(self):
        day = EffectiveDay.unavailable(1, date(2030, 1, 12), reason="Non-working day")

        assert day.source == EffectiveDaySource.UNAVAILABLE
        assert day.working_window is None
        assert day.to_dict()["reason"] == "Non-working day"

    def test_on_leave(self):
        day = EffectiveDay.on_leave(1, date(2030, 1, 7), override_id=4, reason="Conference")

        assert day.is_leave
        assert not day.is_working
        assert day.override_id == 4


@pytest.mark.unit
class TestSchedulingPolicy:
    """Tests for SchedulingPolicy validation."""

    def test_defaults_are_valid(self):
        policy = SchedulingPolicy()
        assert policy.reminder_offsets_hours == (24, 2)
        assert policy.advisory_enabled is False

    @pytest.mark.parametrize(
        "overrides",
        [
            {"advisory_confidence_threshold": 1.5},
            {"min_appointment_duration": 0},
            {"business_hours_start": time(22, 0), "business_hours_end": time(6, 0)},
            {"reminder_offsets_hours": (24, 0)},
            {"next_available_search_days": 0},
        ],
    )
    def test_rejects_inconsistent_rules(self, overrides):
        with pytest.raises(ValueError):
            SchedulingPolicy(**overrides)
