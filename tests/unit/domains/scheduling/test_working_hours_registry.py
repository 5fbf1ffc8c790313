"""
Unit tests for the working-hours registry and template validation.

Tests:
- ScheduleTemplateValidator policy bounds
- WorkingHoursRegistry template upserts and impact diagnostics
- Override request and approval workflow
"""

from datetime import time, timedelta

import pytest

from app.core.domain import EntityNotFoundException
from app.domains.scheduling.application.dto import OverrideRequest
from app.domains.scheduling.domain.entities import Appointment
from app.domains.scheduling.domain.exceptions import (
    IllegalTransitionException,
    InvalidConfigException,
    NotConfiguredException,
)
from app.domains.scheduling.domain.services import ScheduleTemplateValidator
from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    ConflictKind,
    DayOfWeek,
    EffectiveDaySource,
    OverrideKind,
    OverrideStatus,
    SchedulingPolicy,
)

# ============================================================================
# ScheduleTemplateValidator
# ============================================================================


@pytest.mark.unit
class TestScheduleTemplateValidator:
    """Tests for policy checks on templates."""

    @pytest.fixture
    def validator(self) -> ScheduleTemplateValidator:
        return ScheduleTemplateValidator(SchedulingPolicy())

    def test_standard_template_is_valid(self, validator, make_template):
        assert validator.validate(make_template()) == []

    def test_capacity_is_bookable_minutes_over_slot_pitch(self, validator, make_template):
        assert validator.capacity(make_template()) == 14
        assert validator.capacity(make_template(buffer_time=10)) == 10

    def test_max_appointments_above_capacity(self, validator, make_template):
        issues = validator.validate(make_template(max_appointments_per_day=16))

        assert issues == ["Max appointments per day (16) exceeds the 14 slots the hours allow"]

    @pytest.mark.parametrize(
        "overrides,expected",
        [
            ({"appointment_duration": 10}, "Appointment duration must be between 15 and 480 minutes"),
            ({"buffer_time": 90, "max_appointments_per_day": 2}, "Buffer time must be between 0 and 60 minutes"),
            (
                {"start_time": time(5, 0), "max_appointments_per_day": 10},
                "Working hours must fall within business hours 06:00 - 22:00",
            ),
            (
                {"break_start": time(12, 0), "break_end": time(12, 5)},
                "Break must last between 15 and 120 minutes",
            ),
            (
                {"start_time": time(9, 0), "end_time": time(9, 30), "break_start": None, "break_end": None,
                 "max_appointments_per_day": 1},
                "Working hours must span between 1 and 16 hours",
            ),
            ({"max_appointments_per_day": 0}, "Max appointments per day must be between 1 and 32"),
        ],
    )
    def test_policy_violations(self, validator, make_template, overrides, expected):
        assert expected in validator.validate(make_template(**overrides))

    def test_non_working_template_skips_policy_checks(self, validator, make_template):
        template = make_template(is_working=False, start_time=None, end_time=None, break_start=None, break_end=None)
        assert validator.validate(template) == []

    def test_validate_or_raise_lists_every_issue(self, validator, make_template):
        template = make_template(appointment_duration=10, max_appointments_per_day=0)

        with pytest.raises(InvalidConfigException) as exc_info:
            validator.validate_or_raise(template)

        assert len(exc_info.value.issues) == 2
        assert exc_info.value.details["day_of_week"] == "monday"


# ============================================================================
# WorkingHoursRegistry - templates
# ============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
class TestRegistryTemplates:
    """Tests for template storage and effective hours."""

    async def test_unconfigured_doctor(self, registry, doctor_id, monday):
        assert await registry.is_configured(doctor_id) is False
        with pytest.raises(NotConfiguredException):
            await registry.effective_hours(doctor_id, monday)

    async def test_upsert_supersedes_active_template(self, registry, make_template, doctor_id, monday):
        # Arrange
        await registry.upsert_template(make_template(), today=monday)

        # Act
        saved, diagnostics = await registry.upsert_template(make_template(start_time=time(10, 0),
                                                                          max_appointments_per_day=12), today=monday)

        # Assert
        assert diagnostics == []
        active = await registry.list_templates(doctor_id)
        every = await registry.list_templates(doctor_id, include_inactive=True)
        assert [t.id for t in active] == [saved.id]
        assert len(every) == 2
        day = await registry.effective_hours(doctor_id, monday)
        assert day.start_time == time(10, 0)

    async def test_invalid_template_is_not_stored(self, registry, make_template, doctor_id, monday):
        with pytest.raises(InvalidConfigException):
            await registry.upsert_template(make_template(max_appointments_per_day=16), today=monday)

        assert await registry.is_configured(doctor_id) is False

    async def test_template_change_reports_affected_bookings(
        self, registry, appointment_repository, make_template, doctor_id, monday
    ):
        # Arrange
        await registry.upsert_template(make_template(), today=monday)
        late = await appointment_repository.add(
            Appointment(
                doctor_id=doctor_id,
                patient_id=42,
                appointment_date=monday + timedelta(days=7),
                start_time=time(16, 0),
                status=AppointmentStatus.SCHEDULED,
            )
        )

        # Act
        _, diagnostics = await registry.upsert_template(
            make_template(end_time=time(15, 0), max_appointments_per_day=10),
            today=monday,
        )

        # Assert
        assert [c.kind for c in diagnostics] == [ConflictKind.WORKING_HOURS_VIOLATION]
        assert diagnostics[0].details["appointment_id"] == late.id

    async def test_bookings_outside_the_impact_window_are_ignored(
        self, registry, appointment_repository, make_template, doctor_id, monday
    ):
        await registry.upsert_template(make_template(), today=monday)
        await appointment_repository.add(
            Appointment(
                doctor_id=doctor_id,
                patient_id=42,
                appointment_date=monday + timedelta(days=70),
                start_time=time(16, 0),
                status=AppointmentStatus.SCHEDULED,
            )
        )

        _, diagnostics = await registry.upsert_template(
            make_template(end_time=time(15, 0), max_appointments_per_day=10),
            today=monday,
        )

        assert diagnostics == []


# ============================================================================
# WorkingHoursRegistry - overrides
# ============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
class TestRegistryOverrides:
    """Tests for the override workflow."""

    @pytest.fixture
    def leave_request(self, doctor_id, monday) -> OverrideRequest:
        return OverrideRequest(
            doctor_id=doctor_id,
            start_date=monday,
            end_date=monday + timedelta(days=4),
            kind=OverrideKind.LEAVE,
            reason="Conference",
        )

    async def test_requested_override_starts_pending(self, registry, make_template, leave_request, doctor_id, monday):
        await registry.upsert_template(make_template(), today=monday)

        override = await registry.request_override(leave_request)

        assert override.id is not None
        assert override.status == OverrideStatus.PENDING
        day = await registry.effective_hours(doctor_id, monday)
        assert day.source == EffectiveDaySource.TEMPLATE

    async def test_approved_leave_blocks_the_day(self, registry, make_template, leave_request, doctor_id, monday):
        await registry.upsert_template(make_template(), today=monday)
        override = await registry.request_override(leave_request)

        approved = await registry.approve_override(override.id, decided_by="admin")

        assert approved.status == OverrideStatus.APPROVED
        assert approved.decided_by == "admin"
        day = await registry.effective_hours(doctor_id, monday)
        assert day.source == EffectiveDaySource.LEAVE
        assert day.reason == "Conference"

    async def test_cancelled_leave_restores_the_template(
        self, registry, make_template, leave_request, doctor_id, monday
    ):
        await registry.upsert_template(make_template(), today=monday)
        override = await registry.request_override(leave_request)
        await registry.approve_override(override.id)

        await registry.cancel_override(override.id, decided_by="doctor")

        day = await registry.effective_hours(doctor_id, monday)
        assert day.source == EffectiveDaySource.TEMPLATE

    async def test_reject_keeps_note(self, registry, leave_request):
        override = await registry.request_override(leave_request)

        rejected = await registry.reject_override(override.id, decided_by="admin", reason="No cover")

        assert rejected.status == OverrideStatus.REJECTED
        assert rejected.decision_note == "No cover"

    async def test_rejected_override_cannot_be_approved(self, registry, leave_request):
        override = await registry.request_override(leave_request)
        await registry.reject_override(override.id)

        with pytest.raises(IllegalTransitionException):
            await registry.approve_override(override.id)

    async def test_unknown_override(self, registry):
        with pytest.raises(EntityNotFoundException):
            await registry.approve_override(999)

    async def test_invalid_override_request(self, registry, doctor_id, monday):
        request = OverrideRequest(doctor_id=doctor_id, start_date=monday, end_date=monday - timedelta(days=1))

        with pytest.raises(InvalidConfigException):
            await registry.request_override(request)

    async def test_list_overrides_by_range(self, registry, leave_request, doctor_id, monday):
        await registry.request_override(leave_request)

        assert len(await registry.list_overrides(doctor_id)) == 1
        assert len(await registry.list_overrides(doctor_id, start_date=monday + timedelta(days=4))) == 1
        assert await registry.list_overrides(doctor_id, start_date=monday + timedelta(days=5)) == []
        assert await registry.list_overrides(doctor_id, end_date=monday - timedelta(days=1)) == []

    async def test_capacity_update_applies_custom_hours(self, registry, make_template, doctor_id, monday):
        await registry.upsert_template(make_template(), today=monday)
        override = await registry.request_override(
            OverrideRequest(
                doctor_id=doctor_id,
                start_date=monday,
                end_date=monday,
                kind=OverrideKind.CAPACITY_UPDATE,
                start_time=time(9, 0),
                end_time=time(12, 0),
                max_appointments=3,
            )
        )
        await registry.approve_override(override.id)

        day = await registry.effective_hours(doctor_id, monday)

        assert day.source == EffectiveDaySource.OVERRIDE
        assert day.end_time == time(12, 0)
        assert day.break_start is None
        assert day.max_appointments == 3

    async def test_other_weekdays_are_unaffected(self, registry, make_template, doctor_id, monday):
        await registry.upsert_template(make_template(day_of_week=DayOfWeek.TUESDAY), today=monday)

        day = await registry.effective_hours(doctor_id, monday)

        assert day.source == EffectiveDaySource.UNAVAILABLE
