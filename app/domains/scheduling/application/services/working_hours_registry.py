"""
Working Hours Registry

Repository-backed store and query facade for doctor working hours: weekly
templates, dated overrides and the resolved effective hours per date.
"""

import logging
from datetime import date, timedelta

from app.core.domain import EntityNotFoundException
from app.domains.scheduling.application.dto import OverrideRequest
from app.domains.scheduling.application.ports import (
    IAppointmentRepository,
    IScheduleOverrideRepository,
    IWorkingHoursRepository,
)
from app.domains.scheduling.domain.entities import ScheduleOverride, WorkingDayTemplate
from app.domains.scheduling.domain.exceptions import NotConfiguredException
from app.domains.scheduling.domain.services import (
    ConflictDetector,
    EffectiveHoursResolver,
    ScheduleTemplateValidator,
)
from app.domains.scheduling.domain.value_objects import (
    Conflict,
    EffectiveDay,
    OverrideStatus,
    SchedulingPolicy,
)

logger = logging.getLogger(__name__)


class WorkingHoursRegistry:
    """
    Working-hours registry.

    Reads are pure functions of the stored templates and overrides; the
    precedence rules live in ``EffectiveHoursResolver``.

    Example:
        ```python
        registry = WorkingHoursRegistry(templates_repo, overrides_repo)
        day = await registry.effective_hours(doctor_id=7, on_date=date(2024, 1, 15))
        if day.is_working:
            print(day.working_window)
        ```
    """

    def __init__(
        self,
        template_repository: IWorkingHoursRepository,
        override_repository: IScheduleOverrideRepository,
        policy: SchedulingPolicy | None = None,
        appointment_repository: IAppointmentRepository | None = None,
    ):
        """
        Initialize registry with dependencies.

        Args:
            template_repository: Weekly template storage
            override_repository: Dated override storage
            policy: Scheduling rules (defaults apply when omitted)
            appointment_repository: Used for template impact diagnostics
        """
        self.templates = template_repository
        self.overrides = override_repository
        self.appointments = appointment_repository
        self.policy = policy or SchedulingPolicy()
        self.resolver = EffectiveHoursResolver(self.policy)
        self.validator = ScheduleTemplateValidator(self.policy)
        self.detector = ConflictDetector()

    # =========================================================================
    # Queries
    # =========================================================================

    async def effective_hours(self, doctor_id: int, on_date: date) -> EffectiveDay:
        """
        Resolve the effective working hours of a doctor on a date.

        Raises:
            NotConfiguredException: If the doctor has no template at all
            InvalidConfigException: If an approved override has inconsistent hours
        """
        templates = await self.templates.find_templates(doctor_id)
        if not templates:
            raise NotConfiguredException(doctor_id)
        overrides = await self.overrides.find_covering(doctor_id, on_date)
        return self.resolver.resolve(doctor_id, on_date, templates, overrides)

    async def is_configured(self, doctor_id: int) -> bool:
        return await self.templates.has_any_template(doctor_id)

    async def list_templates(self, doctor_id: int, include_inactive: bool = False) -> list[WorkingDayTemplate]:
        return await self.templates.find_templates(doctor_id, include_inactive=include_inactive)

    async def list_overrides(
        self,
        doctor_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ScheduleOverride]:
        return await self.overrides.find_by_doctor(doctor_id, start_date, end_date)

    # =========================================================================
    # Templates
    # =========================================================================

    async def upsert_template(
        self,
        template: WorkingDayTemplate,
        today: date | None = None,
    ) -> tuple[WorkingDayTemplate, list[Conflict]]:
        """
        Validate and store a weekly template, superseding the active row.

        Args:
            template: New template row
            today: First date of the impact window (defaults to today)

        Returns:
            Stored template and the conflicts existing upcoming appointments
            would have under the new hours

        Raises:
            InvalidConfigException: If the template breaks a policy rule
        """
        self.validator.validate_or_raise(template)
        saved = await self.templates.save_template(template)
        logger.info(
            f"Working-hours template saved for doctor {saved.doctor_id} "
            f"on {saved.day_of_week.value} (template {saved.id})"
        )
        diagnostics = await self.template_impact(saved, today or date.today())
        if diagnostics:
            logger.warning(
                f"Template {saved.id} leaves {len(diagnostics)} conflicts on upcoming appointments "
                f"of doctor {saved.doctor_id}"
            )
        return saved, diagnostics

    async def template_impact(self, template: WorkingDayTemplate, start: date) -> list[Conflict]:
        """Audit upcoming appointments on the template's weekday against current effective hours."""
        if self.appointments is None:
            return []
        end = start + timedelta(days=self.policy.template_impact_days)
        booked = await self.appointments.find_by_doctor_in_range(template.doctor_id, start, end)
        days = sorted(
            {
                appointment.appointment_date
                for appointment in booked
                if appointment.is_active() and appointment.appointment_date is not None
            }
        )

        diagnostics: list[Conflict] = []
        for day in days:
            if not template.applies_on(day):
                continue
            effective_day = await self.effective_hours(template.doctor_id, day)
            diagnostics.extend(self.detector.audit_day(effective_day, booked))
        return diagnostics

    # =========================================================================
    # Overrides
    # =========================================================================

    async def request_override(self, request: OverrideRequest) -> ScheduleOverride:
        """
        Create a PENDING override.

        Raises:
            InvalidConfigException: If the dates or custom hours are inconsistent
        """
        override = ScheduleOverride(
            doctor_id=request.doctor_id,
            start_date=request.start_date,
            end_date=request.end_date,
            kind=request.kind,
            status=OverrideStatus.PENDING,
            reason=request.reason,
            start_time=request.start_time,
            end_time=request.end_time,
            break_start=request.break_start,
            break_end=request.break_end,
            appointment_duration=request.appointment_duration,
            buffer_time=request.buffer_time,
            max_appointments=request.max_appointments,
        )
        saved = await self.overrides.save(override)
        logger.info(
            f"Override {saved.id} requested for doctor {saved.doctor_id}: "
            f"{saved.kind.value} {saved.start_date} - {saved.end_date}"
        )
        return saved

    async def approve_override(self, override_id: int, decided_by: str | None = None) -> ScheduleOverride:
        override = await self._get_override(override_id)
        override.approve(decided_by)
        return await self._save_decision(override)

    async def reject_override(
        self,
        override_id: int,
        decided_by: str | None = None,
        reason: str | None = None,
    ) -> ScheduleOverride:
        override = await self._get_override(override_id)
        override.reject(decided_by, reason)
        return await self._save_decision(override)

    async def cancel_override(self, override_id: int, decided_by: str | None = None) -> ScheduleOverride:
        override = await self._get_override(override_id)
        override.cancel(decided_by)
        return await self._save_decision(override)

    async def _get_override(self, override_id: int) -> ScheduleOverride:
        override = await self.overrides.find_by_id(override_id)
        if override is None:
            raise EntityNotFoundException("ScheduleOverride", override_id)
        return override

    async def _save_decision(self, override: ScheduleOverride) -> ScheduleOverride:
        saved = await self.overrides.save(override)
        logger.info(f"Override {saved.id} is now {saved.status.value} (by {saved.decided_by or 'unknown'})")
        return saved
