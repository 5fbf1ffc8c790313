"""
Schedule Repository Implementations

SQLAlchemy implementations of IWorkingHoursRepository and IScheduleOverrideRepository.
"""

import logging
from datetime import date

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain import PersistenceException
from app.domains.scheduling.application.ports.schedule_repository import (
    IScheduleOverrideRepository,
    IWorkingHoursRepository,
)
from app.domains.scheduling.domain.entities.schedule_override import ScheduleOverride
from app.domains.scheduling.domain.entities.working_day_template import WorkingDayTemplate
from app.domains.scheduling.domain.value_objects import DayOfWeek, RecurrencePattern
from app.domains.scheduling.infrastructure.persistence.sqlalchemy.models import (
    ScheduleOverrideModel,
    WorkingDayTemplateModel,
)

logger = logging.getLogger(__name__)


class SQLAlchemyWorkingHoursRepository(IWorkingHoursRepository):
    """SQLAlchemy implementation of working-hours template storage."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_templates(self, doctor_id: int, include_inactive: bool = False) -> list[WorkingDayTemplate]:
        """Find template rows of a doctor."""
        query = select(WorkingDayTemplateModel).where(WorkingDayTemplateModel.doctor_id == doctor_id)
        if not include_inactive:
            query = query.where(WorkingDayTemplateModel.is_active.is_(True))
        query = query.order_by(WorkingDayTemplateModel.day_of_week, WorkingDayTemplateModel.id)

        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def find_active_template(self, doctor_id: int, day_of_week: DayOfWeek) -> WorkingDayTemplate | None:
        """Find the active row for one weekday."""
        result = await self.session.execute(
            select(WorkingDayTemplateModel).where(
                and_(
                    WorkingDayTemplateModel.doctor_id == doctor_id,
                    WorkingDayTemplateModel.day_of_week == day_of_week,
                    WorkingDayTemplateModel.is_active.is_(True),
                )
            )
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def has_any_template(self, doctor_id: int) -> bool:
        """Check if the doctor has any active template row."""
        result = await self.session.execute(
            select(func.count()).where(
                and_(
                    WorkingDayTemplateModel.doctor_id == doctor_id,
                    WorkingDayTemplateModel.is_active.is_(True),
                )
            )
        )
        return result.scalar_one() > 0

    async def save_template(self, template: WorkingDayTemplate) -> WorkingDayTemplate:
        """Insert a template row, superseding the active row of the same weekday."""
        try:
            await self.session.execute(
                update(WorkingDayTemplateModel)
                .where(
                    and_(
                        WorkingDayTemplateModel.doctor_id == template.doctor_id,
                        WorkingDayTemplateModel.day_of_week == template.day_of_week,
                        WorkingDayTemplateModel.is_active.is_(True),
                    )
                )
                .values(is_active=False)
            )
            model = self._to_model(template)
            self.session.add(model)
            await self.session.commit()
            await self.session.refresh(model)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceException("save_template", e) from e

        return self._to_entity(model)

    # Mapping methods

    def _to_entity(self, model: WorkingDayTemplateModel) -> WorkingDayTemplate:
        """Convert model to entity."""
        template = WorkingDayTemplate(
            id=model.id,  # type: ignore[arg-type]
            doctor_id=model.doctor_id,  # type: ignore[arg-type]
            day_of_week=model.day_of_week,  # type: ignore[arg-type]
            is_working=model.is_working,  # type: ignore[arg-type]
            start_time=model.start_time,  # type: ignore[arg-type]
            end_time=model.end_time,  # type: ignore[arg-type]
            break_start=model.break_start,  # type: ignore[arg-type]
            break_end=model.break_end,  # type: ignore[arg-type]
            appointment_duration=model.appointment_duration,  # type: ignore[arg-type]
            buffer_time=model.buffer_time,  # type: ignore[arg-type]
            max_appointments_per_day=model.max_appointments_per_day,  # type: ignore[arg-type]
            timezone=model.timezone or "UTC",  # type: ignore[arg-type]
            recurrence=model.recurrence or RecurrencePattern.WEEKLY,  # type: ignore[arg-type]
            effective_from=model.effective_from,  # type: ignore[arg-type]
            effective_until=model.effective_until,  # type: ignore[arg-type]
            is_active=model.is_active,  # type: ignore[arg-type]
        )
        if model.created_at:
            template.created_at = model.created_at  # type: ignore[assignment]
        if model.updated_at:
            template.updated_at = model.updated_at  # type: ignore[assignment]
        return template

    def _to_model(self, template: WorkingDayTemplate) -> WorkingDayTemplateModel:
        """Convert entity to model (always a new row)."""
        return WorkingDayTemplateModel(
            doctor_id=template.doctor_id,
            day_of_week=template.day_of_week,
            is_working=template.is_working,
            start_time=template.start_time,
            end_time=template.end_time,
            break_start=template.break_start,
            break_end=template.break_end,
            appointment_duration=template.appointment_duration,
            buffer_time=template.buffer_time,
            max_appointments_per_day=template.max_appointments_per_day,
            timezone=template.timezone,
            recurrence=template.recurrence,
            effective_from=template.effective_from,
            effective_until=template.effective_until,
            is_active=True,
        )


class SQLAlchemyScheduleOverrideRepository(IScheduleOverrideRepository):
    """SQLAlchemy implementation of schedule override storage."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, override_id: int) -> ScheduleOverride | None:
        """Find override by ID."""
        result = await self.session.execute(
            select(ScheduleOverrideModel).where(ScheduleOverrideModel.id == override_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_covering(self, doctor_id: int, on_date: date) -> list[ScheduleOverride]:
        """Find overrides whose range includes the date."""
        result = await self.session.execute(
            select(ScheduleOverrideModel).where(
                and_(
                    ScheduleOverrideModel.doctor_id == doctor_id,
                    ScheduleOverrideModel.start_date <= on_date,
                    ScheduleOverrideModel.end_date >= on_date,
                )
            )
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def find_by_doctor(
        self,
        doctor_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ScheduleOverride]:
        """Find overrides of a doctor intersecting a date range."""
        query = select(ScheduleOverrideModel).where(ScheduleOverrideModel.doctor_id == doctor_id)
        if start_date:
            query = query.where(ScheduleOverrideModel.end_date >= start_date)
        if end_date:
            query = query.where(ScheduleOverrideModel.start_date <= end_date)
        query = query.order_by(ScheduleOverrideModel.start_date, ScheduleOverrideModel.id)

        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def save(self, override: ScheduleOverride) -> ScheduleOverride:
        """Insert or update an override."""
        try:
            model = None
            if override.id:
                result = await self.session.execute(
                    select(ScheduleOverrideModel).where(ScheduleOverrideModel.id == override.id)
                )
                model = result.scalar_one_or_none()
            if model is None:
                model = ScheduleOverrideModel()
                self.session.add(model)
            self._update_model(model, override)

            await self.session.commit()
            await self.session.refresh(model)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceException("save_override", e) from e

        return self._to_entity(model)

    # Mapping methods

    def _to_entity(self, model: ScheduleOverrideModel) -> ScheduleOverride:
        """Convert model to entity."""
        override = ScheduleOverride(
            id=model.id,  # type: ignore[arg-type]
            doctor_id=model.doctor_id,  # type: ignore[arg-type]
            start_date=model.start_date,  # type: ignore[arg-type]
            end_date=model.end_date,  # type: ignore[arg-type]
            kind=model.kind,  # type: ignore[arg-type]
            status=model.status,  # type: ignore[arg-type]
            reason=model.reason,  # type: ignore[arg-type]
            start_time=model.start_time,  # type: ignore[arg-type]
            end_time=model.end_time,  # type: ignore[arg-type]
            break_start=model.break_start,  # type: ignore[arg-type]
            break_end=model.break_end,  # type: ignore[arg-type]
            appointment_duration=model.appointment_duration,  # type: ignore[arg-type]
            buffer_time=model.buffer_time,  # type: ignore[arg-type]
            max_appointments=model.max_appointments,  # type: ignore[arg-type]
            decided_by=model.decided_by,  # type: ignore[arg-type]
            decided_at=model.decided_at,  # type: ignore[arg-type]
            decision_note=model.decision_note,  # type: ignore[arg-type]
        )
        if model.created_at:
            override.created_at = model.created_at  # type: ignore[assignment]
        if model.updated_at:
            override.updated_at = model.updated_at  # type: ignore[assignment]
        return override

    def _update_model(self, model: ScheduleOverrideModel, override: ScheduleOverride) -> None:
        """Copy entity state onto the model."""
        model.doctor_id = override.doctor_id
        model.start_date = override.start_date
        model.end_date = override.end_date
        model.kind = override.kind
        model.status = override.status
        model.reason = override.reason
        model.start_time = override.start_time
        model.end_time = override.end_time
        model.break_start = override.break_start
        model.break_end = override.break_end
        model.appointment_duration = override.appointment_duration
        model.buffer_time = override.buffer_time
        model.max_appointments = override.max_appointments
        model.decided_by = override.decided_by
        model.decided_at = override.decided_at
        model.decision_note = override.decision_note
