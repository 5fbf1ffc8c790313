"""
Schedule Repository Ports

Interfaces for working-hours templates and schedule overrides.
"""

from datetime import date
from typing import Protocol, runtime_checkable

from app.domains.scheduling.domain.entities.schedule_override import ScheduleOverride
from app.domains.scheduling.domain.entities.working_day_template import WorkingDayTemplate
from app.domains.scheduling.domain.value_objects import DayOfWeek


@runtime_checkable
class IWorkingHoursRepository(Protocol):
    """Weekly template storage."""

    async def find_templates(self, doctor_id: int, include_inactive: bool = False) -> list[WorkingDayTemplate]:
        """
        Find template rows of a doctor.

        Args:
            doctor_id: Doctor ID
            include_inactive: Also return superseded rows

        Returns:
            Template rows ordered by weekday
        """
        ...

    async def find_active_template(self, doctor_id: int, day_of_week: DayOfWeek) -> WorkingDayTemplate | None:
        """Find the active row for one weekday."""
        ...

    async def has_any_template(self, doctor_id: int) -> bool:
        """Check whether the doctor has any active template row."""
        ...

    async def save_template(self, template: WorkingDayTemplate) -> WorkingDayTemplate:
        """
        Store a template row, deactivating the previous active row for the same weekday.

        Args:
            template: New template row

        Returns:
            Stored template with ID
        """
        ...


@runtime_checkable
class IScheduleOverrideRepository(Protocol):
    """Dated override storage."""

    async def find_by_id(self, override_id: int) -> ScheduleOverride | None:
        """Find override by ID."""
        ...

    async def find_covering(self, doctor_id: int, on_date: date) -> list[ScheduleOverride]:
        """
        Find overrides (any status) whose range includes a date.

        Args:
            doctor_id: Doctor ID
            on_date: Date that must fall inside the override range

        Returns:
            Matching overrides
        """
        ...

    async def find_by_doctor(
        self,
        doctor_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ScheduleOverride]:
        """
        Find overrides of a doctor intersecting an optional date range.

        Returns:
            Overrides ordered by start date
        """
        ...

    async def save(self, override: ScheduleOverride) -> ScheduleOverride:
        """Insert or update an override."""
        ...
