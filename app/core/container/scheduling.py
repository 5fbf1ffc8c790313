# ============================================================================
# SCOPE: DOMAIN
# Description: Container for the scheduling domain.
#              Builds repositories and the availability facade per request.
# ============================================================================
"""
Scheduling Domain Container.

Provides dependency injection for the scheduling domain. With the
``memory`` backend the repositories live as long as the container; with
``sqlalchemy`` they are bound to one session per scope.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from app.domains.scheduling.application.ports import (
    IAppointmentRepository,
    IScheduleOverrideRepository,
    ISlotAdvisor,
    IWorkingHoursRepository,
)
from app.domains.scheduling.application.services import AvailabilityService, WorkingHoursRegistry
from app.domains.scheduling.infrastructure.repositories import (
    InMemoryAppointmentRepository,
    InMemoryScheduleOverrideRepository,
    InMemoryWorkingHoursRepository,
    SQLAlchemyAppointmentRepository,
    SQLAlchemyScheduleOverrideRepository,
    SQLAlchemyWorkingHoursRepository,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from app.core.container.base import BaseContainer

logger = logging.getLogger(__name__)


class SchedulingContainer:
    """Container for scheduling domain dependencies.

    Single Responsibility: Wire repositories, registry and facade.
    """

    def __init__(
        self,
        base: "BaseContainer",
        session_factory: "async_sessionmaker[AsyncSession] | None" = None,
        advisor: ISlotAdvisor | None = None,
    ):
        """Initialize container.

        Args:
            base: Base container with shared singletons.
            session_factory: Session factory for the sqlalchemy backend
                (the application factory from ``app.database`` by default).
            advisor: Optional slot advisor for advisory bookings.
        """
        self._base = base
        self._session_factory = session_factory
        self.advisor = advisor
        self.backend = base.settings.SCHEDULING_STORAGE_BACKEND

        self._memory_appointments: InMemoryAppointmentRepository | None = None
        self._memory_templates: InMemoryWorkingHoursRepository | None = None
        self._memory_overrides: InMemoryScheduleOverrideRepository | None = None
        if self.backend == "memory":
            self._memory_appointments = InMemoryAppointmentRepository()
            self._memory_templates = InMemoryWorkingHoursRepository()
            self._memory_overrides = InMemoryScheduleOverrideRepository()

        logger.debug(f"SchedulingContainer initialized (backend={self.backend})")

    def create_registry(
        self,
        templates: IWorkingHoursRepository,
        overrides: IScheduleOverrideRepository,
        appointments: IAppointmentRepository,
    ) -> WorkingHoursRegistry:
        return WorkingHoursRegistry(templates, overrides, self._base.policy, appointments)

    def create_availability_service(
        self,
        appointments: IAppointmentRepository,
        templates: IWorkingHoursRepository,
        overrides: IScheduleOverrideRepository,
    ) -> AvailabilityService:
        """Create the facade over the given repositories, sharing locks and dispatcher."""
        return AvailabilityService(
            registry=self.create_registry(templates, overrides, appointments),
            appointment_repository=appointments,
            dispatcher=self._base.dispatcher,
            policy=self._base.policy,
            locks=self._base.locks,
            advisor=self.advisor,
        )

    @asynccontextmanager
    async def service_scope(self) -> AsyncIterator[AvailabilityService]:
        """Yield an AvailabilityService bound to the configured storage."""
        if self.backend == "memory":
            assert self._memory_appointments is not None
            assert self._memory_templates is not None
            assert self._memory_overrides is not None
            yield self.create_availability_service(
                self._memory_appointments,
                self._memory_templates,
                self._memory_overrides,
            )
            return

        factory = self._session_factory
        if factory is None:
            from app.database.async_db import get_session_factory

            factory = get_session_factory(self._base.settings)

        async with factory() as session:
            yield self.create_availability_service(
                SQLAlchemyAppointmentRepository(session),
                SQLAlchemyWorkingHoursRepository(session),
                SQLAlchemyScheduleOverrideRepository(session),
            )
