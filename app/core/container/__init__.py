# ============================================================================
# SCOPE: GLOBAL
# Description: Main dependency injection container (singleton).
#              Composes the base singletons and the scheduling sub-container.
# ============================================================================
"""
Dependency Injection Container.

Centralized container for creating and managing application dependencies.
Wires concrete adapters to the scheduling ports.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from app.config.settings import Settings
from app.domains.scheduling.application.ports import (
    IAuditLogger,
    INotificationService,
    ISlotAdvisor,
)
from app.domains.scheduling.application.services import AvailabilityService

from .base import BaseContainer
from .scheduling import SchedulingContainer

logger = logging.getLogger(__name__)


class DependencyContainer:
    """
    Dependency Injection Container (Facade).

    Single Responsibility: Compose and delegate to the sub-containers.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_factory=None,
        advisor: ISlotAdvisor | None = None,
        notifications: INotificationService | None = None,
        audit: IAuditLogger | None = None,
        reminder_backend=None,
    ):
        """
        Initialize container with all sub-containers.

        Args:
            settings: Optional settings (overrides the environment)
            session_factory: Optional async session factory for the sqlalchemy backend
            advisor: Optional slot advisor
            notifications: Optional notification adapter
            audit: Optional audit adapter
            reminder_backend: Optional APScheduler instance
        """
        self._base = BaseContainer(
            settings,
            notifications=notifications,
            audit=audit,
            reminder_backend=reminder_backend,
        )
        self._scheduling = SchedulingContainer(self._base, session_factory=session_factory, advisor=advisor)

        logger.info("DependencyContainer initialized")

    @property
    def settings(self) -> Settings:
        return self._base.settings

    @property
    def base(self) -> BaseContainer:
        return self._base

    @property
    def scheduling(self) -> SchedulingContainer:
        return self._scheduling

    @asynccontextmanager
    async def availability_service(self) -> AsyncIterator[AvailabilityService]:
        async with self._scheduling.service_scope() as service:
            yield service

    async def startup(self) -> None:
        await self._base.startup()

    async def shutdown(self) -> None:
        await self._base.shutdown()


# ============================================================
# GLOBAL CONTAINER INSTANCE
# ============================================================

_container: DependencyContainer | None = None


def get_container(settings: Settings | None = None) -> DependencyContainer:
    """
    Get global container instance (singleton).

    Args:
        settings: Optional settings (only used on first call)

    Returns:
        DependencyContainer instance
    """
    global _container

    if _container is None:
        logger.info("Initializing global DependencyContainer")
        _container = DependencyContainer(settings)
    elif settings is not None:
        logger.warning(
            "Container already initialized, ignoring new settings. "
            "Call reset_container() first to change settings."
        )

    return _container


def reset_container() -> None:
    """
    Reset global container instance.

    Useful for testing or reconfiguration.
    """
    global _container
    logger.info("Resetting global DependencyContainer")
    _container = None


__all__ = [
    "DependencyContainer",
    "get_container",
    "reset_container",
    "BaseContainer",
    "SchedulingContainer",
]
