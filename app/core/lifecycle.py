"""
Application lifecycle management using the FastAPI lifespan pattern.

Startup places the dependency container on ``app.state`` and starts the
reminder scheduler; shutdown drains pending side effects first.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config.settings import Settings
from app.core.container import DependencyContainer

logger = logging.getLogger(__name__)


class LifecycleManager:
    """
    Manages application lifecycle events.

    Handles startup initialization and graceful shutdown.
    """

    def __init__(self, container: DependencyContainer) -> None:
        self._container = container
        self._initialized = False

    @property
    def settings(self) -> Settings:
        return self._container.settings

    async def startup(self) -> None:
        if self._initialized:
            logger.warning("Lifecycle already initialized, skipping startup")
            return

        logger.info("Starting application lifecycle...")
        self._verify_configurations()
        if self.settings.SCHEDULING_STORAGE_BACKEND == "sqlalchemy" and self.settings.DB_CREATE_TABLES:
            from app.database.async_db import create_all_tables

            await create_all_tables(self.settings)
        await self._container.startup()

        self._initialized = True
        logger.info("Application lifecycle startup completed")

    async def shutdown(self) -> None:
        if not self._initialized:
            logger.warning("Lifecycle not initialized, skipping shutdown")
            return

        logger.info("Stopping application lifecycle...")
        await self._container.shutdown()
        if self.settings.SCHEDULING_STORAGE_BACKEND == "sqlalchemy":
            from app.database.async_db import dispose_async_engine

            await dispose_async_engine()

        self._initialized = False
        logger.info("Application lifecycle shutdown completed")

    def _verify_configurations(self) -> None:
        """Log the configuration choices that change runtime behaviour."""
        settings = self.settings
        logger.info(f"Scheduling storage backend: {settings.SCHEDULING_STORAGE_BACKEND}")
        if settings.SCHEDULING_STORAGE_BACKEND == "memory":
            logger.warning("In-memory scheduling storage: data is lost on restart")
        if settings.SCHEDULING_ADVISORY_ENABLED and self._container.scheduling.advisor is None:
            logger.warning("Advisory booking enabled but no slot advisor configured; bookings stay deterministic")
        if not settings.SCHEDULING_REMINDERS_ENABLED:
            logger.info("Appointment reminders are disabled via SCHEDULING_REMINDERS_ENABLED=False")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI.

    Uses the container already on ``app.state`` (tests inject one) or builds
    a fresh one.
    """
    container = getattr(app.state, "container", None)
    if container is None:
        container = DependencyContainer()
        app.state.container = container

    manager = LifecycleManager(container)
    await manager.startup()
    try:
        yield
    finally:
        await manager.shutdown()
