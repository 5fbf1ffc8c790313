"""
Shared pytest fixtures for all tests.

This module provides in-memory repositories, a configured availability
service, test settings and an HTTP client bound to an in-memory container.
"""

import os
from collections.abc import Callable, Generator
from datetime import date, time
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.core.app_factory import create_app
from app.core.container import DependencyContainer, reset_container
from app.core.domain import DomainEventPublisher
from app.domains.scheduling.application.services import (
    AvailabilityService,
    BackgroundEventDispatcher,
    BookingLockRegistry,
    WorkingHoursRegistry,
)
from app.domains.scheduling.domain.entities import WorkingDayTemplate
from app.domains.scheduling.domain.value_objects import DayOfWeek, SchedulingPolicy
from app.domains.scheduling.infrastructure.repositories import (
    InMemoryAppointmentRepository,
    InMemoryScheduleOverrideRepository,
    InMemoryWorkingHoursRepository,
)

# Ensure test environment
os.environ["ENVIRONMENT"] = "test"

WEEKDAYS = [DayOfWeek.MONDAY, DayOfWeek.TUESDAY, DayOfWeek.WEDNESDAY, DayOfWeek.THURSDAY, DayOfWeek.FRIDAY]


# ============================================================================
# DATE FIXTURES
# ============================================================================


@pytest.fixture
def doctor_id() -> int:
    return 7


@pytest.fixture
def monday() -> date:
    """A Monday far enough in the future for reminders to be schedulable."""
    return date(2030, 1, 7)


@pytest.fixture
def saturday() -> date:
    return date(2030, 1, 12)


# ============================================================================
# TEMPLATE FIXTURES
# ============================================================================


@pytest.fixture
def make_template(doctor_id: int) -> Callable[..., WorkingDayTemplate]:
    """
    Factory for weekday templates.

    Defaults: 09:00 - 17:00 with a 12:00 - 13:00 break and 30 minute slots,
    which gives 14 bookable slots.
    """

    def _make(day_of_week: DayOfWeek = DayOfWeek.MONDAY, **overrides) -> WorkingDayTemplate:
        values = {
            "doctor_id": doctor_id,
            "day_of_week": day_of_week,
            "start_time": time(9, 0),
            "end_time": time(17, 0),
            "break_start": time(12, 0),
            "break_end": time(13, 0),
            "appointment_duration": 30,
            "buffer_time": 0,
            "max_appointments_per_day": 14,
        }
        values.update(overrides)
        return WorkingDayTemplate(**values)

    return _make


# ============================================================================
# REPOSITORY AND SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def policy() -> SchedulingPolicy:
    return SchedulingPolicy()


@pytest.fixture
def appointment_repository() -> InMemoryAppointmentRepository:
    return InMemoryAppointmentRepository()


@pytest.fixture
def template_repository() -> InMemoryWorkingHoursRepository:
    return InMemoryWorkingHoursRepository()


@pytest.fixture
def override_repository() -> InMemoryScheduleOverrideRepository:
    return InMemoryScheduleOverrideRepository()


@pytest.fixture
def registry(template_repository, override_repository, appointment_repository, policy) -> WorkingHoursRegistry:
    return WorkingHoursRegistry(template_repository, override_repository, policy, appointment_repository)


@pytest.fixture
def event_publisher() -> DomainEventPublisher:
    return DomainEventPublisher()


@pytest.fixture
def dispatcher(event_publisher) -> BackgroundEventDispatcher:
    return BackgroundEventDispatcher(event_publisher)


@pytest.fixture
def availability_service(registry, appointment_repository, dispatcher, policy) -> AvailabilityService:
    return AvailabilityService(
        registry,
        appointment_repository,
        dispatcher=dispatcher,
        policy=policy,
        locks=BookingLockRegistry(),
    )


@pytest_asyncio.fixture
async def configured_service(availability_service, template_repository, make_template) -> AvailabilityService:
    """Availability service for a doctor working Monday to Friday."""
    for day in WEEKDAYS:
        await template_repository.save_template(make_template(day_of_week=day))
    return availability_service


# ============================================================================
# APPLICATION FIXTURES
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings for in-memory storage, without reading the .env file."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        SCHEDULING_STORAGE_BACKEND="memory",
        SCHEDULING_REMINDERS_ENABLED=False,
    )


@pytest.fixture
def test_container(test_settings) -> Generator[DependencyContainer, None, None]:
    reset_container()
    container = DependencyContainer(test_settings, reminder_backend=MagicMock())
    yield container
    reset_container()


@pytest.fixture
def client(test_container) -> Generator[TestClient, None, None]:
    """HTTP client running the full application lifespan."""
    app = create_app(container=test_container)
    with TestClient(app) as test_client:
        yield test_client
