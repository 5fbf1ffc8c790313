"""
Scheduling Infrastructure Repositories

Repository implementations for the scheduling domain.
"""

from app.domains.scheduling.infrastructure.repositories.appointment_repository import (
    SQLAlchemyAppointmentRepository,
)
from app.domains.scheduling.infrastructure.repositories.in_memory import (
    InMemoryAppointmentRepository,
    InMemoryScheduleOverrideRepository,
    InMemoryWorkingHoursRepository,
)
from app.domains.scheduling.infrastructure.repositories.schedule_repository import (
    SQLAlchemyScheduleOverrideRepository,
    SQLAlchemyWorkingHoursRepository,
)

__all__ = [
    "SQLAlchemyAppointmentRepository",
    "SQLAlchemyWorkingHoursRepository",
    "SQLAlchemyScheduleOverrideRepository",
    "InMemoryAppointmentRepository",
    "InMemoryWorkingHoursRepository",
    "InMemoryScheduleOverrideRepository",
]
