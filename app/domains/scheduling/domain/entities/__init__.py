"""
Scheduling Domain Entities

Business entities with identity and lifecycle for the scheduling domain.
"""

from app.domains.scheduling.domain.entities.appointment import Appointment
from app.domains.scheduling.domain.entities.schedule_override import ScheduleOverride
from app.domains.scheduling.domain.entities.working_day_template import WorkingDayTemplate

__all__ = [
    "Appointment",
    "ScheduleOverride",
    "WorkingDayTemplate",
]
