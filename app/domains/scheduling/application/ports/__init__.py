"""
Scheduling Application Ports

Interfaces for external dependencies following Dependency Inversion Principle.
"""

from app.domains.scheduling.application.ports.advisory_port import ISlotAdvisor, SlotSuggestion
from app.domains.scheduling.application.ports.appointment_repository import IAppointmentRepository
from app.domains.scheduling.application.ports.audit_port import IAuditLogger
from app.domains.scheduling.application.ports.notification_port import INotificationService
from app.domains.scheduling.application.ports.reminder_port import IReminderScheduler
from app.domains.scheduling.application.ports.schedule_repository import (
    IScheduleOverrideRepository,
    IWorkingHoursRepository,
)

__all__ = [
    # Repositories
    "IAppointmentRepository",
    "IWorkingHoursRepository",
    "IScheduleOverrideRepository",
    # Side effects
    "INotificationService",
    "IReminderScheduler",
    "IAuditLogger",
    # Advisory
    "ISlotAdvisor",
    "SlotSuggestion",
]
