"""
Logging Notification Service

INotificationService adapter that writes notifications to the application
log. Used until a delivery channel (WhatsApp, email, SMS) is wired in.
"""

import logging

from app.domains.scheduling.application.ports import INotificationService
from app.domains.scheduling.domain.events import (
    AppointmentBooked,
    AppointmentCancelled,
    AppointmentEvent,
    AppointmentRescheduled,
)
from app.domains.scheduling.domain.value_objects import format_hhmm

logger = logging.getLogger(__name__)


def _when(event: AppointmentEvent) -> str:
    start = format_hhmm(event.start_time) if event.start_time else "--:--"
    return f"{event.appointment_date} {start} ({event.timezone})"


class LoggingNotificationService(INotificationService):
    """Notification adapter that only logs."""

    async def notify_booked(self, event: AppointmentBooked) -> None:
        logger.info(
            f"[notify] Appointment {event.appointment_id} booked for patient {event.patient_id} "
            f"with doctor {event.doctor_id} at {_when(event)} ({event.status.value})"
        )

    async def notify_rescheduled(self, event: AppointmentRescheduled) -> None:
        logger.info(
            f"[notify] Appointment {event.appointment_id} moved from {event.previous_date} "
            f"to {_when(event)}"
        )

    async def notify_cancelled(self, event: AppointmentCancelled) -> None:
        reason = f": {event.reason}" if event.reason else ""
        logger.info(f"[notify] Appointment {event.appointment_id} cancelled by {event.actor.value}{reason}")

    async def send_reminder(self, event: AppointmentEvent, hours_before: int) -> None:
        logger.info(
            f"[notify] Reminder ({hours_before}h) for patient {event.patient_id}: "
            f"appointment {event.appointment_id} at {_when(event)}"
        )
