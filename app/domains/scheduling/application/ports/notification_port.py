"""
Notification Port

Outbound patient/doctor notifications. Delivery channels live outside the engine.
"""

from typing import Protocol, runtime_checkable

from app.domains.scheduling.domain.events import (
    AppointmentBooked,
    AppointmentCancelled,
    AppointmentEvent,
    AppointmentRescheduled,
)


@runtime_checkable
class INotificationService(Protocol):
    """
    Notification service interface.

    Implementations may fail; failures are logged by the dispatcher and never
    affect the committed booking.
    """

    async def notify_booked(self, event: AppointmentBooked) -> None:
        """Send booking confirmation."""
        ...

    async def notify_rescheduled(self, event: AppointmentRescheduled) -> None:
        """Send new date/time to the participants."""
        ...

    async def notify_cancelled(self, event: AppointmentCancelled) -> None:
        """Send cancellation notice."""
        ...

    async def send_reminder(self, event: AppointmentEvent, hours_before: int) -> None:
        """
        Send an appointment reminder.

        Args:
            event: Snapshot of the appointment at scheduling time
            hours_before: Reminder offset that fired
        """
        ...
