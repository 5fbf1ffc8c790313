"""
Reminder Scheduler Port
"""

from typing import Protocol, runtime_checkable

from app.domains.scheduling.domain.events import AppointmentEvent


@runtime_checkable
class IReminderScheduler(Protocol):
    """Registers and removes timed reminder jobs for appointments."""

    async def schedule_reminders(self, event: AppointmentEvent) -> list[str]:
        """
        Register reminder jobs for an appointment.

        Args:
            event: Event carrying appointment id, date, start time and timezone

        Returns:
            IDs of the jobs that were registered (past fire times are skipped)
        """
        ...

    async def cancel_reminders(self, appointment_id: int) -> int:
        """
        Remove all pending reminder jobs of an appointment.

        Returns:
            Number of jobs removed
        """
        ...
