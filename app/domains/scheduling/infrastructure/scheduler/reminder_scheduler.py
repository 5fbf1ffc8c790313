"""Reminder Scheduler for appointments.

APScheduler-based implementation of IReminderScheduler: one date-triggered
job per configured offset before the appointment start, in the
appointment's own timezone.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-not-found]
from apscheduler.triggers.date import DateTrigger  # type: ignore[import-not-found]

from app.domains.scheduling.application.ports import INotificationService, IReminderScheduler
from app.domains.scheduling.domain.events import AppointmentEvent

logger = logging.getLogger(__name__)


def reminder_job_id(appointment_id: int, hours_before: int) -> str:
    return f"reminder:{appointment_id}:{hours_before}h"


class APSchedulerReminderScheduler(IReminderScheduler):
    """Appointment reminder scheduler.

    Registers jobs like ``reminder:17:24h`` and ``reminder:17:2h``. Fire
    times already in the past are skipped.
    """

    def __init__(
        self,
        notifications: INotificationService,
        offsets_hours: tuple[int, ...] = (24, 2),
        default_timezone: str = "UTC",
        scheduler: Any | None = None,
        enabled: bool = True,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize scheduler.

        Args:
            notifications: Port used to deliver the reminders.
            offsets_hours: Hours before the appointment start to remind at.
            default_timezone: Used when an appointment's timezone is unknown.
            scheduler: APScheduler instance (a new AsyncIOScheduler by default).
            enabled: Whether reminders are registered at all.
            clock: Returns the current aware datetime.
        """
        self.notifications = notifications
        self.offsets_hours = tuple(sorted(set(offsets_hours), reverse=True))
        self.default_tz = pytz.timezone(default_timezone)
        self.enabled = enabled
        self._scheduler = scheduler if scheduler is not None else AsyncIOScheduler(timezone=self.default_tz)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        """Start the scheduler."""
        if not self.enabled:
            logger.info("Appointment reminders are disabled, skipping scheduler start")
            return
        if self._is_running:
            logger.warning("Reminder scheduler already running")
            return

        self._scheduler.start()
        self._is_running = True
        logger.info(f"Reminder scheduler started (offsets={list(self.offsets_hours)}h)")

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self._is_running:
            self._scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("Reminder scheduler stopped")

    async def schedule_reminders(self, event: AppointmentEvent) -> list[str]:
        if not self.enabled or event.appointment_id is None:
            return []
        if event.appointment_date is None or event.start_time is None:
            return []

        tz = self._resolve_timezone(event.timezone)
        starts_at = tz.localize(datetime.combine(event.appointment_date, event.start_time))
        now = self._clock()

        job_ids: list[str] = []
        for hours in self.offsets_hours:
            run_at = starts_at - timedelta(hours=hours)
            if run_at <= now:
                logger.debug(f"Skipping {hours}h reminder for appointment {event.appointment_id}: already past")
                continue

            job_id = reminder_job_id(event.appointment_id, hours)
            self._scheduler.add_job(
                self._send_reminder,
                DateTrigger(run_date=run_at, timezone=tz),
                id=job_id,
                name=f"Appointment {event.appointment_id} reminder ({hours}h)",
                kwargs={"event": event, "hours_before": hours},
                replace_existing=True,
            )
            job_ids.append(job_id)

        if job_ids:
            logger.info(f"Scheduled {len(job_ids)} reminders for appointment {event.appointment_id}")
        return job_ids

    async def cancel_reminders(self, appointment_id: int) -> int:
        prefix = f"reminder:{appointment_id}:"
        removed = 0
        for job in self._scheduler.get_jobs():
            if job.id.startswith(prefix):
                self._scheduler.remove_job(job.id)
                removed += 1
        if removed:
            logger.info(f"Removed {removed} reminders for appointment {appointment_id}")
        return removed

    async def _send_reminder(self, event: AppointmentEvent, hours_before: int) -> None:
        try:
            await self.notifications.send_reminder(event, hours_before)
        except Exception as e:
            logger.error(f"Error sending reminder for appointment {event.appointment_id}: {e}", exc_info=True)

    def _resolve_timezone(self, name: str):
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            logger.warning(f"Unknown timezone '{name}', using {self.default_tz.zone}")
            return self.default_tz
