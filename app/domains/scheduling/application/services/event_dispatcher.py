"""
Background Event Dispatcher

Publishes domain events on background tasks so side effects (audit,
notifications, reminders) never delay or fail a committed booking.
"""

import asyncio
import logging
from typing import Any

from app.core.domain import DomainEvent, DomainEventPublisher
from app.domains.scheduling.application.ports import (
    IAuditLogger,
    INotificationService,
    IReminderScheduler,
)
from app.domains.scheduling.domain.events import (
    AppointmentBooked,
    AppointmentCancelled,
    AppointmentRescheduled,
    AppointmentStatusChanged,
)

logger = logging.getLogger(__name__)


class BackgroundEventDispatcher:
    """
    Fire-and-forget event publishing.

    Tasks are kept in a set until done so they are not garbage collected;
    failures are logged from the done callback.
    """

    def __init__(self, publisher: DomainEventPublisher):
        self.publisher = publisher
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, events: list[DomainEvent]) -> asyncio.Task[Any] | None:
        """Schedule publishing of events in order on one background task."""
        if not events:
            return None
        task = asyncio.create_task(
            self.publisher.publish_all(events),
            name=f"publish_{events[0].event_type}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Event publishing task {task.get_name()} was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Event publishing task {task.get_name()} failed: {error}", exc_info=error)

    async def drain(self) -> None:
        """Wait for all outstanding publishing tasks (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def register_side_effect_handlers(
    publisher: DomainEventPublisher,
    audit: IAuditLogger | None = None,
    notifications: INotificationService | None = None,
    reminders: IReminderScheduler | None = None,
) -> None:
    """
    Wire the side-effect ports to the appointment events.

    | Event          | Audit | Notification | Reminders            |
    |----------------|-------|--------------|----------------------|
    | booked         | yes   | yes          | schedule             |
    | rescheduled    | yes   | yes          | cancel, then schedule|
    | cancelled      | yes   | yes          | cancel               |
    | status changed | yes   | no           | no                   |
    """
    if audit is not None:
        for event_type in (AppointmentBooked, AppointmentRescheduled, AppointmentCancelled, AppointmentStatusChanged):
            publisher.subscribe(event_type, audit.record)

    if notifications is not None:
        publisher.subscribe(AppointmentBooked, notifications.notify_booked)
        publisher.subscribe(AppointmentRescheduled, notifications.notify_rescheduled)
        publisher.subscribe(AppointmentCancelled, notifications.notify_cancelled)

    if reminders is not None:

        async def on_booked(event: AppointmentBooked) -> None:
            await reminders.schedule_reminders(event)

        async def on_rescheduled(event: AppointmentRescheduled) -> None:
            if event.appointment_id is not None:
                await reminders.cancel_reminders(event.appointment_id)
            await reminders.schedule_reminders(event)

        async def on_cancelled(event: AppointmentCancelled) -> None:
            if event.appointment_id is not None:
                await reminders.cancel_reminders(event.appointment_id)

        publisher.subscribe(AppointmentBooked, on_booked)
        publisher.subscribe(AppointmentRescheduled, on_rescheduled)
        publisher.subscribe(AppointmentCancelled, on_cancelled)

    logger.info(
        f"Side-effect handlers registered (audit={audit is not None}, "
        f"notifications={notifications is not None}, reminders={reminders is not None})"
    )
