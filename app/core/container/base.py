# ============================================================================
# SCOPE: GLOBAL
# Description: Base container with process-wide scheduling singletons.
#              Locks, event publisher and reminder scheduler are shared by
#              every service instance so concurrent requests coordinate.
# ============================================================================
"""
Base Container - Shared Singletons.

Single Responsibility: Create and cache resources that must be shared across
requests (booking locks, event dispatcher, side-effect adapters).
"""

import logging

from app.config.settings import Settings, get_settings
from app.core.domain import DomainEventPublisher
from app.domains.scheduling.application.ports import (
    IAuditLogger,
    INotificationService,
)
from app.domains.scheduling.application.services import (
    BackgroundEventDispatcher,
    BookingLockRegistry,
    register_side_effect_handlers,
)
from app.domains.scheduling.domain.value_objects import SchedulingPolicy
from app.domains.scheduling.infrastructure.scheduler import APSchedulerReminderScheduler
from app.domains.scheduling.infrastructure.services import (
    LoggingAuditLogger,
    LoggingNotificationService,
)

logger = logging.getLogger(__name__)


class BaseContainer:
    """
    Base container for shared singletons.

    Single Responsibility: Create and cache shared scheduling resources.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        notifications: INotificationService | None = None,
        audit: IAuditLogger | None = None,
        reminder_backend=None,
    ):
        """
        Initialize base container.

        Args:
            settings: Optional settings (defaults to the cached environment settings)
            notifications: Notification adapter (logging adapter by default)
            audit: Audit adapter (logging adapter by default)
            reminder_backend: APScheduler instance for reminders (a new AsyncIOScheduler by default)
        """
        self.settings = settings or get_settings()
        self.policy: SchedulingPolicy = self.settings.to_policy()

        self.locks = BookingLockRegistry()
        self.publisher = DomainEventPublisher()
        self.dispatcher = BackgroundEventDispatcher(self.publisher)

        self.notifications = notifications or LoggingNotificationService()
        self.audit = audit or LoggingAuditLogger()
        self.reminders = APSchedulerReminderScheduler(
            self.notifications,
            offsets_hours=self.policy.reminder_offsets_hours,
            default_timezone=self.policy.default_timezone,
            scheduler=reminder_backend,
            enabled=self.settings.SCHEDULING_REMINDERS_ENABLED,
        )

        register_side_effect_handlers(
            self.publisher,
            audit=self.audit,
            notifications=self.notifications,
            reminders=self.reminders if self.settings.SCHEDULING_REMINDERS_ENABLED else None,
        )

        logger.info("BaseContainer initialized")

    async def startup(self) -> None:
        await self.reminders.start()

    async def shutdown(self) -> None:
        """Flush pending side effects, then stop the reminder scheduler."""
        await self.dispatcher.drain()
        await self.reminders.stop()
