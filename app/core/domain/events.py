"""
Domain events and the in-process publisher.

Events are frozen records of a stored state change. Side effects such as
notifications and reminders subscribe to them on a ``DomainEventPublisher``
instance owned by the dependency container.
"""

import logging
from abc import ABC
from dataclasses import dataclass, field, fields
from datetime import UTC, date, datetime, time
from enum import Enum
from typing import Any, Callable, Coroutine
from uuid import UUID, uuid4

logger = logging.getLogger(__name__)


def _serialize(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Immutable record of something that happened.

    Example:
        ```python
        @dataclass(frozen=True)
        class AppointmentCancelled(DomainEvent):
            appointment_id: int | None = None
            reason: str | None = None
        ```
    """

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping with ``event_type`` first."""
        result: dict[str, Any] = {"event_type": self.event_type}
        for f in fields(self):
            result[f.name] = _serialize(getattr(self, f.name))
        return result


EventHandler = Callable[[DomainEvent], Coroutine[Any, Any, None]]


class DomainEventPublisher:
    """
    Per-instance event publisher.

    Handlers run sequentially in subscription order. A failing handler is
    logged and skipped; it never stops the remaining handlers or reaches
    the caller of ``publish``.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = {}

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def handler_count(self, event_type: type[DomainEvent]) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            try:
                await handler(event)
            except Exception as e:
                name = getattr(handler, "__name__", repr(handler))
                logger.error(f"Handler {name} failed for {event.event_type}: {e}", exc_info=True)

    async def publish_all(self, events: list[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)
