"""
Base entity classes.

Entities carry an identity assigned by storage; aggregate roots also buffer
the domain events their state changes produce until the application layer
pulls and dispatches them.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

TId = TypeVar("TId")


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Entity(ABC, Generic[TId]):
    """
    Identity-bearing domain object.

    Two entities are equal only when both have been persisted and share an
    ID; unsaved entities compare by object identity.
    """

    id: TId | None = field(default=None)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity) or self.id is None or other.id is None:
            return False
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id)) if self.id is not None else id(self)

    def touch(self) -> None:
        """Stamp a state change."""
        self.updated_at = utcnow()


@dataclass
class AggregateRoot(Entity[TId], Generic[TId]):
    """
    Entity that records domain events.

    Events stay on the aggregate until ``pull_domain_events`` hands them to
    the caller, which publishes them only after the change is stored:

        machine.reschedule(appointment, new_date, new_time)
        saved = await repository.update(appointment)
        dispatcher.dispatch(appointment.pull_domain_events())
    """

    _domain_events: list[Any] = field(default_factory=list, repr=False, compare=False)

    def _record_event(self, event: Any) -> None:
        self._domain_events.append(event)

    def get_domain_events(self) -> list[Any]:
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def pull_domain_events(self) -> list[Any]:
        """Return the recorded events and forget them."""
        events = self.get_domain_events()
        self.clear_domain_events()
        return events
