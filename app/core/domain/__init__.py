"""
Shared domain building blocks: identity-bearing entities, event-recording
aggregates, frozen value objects, domain events and the error taxonomy.
"""

from app.core.domain.entities import (
    AggregateRoot,
    Entity,
)
from app.core.domain.events import (
    DomainEvent,
    DomainEventPublisher,
    EventHandler,
)
from app.core.domain.exceptions import (
    DomainException,
    EntityNotFoundException,
    InvalidOperationException,
    PersistenceException,
    ValidationException,
)
from app.core.domain.value_objects import (
    StatusEnum,
    ValueObject,
)

__all__ = [
    # Entities
    "Entity",
    "AggregateRoot",
    # Value Objects
    "ValueObject",
    "StatusEnum",
    # Events
    "DomainEvent",
    "DomainEventPublisher",
    "EventHandler",
    # Exceptions
    "DomainException",
    "ValidationException",
    "EntityNotFoundException",
    "InvalidOperationException",
    "PersistenceException",
]
