"""
Audit Port
"""

from typing import Protocol, runtime_checkable

from app.core.domain import DomainEvent


@runtime_checkable
class IAuditLogger(Protocol):
    """Append-only audit trail. Storage lives outside the engine."""

    async def record(self, event: DomainEvent) -> None:
        """Record a domain event in the audit trail."""
        ...
