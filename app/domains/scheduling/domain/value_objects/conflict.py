"""
Conflict Value Objects

Classification of why a proposed appointment interval cannot be booked.
"""

from dataclasses import dataclass, field
from typing import Any

from app.core.domain import StatusEnum, ValueObject


class ConflictSeverity(StatusEnum):
    """Operator-facing severity of a conflict."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConflictKind(StatusEnum):
    """Conflict classes checked at booking time."""

    LEAVE_CONFLICT = "leave_conflict"
    WORKING_HOURS_VIOLATION = "working_hours_violation"
    OVERLAP = "overlap"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    BREAK_VIOLATION = "break_violation"

    @property
    def severity(self) -> ConflictSeverity:
        return _SEVERITIES[self]

    @property
    def rank(self) -> int:
        """Reporting order, lower is more important."""
        return list(ConflictKind).index(self)


_SEVERITIES: dict[ConflictKind, ConflictSeverity] = {
    ConflictKind.LEAVE_CONFLICT: ConflictSeverity.CRITICAL,
    ConflictKind.WORKING_HOURS_VIOLATION: ConflictSeverity.HIGH,
    ConflictKind.OVERLAP: ConflictSeverity.HIGH,
    ConflictKind.CAPACITY_EXCEEDED: ConflictSeverity.HIGH,
    ConflictKind.BREAK_VIOLATION: ConflictSeverity.MEDIUM,
}


@dataclass(frozen=True)
class Conflict(ValueObject):
    """
    A single detected conflict.

    Example:
        ```python
        conflict = Conflict.of(
            ConflictKind.OVERLAP,
            "Doctor already has an appointment at 09:00",
            appointment_id=12,
        )
        conflict.severity  # ConflictSeverity.HIGH
        ```
    """

    kind: ConflictKind
    message: str
    details: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def of(cls, kind: ConflictKind, message: str, **details: Any) -> "Conflict":
        return cls(kind=kind, message=message, details=details)

    @property
    def severity(self) -> ConflictSeverity:
        return self.kind.severity

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "details": dict(self.details),
        }


def sort_conflicts(conflicts: list[Conflict]) -> list[Conflict]:
    """Order conflicts by kind rank, keeping detection order within a kind."""
    return sorted(conflicts, key=lambda conflict: conflict.kind.rank)
