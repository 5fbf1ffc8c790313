"""
Schedule Override Entity

Dated exception to the weekly template: leave, unavailability or a
temporary change of hours and capacity.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Any

from app.core.domain import Entity

from ..exceptions import IllegalTransitionException, InvalidConfigException
from ..value_objects import OverrideKind, OverrideStatus, format_hhmm


@dataclass
class ScheduleOverride(Entity[int]):
    """
    Leave request or temporary schedule change for a date range.

    Only APPROVED overrides take part in effective-hours resolution.

    Example:
        ```python
        leave = ScheduleOverride(
            doctor_id=7,
            start_date=date(2024, 1, 15),
            end_date=date(2024, 1, 19),
            kind=OverrideKind.LEAVE,
            reason="Conference",
        )
        leave.approve(decided_by="admin")
        leave.is_in_effect(date(2024, 1, 16))  # True
        ```
    """

    doctor_id: int = 0
    start_date: date | None = None
    end_date: date | None = None
    kind: OverrideKind = OverrideKind.LEAVE
    status: OverrideStatus = OverrideStatus.PENDING
    reason: str | None = None

    # Custom hours (CAPACITY_UPDATE); unset fields fall back to the template
    start_time: time | None = None
    end_time: time | None = None
    break_start: time | None = None
    break_end: time | None = None
    appointment_duration: int | None = None
    buffer_time: int | None = None
    max_appointments: int | None = None

    # Decision
    decided_by: str | None = None
    decided_at: datetime | None = None
    decision_note: str | None = None

    def __post_init__(self):
        """Validate date range and custom hours."""
        issues: list[str] = []
        if self.start_date is None or self.end_date is None:
            issues.append("Override needs a start and end date")
        elif self.start_date > self.end_date:
            issues.append("Override start date must not be after end date")
        if (self.start_time is None) != (self.end_time is None):
            issues.append("Custom start and end time must be set together")
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            issues.append("Custom start time must be before end time")
        if (self.break_start is None) != (self.break_end is None):
            issues.append("Break start and end must be set together")
        if self.break_start and self.break_end and self.break_start >= self.break_end:
            issues.append("Break start must be before break end")
        if self.appointment_duration is not None and self.appointment_duration <= 0:
            issues.append("Appointment duration must be positive")
        if self.buffer_time is not None and self.buffer_time < 0:
            issues.append("Buffer time cannot be negative")
        if issues:
            raise InvalidConfigException(f"Invalid schedule override: {issues[0]}", issues=issues)

    @property
    def makes_unavailable(self) -> bool:
        return self.kind.makes_unavailable()

    @property
    def is_approved(self) -> bool:
        return self.status == OverrideStatus.APPROVED

    def covers(self, on_date: date) -> bool:
        """Check if the date falls inside the inclusive range."""
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= on_date <= self.end_date

    def is_in_effect(self, on_date: date) -> bool:
        """Approved and covering the date."""
        return self.is_approved and self.covers(on_date)

    # Workflow

    def approve(self, decided_by: str | None = None, note: str | None = None) -> None:
        self._decide(OverrideStatus.APPROVED, decided_by, note)

    def reject(self, decided_by: str | None = None, note: str | None = None) -> None:
        self._decide(OverrideStatus.REJECTED, decided_by, note)

    def cancel(self, decided_by: str | None = None, note: str | None = None) -> None:
        self._decide(OverrideStatus.CANCELLED, decided_by, note)

    def _decide(self, new_status: OverrideStatus, decided_by: str | None, note: str | None) -> None:
        if not self.status.can_transition_to(new_status):
            raise IllegalTransitionException(self.status, new_status, operation=f"{new_status.value}_override")
        self.status = new_status
        self.decided_by = decided_by
        self.decided_at = datetime.now(UTC)
        if note:
            self.decision_note = note
        self.touch()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "doctor_id": self.doctor_id,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "kind": self.kind.value,
            "status": self.status.value,
            "reason": self.reason,
            "start_time": format_hhmm(self.start_time) if self.start_time else None,
            "end_time": format_hhmm(self.end_time) if self.end_time else None,
            "break_start": format_hhmm(self.break_start) if self.break_start else None,
            "break_end": format_hhmm(self.break_end) if self.break_end else None,
            "appointment_duration": self.appointment_duration,
            "buffer_time": self.buffer_time,
            "max_appointments": self.max_appointments,
            "decided_by": self.decided_by,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }
