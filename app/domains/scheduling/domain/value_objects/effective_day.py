"""
Effective Day Value Object

The single resolved working-hours configuration for one doctor on one date.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Any

from app.core.domain import StatusEnum, ValueObject

from .time_window import TimeWindow, format_hhmm


class EffectiveDaySource(StatusEnum):
    """Which configuration won the precedence resolution."""

    LEAVE = "leave"
    OVERRIDE = "override"
    TEMPLATE = "template"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class EffectiveDay(ValueObject):
    """
    Resolved hours for a doctor on a concrete date.

    ``appointment_duration`` is carried as configured; the slot generator
    rejects non-positive values instead of this object.
    """

    doctor_id: int
    day: date
    source: EffectiveDaySource
    is_working: bool
    start_time: time | None = None
    end_time: time | None = None
    break_start: time | None = None
    break_end: time | None = None
    appointment_duration: int = 30
    buffer_time: int = 0
    max_appointments: int | None = None
    timezone: str = "UTC"
    template_id: int | None = None
    override_id: int | None = None
    reason: str | None = None

    def _validate(self) -> None:
        if self.is_working and (self.start_time is None or self.end_time is None):
            raise ValueError("A working day needs both start and end time")
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("Break start and end must be set together")

    @classmethod
    def unavailable(
        cls,
        doctor_id: int,
        day: date,
        timezone: str = "UTC",
        reason: str | None = None,
        template_id: int | None = None,
    ) -> "EffectiveDay":
        """Non-working day with no leave involved."""
        return cls(
            doctor_id=doctor_id,
            day=day,
            source=EffectiveDaySource.UNAVAILABLE,
            is_working=False,
            timezone=timezone,
            template_id=template_id,
            reason=reason,
        )

    @classmethod
    def on_leave(
        cls,
        doctor_id: int,
        day: date,
        override_id: int | None,
        timezone: str = "UTC",
        reason: str | None = None,
    ) -> "EffectiveDay":
        """Day blocked by an approved leave or unavailability override."""
        return cls(
            doctor_id=doctor_id,
            day=day,
            source=EffectiveDaySource.LEAVE,
            is_working=False,
            timezone=timezone,
            override_id=override_id,
            reason=reason,
        )

    @property
    def is_leave(self) -> bool:
        return self.source == EffectiveDaySource.LEAVE

    @property
    def working_window(self) -> TimeWindow | None:
        if not self.is_working or self.start_time is None or self.end_time is None:
            return None
        return TimeWindow(start=self.start_time, end=self.end_time)

    @property
    def break_window(self) -> TimeWindow | None:
        if self.break_start is None or self.break_end is None:
            return None
        return TimeWindow(start=self.break_start, end=self.break_end)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "doctor_id": self.doctor_id,
            "date": self.day.isoformat(),
            "source": self.source.value,
            "is_working": self.is_working,
            "start_time": format_hhmm(self.start_time) if self.start_time else None,
            "end_time": format_hhmm(self.end_time) if self.end_time else None,
            "break_start": format_hhmm(self.break_start) if self.break_start else None,
            "break_end": format_hhmm(self.break_end) if self.break_end else None,
            "appointment_duration": self.appointment_duration,
            "buffer_time": self.buffer_time,
            "max_appointments": self.max_appointments,
            "timezone": self.timezone,
            "reason": self.reason,
        }
