"""
Working Day Template Entity

Recurring per-weekday working-hours configuration of a doctor.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Any

from app.core.domain import Entity

from ..exceptions import InvalidConfigException
from ..value_objects import (
    DayOfWeek,
    RecurrencePattern,
    TimeWindow,
    format_hhmm,
)


@dataclass
class WorkingDayTemplate(Entity[int]):
    """
    Weekly template row for one doctor and one weekday.

    At most one row per (doctor_id, day_of_week) is active; saving a new row
    deactivates the previous one.

    Example:
        ```python
        monday = WorkingDayTemplate(
            doctor_id=7,
            day_of_week=DayOfWeek.MONDAY,
            start_time=time(9, 0),
            end_time=time(17, 0),
            break_start=time(12, 0),
            break_end=time(13, 0),
            appointment_duration=30,
        )
        monday.applies_on(date(2024, 1, 15))  # True, it is a Monday
        ```
    """

    doctor_id: int = 0
    day_of_week: DayOfWeek = DayOfWeek.MONDAY
    is_working: bool = True

    # Hours (local wall-clock in `timezone`)
    start_time: time | None = None
    end_time: time | None = None
    break_start: time | None = None
    break_end: time | None = None

    # Slot grid
    appointment_duration: int = 30
    buffer_time: int = 0
    max_appointments_per_day: int = 16
    timezone: str = "UTC"

    # Recurrence window
    recurrence: RecurrencePattern = RecurrencePattern.WEEKLY
    effective_from: date | None = None
    effective_until: date | None = None

    is_active: bool = True

    def __post_init__(self):
        """Enforce structural invariants."""
        issues = self.structural_issues()
        if issues:
            raise InvalidConfigException(
                f"Invalid working-hours template for {self.day_of_week.value}: {issues[0]}",
                issues=issues,
                details={"doctor_id": self.doctor_id, "day_of_week": self.day_of_week.value},
            )

    def structural_issues(self) -> list[str]:
        """Invariants every template must satisfy regardless of policy."""
        issues: list[str] = []
        if self.appointment_duration <= 0:
            issues.append("Appointment duration must be positive")
        if self.buffer_time < 0:
            issues.append("Buffer time cannot be negative")
        if self.max_appointments_per_day < 0:
            issues.append("Max appointments per day cannot be negative")
        if self.effective_from and self.effective_until and self.effective_from > self.effective_until:
            issues.append("effective_from must not be after effective_until")
        if (self.break_start is None) != (self.break_end is None):
            issues.append("Break start and end must be set together")

        if not self.is_working:
            return issues

        if self.start_time is None or self.end_time is None:
            issues.append("Working days need start and end time")
            return issues
        if self.start_time >= self.end_time:
            issues.append("Start time must be before end time")
            return issues
        if self.break_start is not None and self.break_end is not None:
            if not (self.start_time <= self.break_start < self.break_end <= self.end_time):
                issues.append("Break must lie inside working hours and start before it ends")
        return issues

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

    def is_in_effect(self, on_date: date) -> bool:
        """Check the effective_from / effective_until window."""
        if self.effective_from and on_date < self.effective_from:
            return False
        if self.effective_until and on_date > self.effective_until:
            return False
        return True

    def applies_on(self, on_date: date) -> bool:
        """Check weekday, effective window and recurrence for a concrete date."""
        if DayOfWeek.from_date(on_date) != self.day_of_week:
            return False
        if not self.is_in_effect(on_date):
            return False
        return self._recurrence_matches(on_date)

    def _recurrence_matches(self, on_date: date) -> bool:
        if self.recurrence == RecurrencePattern.BIWEEKLY:
            if self.effective_from:
                weeks = (on_date - self.effective_from).days // 7
                return weeks % 2 == 0
            return on_date.isocalendar()[1] % 2 == 0
        if self.recurrence == RecurrencePattern.MONTHLY:
            ordinal = (on_date.day - 1) // 7
            if self.effective_from:
                return ordinal == (self.effective_from.day - 1) // 7
            return ordinal == 0
        # WEEKLY, DAILY and CUSTOM rows apply on every matching weekday
        return True

    def deactivate(self) -> None:
        """Mark row as superseded by a newer template."""
        self.is_active = False
        self.touch()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "doctor_id": self.doctor_id,
            "day_of_week": self.day_of_week.value,
            "is_working": self.is_working,
            "start_time": format_hhmm(self.start_time) if self.start_time else None,
            "end_time": format_hhmm(self.end_time) if self.end_time else None,
            "break_start": format_hhmm(self.break_start) if self.break_start else None,
            "break_end": format_hhmm(self.break_end) if self.break_end else None,
            "appointment_duration": self.appointment_duration,
            "buffer_time": self.buffer_time,
            "max_appointments_per_day": self.max_appointments_per_day,
            "timezone": self.timezone,
            "recurrence": self.recurrence.value,
            "effective_from": self.effective_from.isoformat() if self.effective_from else None,
            "effective_until": self.effective_until.isoformat() if self.effective_until else None,
            "is_active": self.is_active,
        }
