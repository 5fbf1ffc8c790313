"""
Time Window Value Object

Half-open wall-clock interval [start, end) inside a single calendar day,
plus the minute arithmetic helpers the scheduling services share.
"""

import re
from dataclasses import dataclass
from datetime import time

from app.core.domain import ValueObject

MINUTES_PER_DAY = 24 * 60

_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def to_minutes(value: time) -> int:
    """Minutes since midnight, ignoring seconds."""
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    """Build a wall-clock time from minutes since midnight."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minute offset {minutes} is outside a single day")
    return time(minutes // 60, minutes % 60)


def parse_hhmm(value: str) -> time:
    """
    Parse a strict "HH:MM" string.

    Args:
        value: Time string such as "09:30"

    Returns:
        Parsed time

    Raises:
        ValueError: If the string is not a valid 24h "HH:MM" time
    """
    match = _HHMM_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time format '{value}', expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value: time) -> str:
    """Format a time as "HH:MM"."""
    return value.strftime("%H:%M")


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval intersection on minute offsets."""
    return start_a < end_b and start_b < end_a


@dataclass(frozen=True)
class TimeWindow(ValueObject):
    """
    Wall-clock window [start, end).

    Example:
        ```python
        morning = TimeWindow(start=time(9, 0), end=time(12, 0))
        slot = TimeWindow.starting_at(time(11, 30), 30)
        morning.contains(slot)  # True
        ```
    """

    start: time
    end: time

    def _validate(self) -> None:
        """Validate window bounds."""
        if self.start >= self.end:
            raise ValueError("Start time must be before end time")

    @classmethod
    def starting_at(cls, start: time, minutes: int) -> "TimeWindow":
        """Window of the given length; raises ValueError if it would cross midnight."""
        if minutes <= 0:
            raise ValueError("Duration must be positive")
        return cls(start=start, end=from_minutes(to_minutes(start) + minutes))

    @property
    def start_minute(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minute(self) -> int:
        return to_minutes(self.end)

    @property
    def minutes(self) -> int:
        """Length of the window in minutes."""
        return self.end_minute - self.start_minute

    def overlaps_with(self, other: "TimeWindow") -> bool:
        """Check if the window intersects another one."""
        return intervals_overlap(self.start_minute, self.end_minute, other.start_minute, other.end_minute)

    def contains(self, other: "TimeWindow") -> bool:
        """Check if the other window lies fully inside this one."""
        return self.start_minute <= other.start_minute and other.end_minute <= self.end_minute

    def __str__(self) -> str:
        return f"{format_hhmm(self.start)} - {format_hhmm(self.end)}"
