"""
Scheduling Policy Value Object

Immutable bundle of the tunable scheduling rules. A policy instance is built
from settings (or per tenant) and handed to each service that needs it.
"""

from dataclasses import dataclass
from datetime import time

from app.core.domain import ValueObject


@dataclass(frozen=True)
class SchedulingPolicy(ValueObject):
    """
    Tunable scheduling rules.

    Example:
        ```python
        policy = SchedulingPolicy(advisory_enabled=True, advisory_confidence_threshold=0.8)
        validator = ScheduleTemplateValidator(policy)
        ```
    """

    # Template validation bounds
    min_appointment_duration: int = 15
    max_appointment_duration: int = 480
    max_buffer_time: int = 60
    min_break_minutes: int = 15
    max_break_minutes: int = 120
    min_working_hours: int = 1
    max_working_hours: int = 16
    business_hours_start: time = time(6, 0)
    business_hours_end: time = time(22, 0)
    max_appointments_per_day: int = 32

    # Defaults for days without a template row
    default_appointment_duration: int = 30
    default_timezone: str = "UTC"

    # Advisory booking
    advisory_enabled: bool = False
    advisory_confidence_threshold: float = 0.7

    # Side effects and lookups
    reminder_offsets_hours: tuple[int, ...] = (24, 2)
    next_available_search_days: int = 30
    template_impact_days: int = 28

    def _validate(self) -> None:
        if not 0.0 <= self.advisory_confidence_threshold <= 1.0:
            raise ValueError("Advisory confidence threshold must be between 0 and 1")
        if self.min_appointment_duration <= 0 or self.min_appointment_duration > self.max_appointment_duration:
            raise ValueError("Invalid appointment duration bounds")
        if self.business_hours_start >= self.business_hours_end:
            raise ValueError("Business hours start must be before end")
        if any(offset <= 0 for offset in self.reminder_offsets_hours):
            raise ValueError("Reminder offsets must be positive hours")
        if self.next_available_search_days <= 0:
            raise ValueError("Next-available search window must be positive")
