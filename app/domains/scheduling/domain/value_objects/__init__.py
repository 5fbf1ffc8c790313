"""
Scheduling Domain Value Objects

Immutable value objects for the scheduling domain.
"""

from app.domains.scheduling.domain.value_objects.appointment_status import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    AppointmentStatus,
    BookingSource,
    DayOfWeek,
    OverrideKind,
    OverrideStatus,
    RecurrencePattern,
    TransitionActor,
)
from app.domains.scheduling.domain.value_objects.conflict import (
    Conflict,
    ConflictKind,
    ConflictSeverity,
    sort_conflicts,
)
from app.domains.scheduling.domain.value_objects.effective_day import (
    EffectiveDay,
    EffectiveDaySource,
)
from app.domains.scheduling.domain.value_objects.policy import SchedulingPolicy
from app.domains.scheduling.domain.value_objects.time_window import (
    MINUTES_PER_DAY,
    TimeWindow,
    format_hhmm,
    from_minutes,
    intervals_overlap,
    parse_hhmm,
    to_minutes,
)

__all__ = [
    # Statuses
    "AppointmentStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "TransitionActor",
    "BookingSource",
    "DayOfWeek",
    "RecurrencePattern",
    "OverrideKind",
    "OverrideStatus",
    # Conflicts
    "Conflict",
    "ConflictKind",
    "ConflictSeverity",
    "sort_conflicts",
    # Effective day
    "EffectiveDay",
    "EffectiveDaySource",
    # Policy
    "SchedulingPolicy",
    # Time
    "TimeWindow",
    "MINUTES_PER_DAY",
    "to_minutes",
    "from_minutes",
    "parse_hhmm",
    "format_hhmm",
    "intervals_overlap",
]
