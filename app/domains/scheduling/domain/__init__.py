"""
Scheduling Domain Layer

Core business rules of the scheduling bounded context, following
Domain-Driven Design (DDD) principles.

Components:
- Entities: WorkingDayTemplate, ScheduleOverride, Appointment (aggregate root)
- Value Objects: TimeWindow, EffectiveDay, Conflict, SchedulingPolicy, statuses
- Domain Services: EffectiveHoursResolver, SlotGenerator, ConflictDetector,
  BookingStateMachine, ScheduleTemplateValidator
"""

from app.domains.scheduling.domain.entities import (
    Appointment,
    ScheduleOverride,
    WorkingDayTemplate,
)
from app.domains.scheduling.domain.events import (
    AppointmentBooked,
    AppointmentCancelled,
    AppointmentEvent,
    AppointmentRescheduled,
    AppointmentStatusChanged,
)
from app.domains.scheduling.domain.exceptions import (
    IllegalTransitionException,
    InvalidConfigException,
    NotConfiguredException,
    SchedulingConflictException,
    SlotAlreadyTakenException,
)
from app.domains.scheduling.domain.services import (
    BookingStateMachine,
    ConflictDetector,
    EffectiveHoursResolver,
    ScheduleTemplateValidator,
    SlotGenerator,
    TimeSlot,
)
from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    BookingSource,
    Conflict,
    ConflictKind,
    ConflictSeverity,
    DayOfWeek,
    EffectiveDay,
    EffectiveDaySource,
    OverrideKind,
    OverrideStatus,
    RecurrencePattern,
    SchedulingPolicy,
    TimeWindow,
    TransitionActor,
)

__all__ = [
    # Entities
    "Appointment",
    "ScheduleOverride",
    "WorkingDayTemplate",
    # Events
    "AppointmentEvent",
    "AppointmentBooked",
    "AppointmentStatusChanged",
    "AppointmentRescheduled",
    "AppointmentCancelled",
    # Exceptions
    "NotConfiguredException",
    "InvalidConfigException",
    "SchedulingConflictException",
    "IllegalTransitionException",
    "SlotAlreadyTakenException",
    # Services
    "EffectiveHoursResolver",
    "SlotGenerator",
    "TimeSlot",
    "ConflictDetector",
    "BookingStateMachine",
    "ScheduleTemplateValidator",
    # Value Objects
    "AppointmentStatus",
    "BookingSource",
    "TransitionActor",
    "DayOfWeek",
    "RecurrencePattern",
    "OverrideKind",
    "OverrideStatus",
    "Conflict",
    "ConflictKind",
    "ConflictSeverity",
    "EffectiveDay",
    "EffectiveDaySource",
    "SchedulingPolicy",
    "TimeWindow",
]
