"""
Scheduling Domain Services

Stateless domain services encapsulating the scheduling rules.
"""

from app.domains.scheduling.domain.services.booking_state_machine import BookingStateMachine
from app.domains.scheduling.domain.services.conflict_detector import ConflictDetector
from app.domains.scheduling.domain.services.effective_hours import EffectiveHoursResolver
from app.domains.scheduling.domain.services.slot_generator import SlotGenerator, TimeSlot
from app.domains.scheduling.domain.services.template_validator import ScheduleTemplateValidator

__all__ = [
    "EffectiveHoursResolver",
    "SlotGenerator",
    "TimeSlot",
    "ConflictDetector",
    "BookingStateMachine",
    "ScheduleTemplateValidator",
]
