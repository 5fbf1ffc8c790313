"""
Scheduling Application Services
"""

from app.domains.scheduling.application.services.availability_service import AvailabilityService
from app.domains.scheduling.application.services.booking_locks import BookingLockRegistry
from app.domains.scheduling.application.services.event_dispatcher import (
    BackgroundEventDispatcher,
    register_side_effect_handlers,
)
from app.domains.scheduling.application.services.working_hours_registry import WorkingHoursRegistry

__all__ = [
    "AvailabilityService",
    "WorkingHoursRegistry",
    "BookingLockRegistry",
    "BackgroundEventDispatcher",
    "register_side_effect_handlers",
]
