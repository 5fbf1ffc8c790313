"""
Scheduling Application DTOs
"""

from app.domains.scheduling.application.dto.scheduling_dtos import (
    ILLEGAL_TRANSITION,
    INVALID_CONFIG,
    NOT_CONFIGURED,
    NOT_FOUND,
    PERSISTENCE_ERROR,
    SCHEDULING_CONFLICT,
    VALIDATION_ERROR,
    AvailableSlotsResult,
    BookAppointmentRequest,
    ConflictCheckResult,
    DaySummaryResult,
    NextAvailableResult,
    OverrideRequest,
    OverrideResult,
    SchedulingResult,
    TemplateUpdateResult,
    UseCaseResult,
)

__all__ = [
    # Requests
    "BookAppointmentRequest",
    "OverrideRequest",
    # Results
    "UseCaseResult",
    "SchedulingResult",
    "AvailableSlotsResult",
    "ConflictCheckResult",
    "NextAvailableResult",
    "DaySummaryResult",
    "TemplateUpdateResult",
    "OverrideResult",
    # Result codes
    "SCHEDULING_CONFLICT",
    "NOT_CONFIGURED",
    "INVALID_CONFIG",
    "ILLEGAL_TRANSITION",
    "NOT_FOUND",
    "VALIDATION_ERROR",
    "PERSISTENCE_ERROR",
]
