"""
Scheduling API Routes

FastAPI router for doctor availability, working hours and appointment booking.
"""

from datetime import date, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.domains.scheduling.api.dependencies import get_availability_service
from app.domains.scheduling.api.schemas import (
    AppointmentCreateRequest,
    AppointmentResponse,
    CancelRequest,
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictResponse,
    DaySummaryResponse,
    EffectiveHoursResponse,
    NextAvailableResponse,
    OverrideCreateRequest,
    OverrideDecisionRequest,
    OverrideResponse,
    RescheduleRequest,
    SchedulingResponse,
    SlotsResponse,
    StatusChangeRequest,
    TemplateRequest,
    TemplateResponse,
    TemplateUpdateResponse,
    TimeSlotResponse,
)
from app.domains.scheduling.application.dto import (
    ILLEGAL_TRANSITION,
    INVALID_CONFIG,
    NOT_CONFIGURED,
    NOT_FOUND,
    PERSISTENCE_ERROR,
    SCHEDULING_CONFLICT,
    VALIDATION_ERROR,
    BookAppointmentRequest,
    OverrideRequest,
    UseCaseResult,
)
from app.domains.scheduling.application.services import AvailabilityService
from app.domains.scheduling.domain.entities import Appointment, ScheduleOverride, WorkingDayTemplate
from app.domains.scheduling.domain.exceptions import InvalidConfigException
from app.domains.scheduling.domain.value_objects import DayOfWeek

router = APIRouter(prefix="/scheduling", tags=["Scheduling"])

# Type alias for the facade dependency
AvailabilityServiceDep = Annotated[AvailabilityService, Depends(get_availability_service)]

_STATUS_BY_CODE = {
    NOT_FOUND: 404,
    SCHEDULING_CONFLICT: 409,
    ILLEGAL_TRANSITION: 409,
    NOT_CONFIGURED: 422,
    INVALID_CONFIG: 422,
    VALIDATION_ERROR: 400,
    PERSISTENCE_ERROR: 503,
}


def _raise_for_result(result: UseCaseResult) -> None:
    """Translate a failed facade result into an HTTPException."""
    if result.success:
        return

    detail: dict[str, Any] = {
        "error": result.error_code,
        "message": result.error_message,
        "retryable": result.retryable,
    }
    conflicts = getattr(result, "conflicts", None)
    if conflicts:
        detail["conflicts"] = [conflict.to_dict() for conflict in conflicts]
    issues = getattr(result, "issues", None)
    if issues:
        detail["issues"] = issues

    raise HTTPException(
        status_code=_STATUS_BY_CODE.get(result.error_code or "", 400),
        detail=detail,
    )


def _appointment_response(appointment: Appointment | None) -> AppointmentResponse:
    if appointment is None:
        raise HTTPException(status_code=500, detail="Appointment missing from successful result")
    return AppointmentResponse(**appointment.to_detail_dict())


def _override_response(override: ScheduleOverride | None) -> OverrideResponse:
    if override is None:
        raise HTTPException(status_code=500, detail="Override missing from successful result")
    return OverrideResponse(**override.to_dict())


# =============================================================================
# Availability
# =============================================================================


@router.get("/doctors/{doctor_id}/effective-hours", response_model=EffectiveHoursResponse)
async def get_effective_hours(
    doctor_id: int,
    service: AvailabilityServiceDep,
    on_date: Annotated[date, Query(alias="date")],
):
    """Resolved working hours of a doctor on a date."""
    result = await service.get_effective_hours(doctor_id, on_date)
    _raise_for_result(result)
    return EffectiveHoursResponse(**result.data.to_dict())


@router.get("/doctors/{doctor_id}/slots", response_model=SlotsResponse)
async def get_available_slots(
    doctor_id: int,
    service: AvailabilityServiceDep,
    on_date: Annotated[date, Query(alias="date")],
    duration: Annotated[int | None, Query(gt=0)] = None,
    only_available: bool = False,
):
    """List the slot grid of a doctor for one date."""
    result = await service.get_available_slots(doctor_id, on_date, duration, only_available)
    _raise_for_result(result)

    return SlotsResponse(
        doctor_id=doctor_id,
        date=on_date,
        source=result.effective_day.source.value if result.effective_day else "default",
        slots=[TimeSlotResponse(**slot.to_dict()) for slot in result.slots],
    )


@router.get("/doctors/{doctor_id}/next-available", response_model=NextAvailableResponse)
async def find_next_available(
    doctor_id: int,
    service: AvailabilityServiceDep,
    after: datetime | None = None,
    within_days: Annotated[int | None, Query(gt=0, le=365)] = None,
    duration: Annotated[int | None, Query(gt=0)] = None,
):
    """First available slot at or after a moment (now by default)."""
    result = await service.find_next_available(doctor_id, after or datetime.now(), within_days, duration)
    _raise_for_result(result)

    return NextAvailableResponse(
        doctor_id=doctor_id,
        slot=TimeSlotResponse(**result.slot.to_dict()) if result.slot else None,
        days_searched=result.days_searched,
    )


@router.get("/doctors/{doctor_id}/summary", response_model=DaySummaryResponse)
async def get_day_summary(
    doctor_id: int,
    service: AvailabilityServiceDep,
    on_date: Annotated[date, Query(alias="date")],
):
    """Slot utilization and status breakdown for one date."""
    result = await service.get_day_summary(doctor_id, on_date)
    _raise_for_result(result)
    return DaySummaryResponse(**result.to_dict())


@router.post("/conflicts/check", response_model=ConflictCheckResponse)
async def check_conflicts(request: ConflictCheckRequest, service: AvailabilityServiceDep):
    """Read-only conflict check for a proposed appointment."""
    result = await service.check_conflicts(
        request.doctor_id,
        request.date,
        request.start_time,
        request.duration_minutes,
        request.exclude_appointment_id,
    )
    _raise_for_result(result)

    return ConflictCheckResponse(
        has_conflicts=result.has_conflicts,
        conflicts=[ConflictResponse(**conflict.to_dict()) for conflict in result.conflicts],
    )


# =============================================================================
# Working hours
# =============================================================================


@router.get("/doctors/{doctor_id}/templates", response_model=list[TemplateResponse])
async def list_templates(doctor_id: int, service: AvailabilityServiceDep):
    """Active weekly templates of a doctor."""
    result = await service.list_templates(doctor_id)
    _raise_for_result(result)
    return [TemplateResponse(**template.to_dict()) for template in result.data]


@router.put("/doctors/{doctor_id}/templates/{day_of_week}", response_model=TemplateUpdateResponse)
async def upsert_template(
    doctor_id: int,
    day_of_week: DayOfWeek,
    request: TemplateRequest,
    service: AvailabilityServiceDep,
):
    """Create or replace the weekly template for one weekday."""
    try:
        template = WorkingDayTemplate(doctor_id=doctor_id, day_of_week=day_of_week, **request.model_dump())
    except InvalidConfigException as e:
        raise HTTPException(
            status_code=422,
            detail={"error": INVALID_CONFIG, "message": e.message, "issues": e.issues},
        ) from e

    result = await service.update_template(template)
    _raise_for_result(result)
    assert result.template is not None

    return TemplateUpdateResponse(
        template=TemplateResponse(**result.template.to_dict()),
        diagnostics=[ConflictResponse(**conflict.to_dict()) for conflict in result.diagnostics],
    )


@router.get("/doctors/{doctor_id}/overrides", response_model=list[OverrideResponse])
async def list_overrides(
    doctor_id: int,
    service: AvailabilityServiceDep,
    start_date: date | None = None,
    end_date: date | None = None,
):
    """Overrides of a doctor, optionally limited to a date range."""
    result = await service.list_overrides(doctor_id, start_date, end_date)
    _raise_for_result(result)
    return [_override_response(override) for override in result.data]


@router.post(
    "/doctors/{doctor_id}/overrides",
    response_model=OverrideResponse,
    status_code=201,
)
async def request_override(doctor_id: int, request: OverrideCreateRequest, service: AvailabilityServiceDep):
    """Request a dated override (leave, custom hours, ...). Starts PENDING."""
    result = await service.request_override(OverrideRequest(doctor_id=doctor_id, **request.model_dump()))
    _raise_for_result(result)
    return _override_response(result.override)


@router.post("/overrides/{override_id}/approve", response_model=OverrideResponse)
async def approve_override(override_id: int, request: OverrideDecisionRequest, service: AvailabilityServiceDep):
    result = await service.approve_override(override_id, request.decided_by)
    _raise_for_result(result)
    return _override_response(result.override)


@router.post("/overrides/{override_id}/reject", response_model=OverrideResponse)
async def reject_override(override_id: int, request: OverrideDecisionRequest, service: AvailabilityServiceDep):
    result = await service.reject_override(override_id, request.decided_by, request.reason)
    _raise_for_result(result)
    return _override_response(result.override)


@router.post("/overrides/{override_id}/cancel", response_model=OverrideResponse)
async def cancel_override(override_id: int, request: OverrideDecisionRequest, service: AvailabilityServiceDep):
    result = await service.cancel_override(override_id, request.decided_by)
    _raise_for_result(result)
    return _override_response(result.override)


# =============================================================================
# Appointments
# =============================================================================


@router.post("/appointments", response_model=SchedulingResponse, status_code=201)
async def book_appointment(
    request: AppointmentCreateRequest,
    response: Response,
    service: AvailabilityServiceDep,
):
    """Book an appointment. Repeating a request_id returns the original booking."""
    booking = BookAppointmentRequest(
        doctor_id=request.doctor_id,
        patient_id=request.patient_id,
        appointment_date=request.appointment_date,
        start_time=request.start_time,
        duration_minutes=request.duration_minutes,
        appointment_type=request.appointment_type,
        reason=request.reason,
        actor=request.actor,
        request_id=request.request_id,
    )
    if request.use_advisory:
        result = await service.book_with_strategies(booking)
    else:
        result = await service.book(booking)
    _raise_for_result(result)

    if result.replayed:
        response.status_code = 200
    return SchedulingResponse(appointment=_appointment_response(result.appointment), replayed=result.replayed)


@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(appointment_id: int, service: AvailabilityServiceDep):
    result = await service.get_appointment(appointment_id)
    _raise_for_result(result)
    return _appointment_response(result.appointment)


@router.post("/appointments/{appointment_id}/reschedule", response_model=SchedulingResponse)
async def reschedule_appointment(
    appointment_id: int,
    request: RescheduleRequest,
    service: AvailabilityServiceDep,
):
    """Move a scheduled appointment to a new date and time."""
    result = await service.reschedule(appointment_id, request.new_date, request.new_time, request.actor)
    _raise_for_result(result)
    return SchedulingResponse(appointment=_appointment_response(result.appointment))


@router.post("/appointments/{appointment_id}/cancel", response_model=SchedulingResponse)
async def cancel_appointment(
    appointment_id: int,
    request: CancelRequest,
    service: AvailabilityServiceDep,
):
    """Cancel an appointment. Cancelling twice is not an error."""
    result = await service.cancel(appointment_id, request.reason, request.cancelled_by)
    _raise_for_result(result)
    return SchedulingResponse(appointment=_appointment_response(result.appointment))


@router.post("/appointments/{appointment_id}/status", response_model=SchedulingResponse)
async def change_appointment_status(
    appointment_id: int,
    request: StatusChangeRequest,
    service: AvailabilityServiceDep,
):
    """Drive a lifecycle transition (confirm, start, complete, no-show)."""
    result = await service.transition(appointment_id, request.status, request.actor)
    _raise_for_result(result)
    return SchedulingResponse(appointment=_appointment_response(result.appointment))
