"""
Availability Service

Facade for every scheduling operation. Combines the working-hours registry,
slot generation, conflict detection and the booking state machine behind
async methods returning typed results. Domain errors are converted to
results here and never propagate to callers.
"""

import asyncio
import logging
from dataclasses import fields
from datetime import date, datetime, time, timedelta
from typing import Any, TypeVar

from app.core.domain import (
    DomainEvent,
    DomainEventPublisher,
    EntityNotFoundException,
    PersistenceException,
    ValidationException,
)
from app.domains.scheduling.application.dto import (
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
from app.domains.scheduling.application.ports import IAppointmentRepository, ISlotAdvisor
from app.domains.scheduling.application.services.booking_locks import BookingLockRegistry
from app.domains.scheduling.application.services.event_dispatcher import BackgroundEventDispatcher
from app.domains.scheduling.application.services.working_hours_registry import WorkingHoursRegistry
from app.domains.scheduling.application.strategies import (
    AdvisoryBookingStrategy,
    BookingStrategyChain,
    DeterministicBookingStrategy,
)
from app.domains.scheduling.domain.entities import Appointment, WorkingDayTemplate
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
    SlotGenerator,
    TimeSlot,
)
from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    Conflict,
    ConflictKind,
    EffectiveDay,
    SchedulingPolicy,
    TransitionActor,
    format_hhmm,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=UseCaseResult)


class AvailabilityService:
    """
    Scheduling facade.

    Bookings, reschedules, cancellations and status transitions validate and
    commit inside a per (doctor, date) critical section. Events are published
    on background tasks after the commit.

    Example:
        ```python
        service = AvailabilityService(registry, appointment_repository)
        result = await service.book(
            BookAppointmentRequest(
                doctor_id=7,
                patient_id=42,
                appointment_date=date(2024, 1, 15),
                start_time=time(9, 0),
            )
        )
        if not result.success:
            print(result.error_code, [c.kind for c in result.conflicts])
        ```
    """

    def __init__(
        self,
        registry: WorkingHoursRegistry,
        appointment_repository: IAppointmentRepository,
        dispatcher: BackgroundEventDispatcher | None = None,
        policy: SchedulingPolicy | None = None,
        locks: BookingLockRegistry | None = None,
        advisor: ISlotAdvisor | None = None,
    ):
        """
        Initialize service with dependencies.

        Args:
            registry: Working-hours registry
            appointment_repository: Appointment storage
            dispatcher: Background event dispatcher (events are dropped when its publisher has no handlers)
            policy: Scheduling rules
            locks: Booking lock registry; share one instance across services using the same storage
            advisor: Optional slot advisor for the advisory booking strategy
        """
        self.registry = registry
        self.appointments = appointment_repository
        self.policy = policy or registry.policy
        self.dispatcher = dispatcher or BackgroundEventDispatcher(DomainEventPublisher())
        self.locks = locks or BookingLockRegistry()
        self.slot_generator = SlotGenerator()
        self.detector = ConflictDetector()
        self.machine = BookingStateMachine()
        self.strategy_chain = BookingStrategyChain(
            [
                AdvisoryBookingStrategy(advisor, self.policy),
                DeterministicBookingStrategy(),
            ]
        )

    # =========================================================================
    # Availability queries
    # =========================================================================

    async def get_effective_hours(self, doctor_id: int, on_date: date) -> UseCaseResult:
        """Resolved working hours of a doctor on a date (``data`` is an EffectiveDay)."""
        try:
            day = await self.registry.effective_hours(doctor_id, on_date)
            return UseCaseResult.ok(data=day)
        except Exception as e:
            return self._failure(UseCaseResult, e, "get_effective_hours")

    async def get_available_slots(
        self,
        doctor_id: int,
        on_date: date,
        duration: int | None = None,
        only_available: bool = False,
    ) -> AvailableSlotsResult:
        """
        Generate the slot grid for one doctor and date.

        Args:
            doctor_id: Doctor ID
            on_date: Date to list
            duration: Optional slot length, at most the configured appointment duration
            only_available: Drop booked and unavailable slots

        Returns:
            AvailableSlotsResult with ordered slots
        """
        try:
            day = await self.registry.effective_hours(doctor_id, on_date)
            self._validate_duration_override(day, duration)
            appointments = await self.appointments.find_by_doctor_and_date(doctor_id, on_date)
            slots = self.slot_generator.generate(day, appointments, duration)
            if only_available:
                slots = [slot for slot in slots if slot.is_available]
            return AvailableSlotsResult.ok(slots=slots, effective_day=day)
        except Exception as e:
            return self._failure(AvailableSlotsResult, e, "get_available_slots")

    async def check_conflicts(
        self,
        doctor_id: int,
        on_date: date,
        start_time: time,
        duration: int | None = None,
        exclude_appointment_id: int | None = None,
    ) -> ConflictCheckResult:
        """Read-only conflict check for a proposed interval."""
        try:
            day = await self.registry.effective_hours(doctor_id, on_date)
            length = self._booking_duration(day, duration)
            appointments = await self.appointments.find_by_doctor_and_date(doctor_id, on_date)
            conflicts = self.detector.check(day, start_time, length, appointments, exclude_appointment_id)
            return ConflictCheckResult.ok(conflicts=conflicts)
        except Exception as e:
            return self._failure(ConflictCheckResult, e, "check_conflicts")

    async def find_next_available(
        self,
        doctor_id: int,
        after: datetime | date,
        within_days: int | None = None,
        duration: int | None = None,
    ) -> NextAvailableResult:
        """
        Find the first available slot at or after a moment.

        Days whose hours cannot be resolved, or whose configured duration is
        shorter than the requested one, are skipped.
        """
        if isinstance(after, datetime):
            first_day, not_before = after.date(), after.time().replace(second=0, microsecond=0)
        else:
            first_day, not_before = after, time(0, 0)
        horizon = within_days or self.policy.next_available_search_days

        try:
            if duration is not None and duration <= 0:
                raise ValidationException(f"Duration must be positive, got {duration}", field="duration")
            if not await self.registry.is_configured(doctor_id):
                raise NotConfiguredException(doctor_id)

            for offset in range(horizon):
                day = first_day + timedelta(days=offset)
                slot = await self._first_available_on(doctor_id, day, duration, not_before if offset == 0 else None)
                if slot is not None:
                    return NextAvailableResult.ok(slot=slot, days_searched=offset + 1)
            return NextAvailableResult.ok(slot=None, days_searched=horizon)
        except Exception as e:
            return self._failure(NextAvailableResult, e, "find_next_available")

    async def get_day_summary(self, doctor_id: int, on_date: date) -> DaySummaryResult:
        """Slot utilization and status breakdown for one doctor and date."""
        try:
            day = await self.registry.effective_hours(doctor_id, on_date)
            appointments = await self.appointments.find_by_doctor_and_date(doctor_id, on_date)
            slots = self.slot_generator.generate(day, appointments)

            total = len(slots)
            booked = sum(1 for slot in slots if slot.is_booked)
            available = [slot for slot in slots if slot.is_available]
            status_counts: dict[str, int] = {}
            for appointment in appointments:
                status_counts[appointment.status.value] = status_counts.get(appointment.status.value, 0) + 1

            return DaySummaryResult.ok(
                doctor_id=doctor_id,
                day=on_date,
                is_working=day.is_working,
                total_slots=total,
                booked_slots=booked,
                available_slots=len(available),
                utilization_rate=round(booked / total * 100, 1) if total else 0.0,
                status_counts=status_counts,
                next_available=available[0] if available else None,
            )
        except Exception as e:
            return self._failure(DaySummaryResult, e, "get_day_summary")

    # =========================================================================
    # Booking lifecycle
    # =========================================================================

    async def book(self, request: BookAppointmentRequest) -> SchedulingResult:
        """
        Validate and commit a booking.

        A repeated ``request_id`` returns the stored appointment with
        ``replayed=True`` without validating again or emitting events.
        """
        try:
            async with self.locks.hold(request.doctor_id, request.appointment_date):
                if request.request_id:
                    existing = await self.appointments.find_by_request_id(request.request_id)
                    if existing is not None:
                        logger.info(f"Replaying booking request {request.request_id} (appointment {existing.id})")
                        return SchedulingResult.ok(appointment=existing, replayed=True)

                day = await self.registry.effective_hours(request.doctor_id, request.appointment_date)
                duration = self._booking_duration(day, request.duration_minutes)
                booked = await self.appointments.find_by_doctor_and_date(request.doctor_id, request.appointment_date)
                conflicts = self.detector.check(day, request.start_time, duration, booked)
                if conflicts:
                    raise SchedulingConflictException(conflicts)

                appointment = self.machine.create(
                    doctor_id=request.doctor_id,
                    patient_id=request.patient_id,
                    appointment_date=request.appointment_date,
                    start_time=request.start_time,
                    duration_minutes=duration,
                    actor=request.actor,
                    appointment_type=request.appointment_type,
                    reason=request.reason,
                    timezone=day.timezone,
                    request_id=request.request_id,
                    booking_source=request.booking_source,
                    advisory_confidence=request.advisory_confidence,
                )
                saved = await self.appointments.add(appointment)
                self.machine.record_booking(saved, request.actor)
                events = saved.pull_domain_events()

            logger.info(
                f"Appointment {saved.id} booked for doctor {saved.doctor_id} on "
                f"{saved.appointment_date} at {format_hhmm(saved.start_time)} ({saved.status.value})"
            )
            self._dispatch(events)
            return SchedulingResult.ok(appointment=saved)
        except Exception as e:
            return self._failure(SchedulingResult, e, "book")

    async def book_with_strategies(self, request: BookAppointmentRequest, use_advisory: bool = True) -> SchedulingResult:
        """Book through the strategy chain: advisory first (when enabled), deterministic last."""
        return await self.strategy_chain.book(self, request, use_advisory=use_advisory)

    async def reschedule(
        self,
        appointment_id: int,
        new_date: date,
        new_time: time,
        actor: TransitionActor = TransitionActor.SYSTEM,
    ) -> SchedulingResult:
        """
        Move a SCHEDULED appointment. Either fully applied or storage is left untouched.
        """
        try:
            appointment = await self._get_appointment(appointment_id)
            keys = [(appointment.doctor_id, appointment.appointment_date), (appointment.doctor_id, new_date)]
            async with self.locks.hold_many(keys):
                current = await self._get_appointment(appointment_id)
                if current.appointment_date != appointment.appointment_date:
                    raise PersistenceException("reschedule", RuntimeError("Appointment moved concurrently"))

                self.machine.ensure_reschedulable(current)
                day = await self.registry.effective_hours(current.doctor_id, new_date)
                booked = await self.appointments.find_by_doctor_and_date(current.doctor_id, new_date)
                conflicts = self.detector.check(
                    day,
                    new_time,
                    current.duration_minutes,
                    booked,
                    exclude_appointment_id=current.id,
                )
                if conflicts:
                    raise SchedulingConflictException(conflicts)

                self.machine.reschedule(current, new_date, new_time, actor)
                saved = await self.appointments.update(current)
                events = current.pull_domain_events()

            logger.info(f"Appointment {saved.id} rescheduled to {new_date} at {format_hhmm(new_time)}")
            self._dispatch(events)
            return SchedulingResult.ok(appointment=saved)
        except Exception as e:
            return self._failure(SchedulingResult, e, "reschedule")

    async def cancel(
        self,
        appointment_id: int,
        reason: str | None = None,
        cancelled_by: TransitionActor = TransitionActor.SYSTEM,
    ) -> SchedulingResult:
        """
        Cancel an appointment. Idempotent; once started it completes even if
        the caller is cancelled.
        """
        return await asyncio.shield(self._cancel(appointment_id, reason, cancelled_by))

    async def _cancel(self, appointment_id: int, reason: str | None, actor: TransitionActor) -> SchedulingResult:
        try:
            appointment = await self._get_appointment(appointment_id)
            async with self.locks.hold(appointment.doctor_id, appointment.appointment_date):
                current = await self._get_appointment(appointment_id)
                if not self.machine.cancel(current, reason=reason, actor=actor):
                    logger.info(f"Appointment {appointment_id} already cancelled")
                    return SchedulingResult.ok(appointment=current)
                saved = await self.appointments.update(current)
                events = current.pull_domain_events()

            logger.info(f"Appointment {saved.id} cancelled by {actor.value}")
            self._dispatch(events)
            return SchedulingResult.ok(appointment=saved)
        except Exception as e:
            return self._failure(SchedulingResult, e, "cancel")

    async def transition(
        self,
        appointment_id: int,
        target_status: AppointmentStatus,
        actor: TransitionActor = TransitionActor.SYSTEM,
    ) -> SchedulingResult:
        """Drive a lifecycle transition (confirm, start, complete, no-show, cancel)."""
        if target_status == AppointmentStatus.CANCELLED:
            return await self.cancel(appointment_id, cancelled_by=actor)

        try:
            appointment = await self._get_appointment(appointment_id)
            async with self.locks.hold(appointment.doctor_id, appointment.appointment_date):
                current = await self._get_appointment(appointment_id)
                self.machine.transition(current, target_status, actor)
                saved = await self.appointments.update(current)
                events = current.pull_domain_events()

            self._dispatch(events)
            return SchedulingResult.ok(appointment=saved)
        except Exception as e:
            return self._failure(SchedulingResult, e, "transition")

    async def get_appointment(self, appointment_id: int) -> SchedulingResult:
        try:
            return SchedulingResult.ok(appointment=await self._get_appointment(appointment_id))
        except Exception as e:
            return self._failure(SchedulingResult, e, "get_appointment")

    # =========================================================================
    # Working hours administration
    # =========================================================================

    async def update_template(self, template: WorkingDayTemplate, today: date | None = None) -> TemplateUpdateResult:
        """Validate and store a weekly template; diagnostics list affected upcoming bookings."""
        try:
            saved, diagnostics = await self.registry.upsert_template(template, today)
            return TemplateUpdateResult.ok(template=saved, diagnostics=diagnostics)
        except InvalidConfigException as e:
            logger.warning(f"Template rejected for doctor {template.doctor_id}: {e.message}")
            return TemplateUpdateResult.error(INVALID_CONFIG, e.message, issues=e.issues)
        except Exception as e:
            return self._failure(TemplateUpdateResult, e, "update_template")

    async def list_templates(self, doctor_id: int) -> UseCaseResult:
        try:
            return UseCaseResult.ok(data=await self.registry.list_templates(doctor_id))
        except Exception as e:
            return self._failure(UseCaseResult, e, "list_templates")

    async def request_override(self, request: OverrideRequest) -> OverrideResult:
        try:
            return OverrideResult.ok(override=await self.registry.request_override(request))
        except Exception as e:
            return self._failure(OverrideResult, e, "request_override")

    async def approve_override(self, override_id: int, decided_by: str | None = None) -> OverrideResult:
        try:
            return OverrideResult.ok(override=await self.registry.approve_override(override_id, decided_by))
        except Exception as e:
            return self._failure(OverrideResult, e, "approve_override")

    async def reject_override(
        self,
        override_id: int,
        decided_by: str | None = None,
        reason: str | None = None,
    ) -> OverrideResult:
        try:
            return OverrideResult.ok(override=await self.registry.reject_override(override_id, decided_by, reason))
        except Exception as e:
            return self._failure(OverrideResult, e, "reject_override")

    async def cancel_override(self, override_id: int, decided_by: str | None = None) -> OverrideResult:
        try:
            return OverrideResult.ok(override=await self.registry.cancel_override(override_id, decided_by))
        except Exception as e:
            return self._failure(OverrideResult, e, "cancel_override")

    async def list_overrides(
        self,
        doctor_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> UseCaseResult:
        try:
            return UseCaseResult.ok(data=await self.registry.list_overrides(doctor_id, start_date, end_date))
        except Exception as e:
            return self._failure(UseCaseResult, e, "list_overrides")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_appointment(self, appointment_id: int) -> Appointment:
        appointment = await self.appointments.find_by_id(appointment_id)
        if appointment is None:
            raise EntityNotFoundException("Appointment", appointment_id)
        return appointment

    async def _first_available_on(
        self,
        doctor_id: int,
        day: date,
        duration: int | None,
        not_before: time | None,
    ) -> TimeSlot | None:
        try:
            effective_day = await self.registry.effective_hours(doctor_id, day)
            if duration is not None and duration > effective_day.appointment_duration:
                return None
            appointments = await self.appointments.find_by_doctor_and_date(doctor_id, day)
            slots = self.slot_generator.generate(effective_day, appointments, duration)
        except (InvalidConfigException, NotConfiguredException) as e:
            logger.warning(f"Skipping {day} for doctor {doctor_id}: {e.message}")
            return None

        for slot in slots:
            if slot.is_available and (not_before is None or slot.start_time >= not_before):
                return slot
        return None

    def _validate_duration_override(self, day: EffectiveDay, duration: int | None) -> None:
        if duration is None:
            return
        if duration <= 0:
            raise ValidationException(f"Duration must be positive, got {duration}", field="duration")
        if day.is_working and duration > day.appointment_duration:
            raise ValidationException(
                f"Duration {duration} exceeds the configured appointment duration of {day.appointment_duration} minutes",
                field="duration",
            )

    def _booking_duration(self, day: EffectiveDay, requested: int | None) -> int:
        if requested is None:
            return day.appointment_duration
        if requested <= 0:
            raise ValidationException(f"Duration must be positive, got {requested}", field="duration_minutes")
        return requested

    def _dispatch(self, events: list[DomainEvent]) -> None:
        self.dispatcher.dispatch(events)

    def _failure(
        self,
        result_type: type[R],
        error: Exception,
        operation: str,
    ) -> R:
        """Convert an exception into a typed failure result, logging at the right level."""
        extra: dict[str, Any] = {}
        accepts_conflicts = "conflicts" in {f.name for f in fields(result_type)}

        if isinstance(error, SchedulingConflictException):
            logger.warning(f"{operation} rejected: {error.message}")
            if accepts_conflicts:
                extra["conflicts"] = error.conflicts
            return result_type.error(SCHEDULING_CONFLICT, error.message, **extra)

        if isinstance(error, SlotAlreadyTakenException):
            logger.warning(f"{operation} lost a race for the slot: {error.message}")
            if accepts_conflicts:
                extra["conflicts"] = [
                    Conflict.of(ConflictKind.OVERLAP, error.message, **error.details),
                ]
            return result_type.error(SCHEDULING_CONFLICT, error.message, **extra)

        if isinstance(error, IllegalTransitionException):
            logger.error(f"{operation} failed: {error.message}")
            return result_type.error(ILLEGAL_TRANSITION, error.message)

        if isinstance(error, NotConfiguredException):
            logger.warning(f"{operation} rejected: {error.message}")
            return result_type.error(NOT_CONFIGURED, error.message)

        if isinstance(error, InvalidConfigException):
            logger.warning(f"{operation} rejected: {error.message}")
            return result_type.error(INVALID_CONFIG, error.message)

        if isinstance(error, EntityNotFoundException):
            logger.warning(f"{operation} failed: {error.message}")
            return result_type.error(NOT_FOUND, error.message)

        if isinstance(error, ValidationException):
            logger.warning(f"{operation} rejected: {error.message}")
            return result_type.error(VALIDATION_ERROR, error.message)

        if isinstance(error, PersistenceException):
            logger.error(f"{operation} failed in storage: {error.message}", exc_info=True)
            return result_type.error(PERSISTENCE_ERROR, error.message, retryable=error.retryable)

        logger.error(f"Unexpected error in {operation}: {error}", exc_info=True)
        return result_type.error(PERSISTENCE_ERROR, f"Unexpected error: {error}", retryable=True)
