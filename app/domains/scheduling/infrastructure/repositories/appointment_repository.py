"""
Appointment Repository Implementation

SQLAlchemy implementation of IAppointmentRepository.
"""

import logging
from datetime import date

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain import EntityNotFoundException, PersistenceException
from app.domains.scheduling.application.ports.appointment_repository import IAppointmentRepository
from app.domains.scheduling.domain.entities.appointment import Appointment
from app.domains.scheduling.domain.exceptions import SlotAlreadyTakenException
from app.domains.scheduling.domain.value_objects import ACTIVE_STATUSES, AppointmentStatus
from app.domains.scheduling.infrastructure.persistence.sqlalchemy.models import AppointmentModel

logger = logging.getLogger(__name__)


class SQLAlchemyAppointmentRepository(IAppointmentRepository):
    """
    SQLAlchemy implementation of appointment repository.

    Unique-constraint violations are translated to ``SlotAlreadyTakenException``
    and any other database error to ``PersistenceException``.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, appointment_id: int) -> Appointment | None:
        """Find appointment by ID."""
        result = await self.session.execute(select(AppointmentModel).where(AppointmentModel.id == appointment_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_by_request_id(self, request_id: str) -> Appointment | None:
        """Find appointment by idempotency key."""
        result = await self.session.execute(select(AppointmentModel).where(AppointmentModel.request_id == request_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_by_doctor_and_date(self, doctor_id: int, appointment_date: date) -> list[Appointment]:
        """Find appointments of a doctor on one date."""
        query = (
            select(AppointmentModel)
            .where(
                and_(
                    AppointmentModel.doctor_id == doctor_id,
                    AppointmentModel.appointment_date == appointment_date,
                )
            )
            .order_by(AppointmentModel.start_time)
        )
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def find_by_doctor_in_range(self, doctor_id: int, start_date: date, end_date: date) -> list[Appointment]:
        """Find appointments of a doctor within a date range."""
        query = (
            select(AppointmentModel)
            .where(
                and_(
                    AppointmentModel.doctor_id == doctor_id,
                    AppointmentModel.appointment_date.between(start_date, end_date),
                )
            )
            .order_by(AppointmentModel.appointment_date, AppointmentModel.start_time)
        )
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment."""
        await self._ensure_slot_free(appointment)
        model = self._to_model(appointment)
        self.session.add(model)
        await self._commit(model, appointment, "add_appointment")
        logger.debug(f"Appointment {model.id} inserted")
        return self._to_entity(model)

    async def update(self, appointment: Appointment) -> Appointment:
        """Update an existing appointment."""
        result = await self.session.execute(select(AppointmentModel).where(AppointmentModel.id == appointment.id))
        model = result.scalar_one_or_none()
        if model is None:
            raise EntityNotFoundException("Appointment", appointment.id)

        if appointment.is_active():
            await self._ensure_slot_free(appointment)
        self._update_model(model, appointment)
        await self._commit(model, appointment, "update_appointment")
        return self._to_entity(model)

    async def _ensure_slot_free(self, appointment: Appointment) -> None:
        """Reject overlapping active intervals (the unique index only covers equal start times)."""
        if appointment.start_minute is None or appointment.end_minute is None:
            return
        query = select(AppointmentModel).where(
            and_(
                AppointmentModel.doctor_id == appointment.doctor_id,
                AppointmentModel.appointment_date == appointment.appointment_date,
                AppointmentModel.status.in_(list(ACTIVE_STATUSES)),
            )
        )
        if appointment.id is not None:
            query = query.where(AppointmentModel.id != appointment.id)
        result = await self.session.execute(query)
        for other in (self._to_entity(m) for m in result.scalars().all()):
            if other.overlaps(appointment.appointment_date, appointment.start_minute, appointment.end_minute):
                raise SlotAlreadyTakenException(
                    appointment.doctor_id,
                    appointment.appointment_date,
                    appointment.start_time,
                )

    async def _commit(self, model: AppointmentModel, appointment: Appointment, operation: str) -> None:
        try:
            await self.session.commit()
            await self.session.refresh(model)
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"{operation} violated a uniqueness constraint: {e.orig}")
            raise SlotAlreadyTakenException(
                appointment.doctor_id,
                appointment.appointment_date,
                appointment.start_time,
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceException(operation, e) from e

    # Mapping methods

    def _to_entity(self, model: AppointmentModel) -> Appointment:
        """Convert model to entity."""
        appointment = Appointment(
            id=model.id,  # type: ignore[arg-type]
            doctor_id=model.doctor_id,  # type: ignore[arg-type]
            patient_id=model.patient_id,  # type: ignore[arg-type]
            appointment_date=model.appointment_date,  # type: ignore[arg-type]
            start_time=model.start_time,  # type: ignore[arg-type]
            duration_minutes=model.duration_minutes or 30,  # type: ignore[arg-type]
            timezone=model.timezone or "UTC",  # type: ignore[arg-type]
            appointment_type=model.appointment_type or "consultation",  # type: ignore[arg-type]
            reason=model.reason,  # type: ignore[arg-type]
            status=model.status or AppointmentStatus.PENDING,  # type: ignore[arg-type]
            request_id=model.request_id,  # type: ignore[arg-type]
            booking_source=model.booking_source,  # type: ignore[arg-type]
            advisory_confidence=model.advisory_confidence,  # type: ignore[arg-type]
            booked_by=model.booked_by,  # type: ignore[arg-type]
            confirmed_at=model.confirmed_at,  # type: ignore[arg-type]
            started_at=model.started_at,  # type: ignore[arg-type]
            completed_at=model.completed_at,  # type: ignore[arg-type]
            cancelled_at=model.cancelled_at,  # type: ignore[arg-type]
            cancellation_reason=model.cancellation_reason,  # type: ignore[arg-type]
            cancelled_by=model.cancelled_by,  # type: ignore[arg-type]
            reschedule_count=model.reschedule_count or 0,  # type: ignore[arg-type]
            rescheduled_at=model.rescheduled_at,  # type: ignore[arg-type]
        )

        if model.created_at:
            appointment.created_at = model.created_at  # type: ignore[assignment]
        if model.updated_at:
            appointment.updated_at = model.updated_at  # type: ignore[assignment]

        return appointment

    def _to_model(self, appointment: Appointment) -> AppointmentModel:
        """Convert entity to model."""
        model = AppointmentModel()
        if appointment.id is not None:
            model.id = appointment.id
        self._update_model(model, appointment)
        return model

    def _update_model(self, model: AppointmentModel, appointment: Appointment) -> None:
        """Copy entity state onto the model."""
        model.doctor_id = appointment.doctor_id
        model.patient_id = appointment.patient_id
        model.appointment_date = appointment.appointment_date
        model.start_time = appointment.start_time
        model.end_time = appointment.end_time
        model.duration_minutes = appointment.duration_minutes
        model.timezone = appointment.timezone
        model.appointment_type = appointment.appointment_type
        model.reason = appointment.reason
        model.status = appointment.status
        model.request_id = appointment.request_id
        model.booking_source = appointment.booking_source
        model.advisory_confidence = appointment.advisory_confidence
        model.booked_by = appointment.booked_by
        model.confirmed_at = appointment.confirmed_at
        model.started_at = appointment.started_at
        model.completed_at = appointment.completed_at
        model.cancelled_at = appointment.cancelled_at
        model.cancellation_reason = appointment.cancellation_reason
        model.cancelled_by = appointment.cancelled_by
        model.reschedule_count = appointment.reschedule_count
        model.rescheduled_at = appointment.rescheduled_at
