"""
Scheduling SQLAlchemy Models

Database models for scheduling domain persistence.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    Float,
    Index,
    Integer,
    String,
    Text,
    Time,
)

from app.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    BookingSource,
    DayOfWeek,
    OverrideKind,
    OverrideStatus,
    RecurrencePattern,
    TransitionActor,
)
from app.models.db.base import Base, TimestampMixin


def _enum(enum_cls, name: str) -> SQLEnum:
    """Store enum values (not member names) as a native PostgreSQL enum."""
    return SQLEnum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


class WorkingDayTemplateModel(Base, TimestampMixin):
    """SQLAlchemy model for WorkingDayTemplate entity."""

    __tablename__ = "working_day_templates"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, nullable=False, index=True)
    day_of_week = Column(_enum(DayOfWeek, "day_of_week"), nullable=False)
    is_working = Column(Boolean, default=True, nullable=False)

    # Hours
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)

    # Slot grid
    appointment_duration = Column(Integer, default=30, nullable=False)
    buffer_time = Column(Integer, default=0, nullable=False)
    max_appointments_per_day = Column(Integer, default=16, nullable=False)
    timezone = Column(String(64), default="UTC", nullable=False)

    # Recurrence
    recurrence = Column(_enum(RecurrencePattern, "recurrence_pattern"), default=RecurrencePattern.WEEKLY, nullable=False)
    effective_from = Column(Date, nullable=True)
    effective_until = Column(Date, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        # At most one active row per doctor and weekday
        Index(
            "uq_working_day_templates_active",
            "doctor_id",
            "day_of_week",
            unique=True,
            postgresql_where=(is_active.is_(True)),
        ),
    )


class ScheduleOverrideModel(Base, TimestampMixin):
    """SQLAlchemy model for ScheduleOverride entity."""

    __tablename__ = "schedule_overrides"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    kind = Column(_enum(OverrideKind, "override_kind"), nullable=False)
    status = Column(_enum(OverrideStatus, "override_status"), default=OverrideStatus.PENDING, nullable=False)
    reason = Column(Text, nullable=True)

    # Custom hours (capacity updates)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)
    appointment_duration = Column(Integer, nullable=True)
    buffer_time = Column(Integer, nullable=True)
    max_appointments = Column(Integer, nullable=True)

    # Decision
    decided_by = Column(String(100), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    decision_note = Column(Text, nullable=True)

    __table_args__ = (Index("ix_schedule_overrides_doctor_range", "doctor_id", "start_date", "end_date"),)


class AppointmentModel(Base, TimestampMixin):
    """SQLAlchemy model for Appointment entity."""

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, nullable=False, index=True)
    patient_id = Column(Integer, nullable=False, index=True)

    # Scheduling
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, default=30, nullable=False)
    timezone = Column(String(64), default="UTC", nullable=False)

    # Details
    appointment_type = Column(String(50), default="consultation", nullable=False)
    reason = Column(Text, nullable=True)

    # Status
    status = Column(_enum(AppointmentStatus, "appointment_status"), default=AppointmentStatus.PENDING, nullable=False)

    # Booking provenance
    request_id = Column(String(100), unique=True, nullable=True)
    booking_source = Column(
        _enum(BookingSource, "booking_source"), default=BookingSource.DETERMINISTIC, nullable=False
    )
    advisory_confidence = Column(Float, nullable=True)
    booked_by = Column(_enum(TransitionActor, "transition_actor"), default=TransitionActor.PATIENT, nullable=False)

    # Lifecycle timestamps
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(_enum(TransitionActor, "transition_actor"), nullable=True)

    # Rescheduling
    reschedule_count = Column(Integer, default=0, nullable=False)
    rescheduled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_appointments_doctor_date", "doctor_id", "appointment_date"),
        # One active booking per doctor slot start
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_date",
            "start_time",
            unique=True,
            postgresql_where=status.in_(
                [AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS]
            ),
        ),
    )
