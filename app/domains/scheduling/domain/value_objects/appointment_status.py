"""
Scheduling Status Value Objects

Status and classification enums for appointments, schedule templates and overrides.
"""

from datetime import date

from app.core.domain import StatusEnum


class AppointmentStatus(StatusEnum):
    """
    Appointment lifecycle states.

    Active states hold a slot: PENDING, SCHEDULED, IN_PROGRESS.
    Terminal states: COMPLETED, CANCELLED, NO_SHOW.
    """

    PENDING = "pending"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self in TERMINAL_STATUSES

    def is_active(self) -> bool:
        """Check if appointment still occupies its slot."""
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS})
TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


class TransitionActor(StatusEnum):
    """Who triggered a lifecycle change."""

    PATIENT = "patient"
    DOCTOR = "doctor"
    STAFF = "staff"
    SYSTEM = "system"

    def books_directly(self) -> bool:
        """Doctor and staff bookings skip the PENDING confirmation step."""
        return self in (TransitionActor.DOCTOR, TransitionActor.STAFF)


class BookingSource(StatusEnum):
    """Which booking strategy produced the appointment time."""

    DETERMINISTIC = "deterministic"
    ADVISORY = "advisory"


class DayOfWeek(StatusEnum):
    """Weekdays in ISO order (Monday first)."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def weekday(self) -> int:
        """0 for Monday through 6 for Sunday, matching date.weekday()."""
        return list(DayOfWeek).index(self)

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return list(cls)[value.weekday()]


class RecurrencePattern(StatusEnum):
    """How often a weekday template applies."""

    WEEKLY = "weekly"
    DAILY = "daily"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class OverrideKind(StatusEnum):
    """Kinds of dated schedule exceptions."""

    LEAVE = "leave"
    EMERGENCY_UNAVAILABLE = "emergency_unavailable"
    TEMPORARY_UNAVAILABLE = "temporary_unavailable"
    CAPACITY_UPDATE = "capacity_update"

    def makes_unavailable(self) -> bool:
        """Every kind except a capacity update blocks the whole day."""
        return self != OverrideKind.CAPACITY_UPDATE


class OverrideStatus(StatusEnum):
    """
    Approval workflow for overrides and leave requests.

    Valid transitions:
    - PENDING -> APPROVED, REJECTED, CANCELLED
    - APPROVED -> CANCELLED
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    def can_transition_to(self, new_status: "OverrideStatus") -> bool:
        """Check if transition to new status is valid."""
        return new_status in _OVERRIDE_TRANSITIONS.get(self, ())


_OVERRIDE_TRANSITIONS: dict[OverrideStatus, tuple[OverrideStatus, ...]] = {
    OverrideStatus.PENDING: (OverrideStatus.APPROVED, OverrideStatus.REJECTED, OverrideStatus.CANCELLED),
    OverrideStatus.APPROVED: (OverrideStatus.CANCELLED,),
}
