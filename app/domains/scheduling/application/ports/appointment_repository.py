"""
Appointment Repository Port

Interface for appointment data access following Clean Architecture.
"""

from datetime import date
from typing import Protocol, runtime_checkable

from app.domains.scheduling.domain.entities.appointment import Appointment


@runtime_checkable
class IAppointmentRepository(Protocol):
    """
    Appointment repository interface.

    Implementations must reject a write that would give a doctor two active
    appointments on overlapping intervals by raising ``SlotAlreadyTakenException``.

    Example:
        ```python
        class SQLAlchemyAppointmentRepository(IAppointmentRepository):
            async def find_by_id(self, appointment_id: int) -> Appointment | None:
                # SQLAlchemy implementation
                pass
        ```
    """

    async def find_by_id(self, appointment_id: int) -> Appointment | None:
        """
        Find appointment by ID.

        Args:
            appointment_id: Unique appointment identifier

        Returns:
            Appointment if found, None otherwise
        """
        ...

    async def find_by_request_id(self, request_id: str) -> Appointment | None:
        """
        Find appointment by client idempotency key.

        Args:
            request_id: Key supplied with the original booking request

        Returns:
            Appointment if a booking with this key exists, None otherwise
        """
        ...

    async def find_by_doctor_and_date(self, doctor_id: int, appointment_date: date) -> list[Appointment]:
        """
        Find all appointments (any status) of a doctor on one date.

        Args:
            doctor_id: Doctor ID
            appointment_date: Date to search

        Returns:
            Appointments ordered by start time
        """
        ...

    async def find_by_doctor_in_range(self, doctor_id: int, start_date: date, end_date: date) -> list[Appointment]:
        """
        Find appointments of a doctor within an inclusive date range.

        Args:
            doctor_id: Doctor ID
            start_date: First date
            end_date: Last date (inclusive)

        Returns:
            Appointments ordered by date and start time
        """
        ...

    async def add(self, appointment: Appointment) -> Appointment:
        """
        Persist a new appointment and assign its ID.

        Args:
            appointment: Appointment without ID

        Returns:
            Stored appointment with ID

        Raises:
            SlotAlreadyTakenException: If the slot is held by another active appointment
            PersistenceException: If storage fails
        """
        ...

    async def update(self, appointment: Appointment) -> Appointment:
        """
        Persist changes to an existing appointment.

        Args:
            appointment: Appointment with ID

        Returns:
            Stored appointment

        Raises:
            SlotAlreadyTakenException: If the new slot is held by another active appointment
            PersistenceException: If storage fails
        """
        ...
