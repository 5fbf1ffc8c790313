"""
Slot Generator

Turns one effective day plus the doctor's existing appointments into the
ordered list of discrete candidate slots with availability flags.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Any

from ..entities.appointment import Appointment
from ..exceptions import InvalidConfigException
from ..value_objects import EffectiveDay, format_hhmm, from_minutes, intervals_overlap


@dataclass
class TimeSlot:
    """Derived appointment slot. Stale as soon as any booking for the day changes."""

    doctor_id: int
    date: date
    start_time: time
    end_time: time
    is_available: bool = True
    is_booked: bool = False
    appointment_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "doctor_id": self.doctor_id,
            "date": self.date.isoformat(),
            "start_time": format_hhmm(self.start_time),
            "end_time": format_hhmm(self.end_time),
            "is_available": self.is_available,
            "is_booked": self.is_booked,
            "appointment_id": self.appointment_id,
        }


class SlotGenerator:
    """
    Domain service generating slots for one doctor and one date.

    Algorithm: starting at the day's start time, emit slots of the appointment
    duration. A candidate that touches the break moves the cursor to the break
    end; every accepted slot moves the cursor by duration plus buffer. Stops as
    soon as a slot would end after the working window.

    Example:
        ```python
        generator = SlotGenerator()
        slots = generator.generate(effective_day, existing_appointments)
        free = [s for s in slots if s.is_available]
        ```
    """

    def generate(
        self,
        effective_day: EffectiveDay,
        existing_appointments: list[Appointment],
        duration: int | None = None,
    ) -> list[TimeSlot]:
        """
        Generate slots with availability flags.

        Args:
            effective_day: Resolved hours for the doctor and date
            existing_appointments: Appointments of the doctor (any date, any status)
            duration: Optional slot length replacing the configured duration

        Returns:
            Ordered list of slots

        Raises:
            InvalidConfigException: If the slot length or buffer is invalid
        """
        windows = self.candidate_windows(effective_day, duration)
        if not windows:
            return []

        day_appointments = [
            appointment
            for appointment in existing_appointments
            if appointment.is_active()
            and appointment.doctor_id == effective_day.doctor_id
            and appointment.appointment_date == effective_day.day
        ]
        capacity_reached = (
            effective_day.max_appointments is not None and len(day_appointments) >= effective_day.max_appointments
        )

        slots: list[TimeSlot] = []
        for start, end in windows:
            holder = next(
                (a for a in day_appointments if a.overlaps(effective_day.day, start, end)),
                None,
            )
            slots.append(
                TimeSlot(
                    doctor_id=effective_day.doctor_id,
                    date=effective_day.day,
                    start_time=from_minutes(start),
                    end_time=from_minutes(end),
                    is_available=holder is None and not capacity_reached,
                    is_booked=holder is not None,
                    appointment_id=holder.id if holder else None,
                )
            )
        return slots

    def candidate_windows(self, effective_day: EffectiveDay, duration: int | None = None) -> list[tuple[int, int]]:
        """
        Raw slot intervals in minutes since midnight, ignoring bookings.

        Raises:
            InvalidConfigException: If the slot length is non-positive or the buffer negative
        """
        slot_length = effective_day.appointment_duration if duration is None else duration
        if slot_length <= 0:
            raise InvalidConfigException(
                f"Appointment duration must be positive, got {slot_length}",
                details={"doctor_id": effective_day.doctor_id, "date": effective_day.day.isoformat()},
            )
        if effective_day.buffer_time < 0:
            raise InvalidConfigException(
                f"Buffer time cannot be negative, got {effective_day.buffer_time}",
                details={"doctor_id": effective_day.doctor_id, "date": effective_day.day.isoformat()},
            )

        working = effective_day.working_window
        if working is None:
            return []

        rest = effective_day.break_window
        windows: list[tuple[int, int]] = []
        cursor = working.start_minute
        while cursor + slot_length <= working.end_minute:
            slot_end = cursor + slot_length
            if rest is not None and intervals_overlap(cursor, slot_end, rest.start_minute, rest.end_minute):
                cursor = rest.end_minute
                continue
            windows.append((cursor, slot_end))
            cursor = slot_end + effective_day.buffer_time
        return windows
