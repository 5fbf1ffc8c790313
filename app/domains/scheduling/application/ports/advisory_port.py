"""
Slot Advisor Port

External suggestion source for the advisory booking strategy. Suggestions are
treated as untrusted input and always re-validated before booking.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class SlotSuggestion:
    """Slot proposed by an advisor, with its self-reported confidence (0-1)."""

    doctor_id: int
    appointment_date: date
    start_time: time
    confidence: float
    rationale: str | None = None


@runtime_checkable
class ISlotAdvisor(Protocol):
    """Advisory slot suggestion source."""

    async def suggest(
        self,
        doctor_id: int,
        patient_id: int,
        preferred_date: date,
        preferred_time: time | None = None,
    ) -> SlotSuggestion | None:
        """
        Suggest a slot for a patient.

        Args:
            doctor_id: Doctor the booking is for
            patient_id: Patient being booked
            preferred_date: Date the patient asked for
            preferred_time: Optional time the patient asked for

        Returns:
            Suggestion, or None when the advisor has nothing to offer
        """
        ...
