"""
Conflict Detector

Classifies a proposed appointment interval against the effective day and the
doctor's current commitments. Every check runs independently, so a single
proposal can carry several conflicts.
"""

from datetime import date, time

from ..entities.appointment import Appointment
from ..exceptions import InvalidConfigException
from ..value_objects import (
    MINUTES_PER_DAY,
    Conflict,
    ConflictKind,
    EffectiveDay,
    format_hhmm,
    intervals_overlap,
    sort_conflicts,
    to_minutes,
)


def _hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class ConflictDetector:
    """
    Domain service for booking-time conflict detection.

    Checks and severities:
    - LEAVE_CONFLICT (critical): day blocked by an approved leave/unavailability override
    - WORKING_HOURS_VIOLATION (high): outside working hours or non-working day
    - OVERLAP (high): intersects another active appointment
    - CAPACITY_EXCEEDED (high): daily appointment limit reached
    - BREAK_VIOLATION (medium): intersects the break window

    Any conflict rejects a booking; severities are for operator diagnostics.

    Example:
        ```python
        detector = ConflictDetector()
        conflicts = detector.check(
            effective_day=monday,
            start_time=time(12, 15),
            duration=30,
            appointments=existing,
        )
        [c.kind for c in conflicts]  # [ConflictKind.BREAK_VIOLATION]
        ```
    """

    def check(
        self,
        effective_day: EffectiveDay,
        start_time: time,
        duration: int,
        appointments: list[Appointment],
        exclude_appointment_id: int | None = None,
    ) -> list[Conflict]:
        """
        Run all checks for a proposed interval.

        Args:
            effective_day: Resolved hours for the proposal's doctor and date
            start_time: Proposed start
            duration: Proposed length in minutes
            appointments: Doctor's appointments (filtered here by date and status)
            exclude_appointment_id: Appointment to ignore, used when rescheduling

        Returns:
            Conflicts ordered by reporting rank (empty when the proposal is clear)
        """
        if duration <= 0:
            raise InvalidConfigException(f"Appointment duration must be positive, got {duration}")

        start = to_minutes(start_time)
        end = start + duration

        others = [
            appointment
            for appointment in appointments
            if appointment.is_active()
            and appointment.doctor_id == effective_day.doctor_id
            and appointment.appointment_date == effective_day.day
            and (exclude_appointment_id is None or appointment.id != exclude_appointment_id)
        ]

        conflicts: list[Conflict] = []
        conflicts.extend(self._check_leave(effective_day))
        conflicts.extend(self._check_working_hours(effective_day, start, end))
        conflicts.extend(self._check_overlap(effective_day.day, start, end, others))
        conflicts.extend(self._check_capacity(effective_day, others))
        conflicts.extend(self._check_break(effective_day, start, end))
        return sort_conflicts(conflicts)

    def audit_day(self, effective_day: EffectiveDay, appointments: list[Appointment]) -> list[Conflict]:
        """
        Diagnose existing appointments against a (possibly new) effective day.

        Overlap and capacity are not re-checked: the appointments already hold
        their slots. Each conflict carries the affected ``appointment_id``.
        """
        conflicts: list[Conflict] = []
        for appointment in appointments:
            if (
                not appointment.is_active()
                or appointment.doctor_id != effective_day.doctor_id
                or appointment.appointment_date != effective_day.day
                or appointment.start_minute is None
                or appointment.end_minute is None
            ):
                continue
            start, end = appointment.start_minute, appointment.end_minute
            found = (
                self._check_leave(effective_day)
                + self._check_working_hours(effective_day, start, end)
                + self._check_break(effective_day, start, end)
            )
            for conflict in found:
                conflicts.append(
                    Conflict(
                        kind=conflict.kind,
                        message=conflict.message,
                        details={**conflict.details, "appointment_id": appointment.id},
                    )
                )
        return sort_conflicts(conflicts)

    @staticmethod
    def has_conflicts(conflicts: list[Conflict]) -> bool:
        """All conflict kinds reject a booking."""
        return bool(conflicts)

    # Individual checks

    def _check_leave(self, effective_day: EffectiveDay) -> list[Conflict]:
        if not effective_day.is_leave:
            return []
        reason = f" ({effective_day.reason})" if effective_day.reason else ""
        return [
            Conflict.of(
                ConflictKind.LEAVE_CONFLICT,
                f"Doctor is on approved leave on {effective_day.day.isoformat()}{reason}",
                override_id=effective_day.override_id,
            )
        ]

    def _check_working_hours(self, effective_day: EffectiveDay, start: int, end: int) -> list[Conflict]:
        working = effective_day.working_window
        if working is None:
            return [
                Conflict.of(
                    ConflictKind.WORKING_HOURS_VIOLATION,
                    f"Doctor is not working on {effective_day.day.isoformat()}",
                    source=effective_day.source.value,
                )
            ]
        if end > MINUTES_PER_DAY:
            return [
                Conflict.of(
                    ConflictKind.WORKING_HOURS_VIOLATION,
                    f"Appointment starting at {_hhmm(start)} would run past midnight",
                )
            ]
        if start < working.start_minute or end > working.end_minute:
            return [
                Conflict.of(
                    ConflictKind.WORKING_HOURS_VIOLATION,
                    f"{_hhmm(start)} - {_hhmm(end)} is outside working hours {working}",
                    working_hours=str(working),
                )
            ]
        return []

    def _check_overlap(self, on_date: date, start: int, end: int, others: list[Appointment]) -> list[Conflict]:
        conflicts: list[Conflict] = []
        for other in others:
            if other.overlaps(on_date, start, end) and other.start_time is not None:
                conflicts.append(
                    Conflict.of(
                        ConflictKind.OVERLAP,
                        f"Doctor already has an appointment at {format_hhmm(other.start_time)}",
                        appointment_id=other.id,
                    )
                )
        return conflicts

    def _check_capacity(self, effective_day: EffectiveDay, others: list[Appointment]) -> list[Conflict]:
        limit = effective_day.max_appointments
        if not effective_day.is_working or limit is None or len(others) < limit:
            return []
        return [
            Conflict.of(
                ConflictKind.CAPACITY_EXCEEDED,
                f"Daily limit of {limit} appointments reached for {effective_day.day.isoformat()}",
                max_appointments=limit,
                booked=len(others),
            )
        ]

    def _check_break(self, effective_day: EffectiveDay, start: int, end: int) -> list[Conflict]:
        rest = effective_day.break_window
        if rest is None or not effective_day.is_working:
            return []
        if not intervals_overlap(start, end, rest.start_minute, rest.end_minute):
            return []
        return [
            Conflict.of(
                ConflictKind.BREAK_VIOLATION,
                f"{_hhmm(start)} - {_hhmm(end)} overlaps the break {rest}",
                break_window=str(rest),
            )
        ]
