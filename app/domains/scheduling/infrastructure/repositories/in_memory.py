"""
In-Memory Repositories

Process-local implementations of the scheduling repository ports for
development, tests and single-process deployments. Entities are copied on
the way in and out, so callers never share state with the store and a
failed write leaves it untouched.
"""

import copy
import logging
from datetime import UTC, date, datetime

from app.core.domain import EntityNotFoundException
from app.domains.scheduling.application.ports import (
    IAppointmentRepository,
    IScheduleOverrideRepository,
    IWorkingHoursRepository,
)
from app.domains.scheduling.domain.entities import Appointment, ScheduleOverride, WorkingDayTemplate
from app.domains.scheduling.domain.exceptions import SlotAlreadyTakenException
from app.domains.scheduling.domain.value_objects import DayOfWeek

logger = logging.getLogger(__name__)

_WEEKDAY_ORDER = {day: index for index, day in enumerate(DayOfWeek)}


class InMemoryAppointmentRepository(IAppointmentRepository):
    """In-memory implementation for development/testing"""

    def __init__(self) -> None:
        self._appointments: dict[int, Appointment] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._appointments)

    async def find_by_id(self, appointment_id: int) -> Appointment | None:
        stored = self._appointments.get(appointment_id)
        return copy.deepcopy(stored) if stored else None

    async def find_by_request_id(self, request_id: str) -> Appointment | None:
        for stored in self._appointments.values():
            if stored.request_id == request_id:
                return copy.deepcopy(stored)
        return None

    async def find_by_doctor_and_date(self, doctor_id: int, appointment_date: date) -> list[Appointment]:
        found = [
            a
            for a in self._appointments.values()
            if a.doctor_id == doctor_id and a.appointment_date == appointment_date
        ]
        return [copy.deepcopy(a) for a in sorted(found, key=lambda a: a.start_minute or 0)]

    async def find_by_doctor_in_range(self, doctor_id: int, start_date: date, end_date: date) -> list[Appointment]:
        found = [
            a
            for a in self._appointments.values()
            if a.doctor_id == doctor_id
            and a.appointment_date is not None
            and start_date <= a.appointment_date <= end_date
        ]
        found.sort(key=lambda a: (a.appointment_date, a.start_minute or 0))
        return [copy.deepcopy(a) for a in found]

    async def add(self, appointment: Appointment) -> Appointment:
        self._ensure_request_id_unused(appointment)
        self._ensure_slot_free(appointment)

        stored = self._snapshot(appointment)
        stored.id = self._next_id
        self._next_id += 1
        self._appointments[stored.id] = stored
        return copy.deepcopy(stored)

    async def update(self, appointment: Appointment) -> Appointment:
        if appointment.id is None or appointment.id not in self._appointments:
            raise EntityNotFoundException("Appointment", appointment.id)
        self._ensure_slot_free(appointment)

        stored = self._snapshot(appointment)
        stored.touch()
        self._appointments[stored.id] = stored
        return copy.deepcopy(stored)

    def _snapshot(self, appointment: Appointment) -> Appointment:
        stored = copy.deepcopy(appointment)
        stored.clear_domain_events()
        return stored

    def _ensure_request_id_unused(self, appointment: Appointment) -> None:
        if appointment.request_id is None:
            return
        if any(a.request_id == appointment.request_id for a in self._appointments.values()):
            raise SlotAlreadyTakenException(appointment.doctor_id, appointment.appointment_date, appointment.start_time)

    def _ensure_slot_free(self, appointment: Appointment) -> None:
        """No two active appointments of a doctor may overlap."""
        if not appointment.is_active():
            return
        for other in self._appointments.values():
            if other.id == appointment.id or other.doctor_id != appointment.doctor_id or not other.is_active():
                continue
            if appointment.conflicts_with(other):
                raise SlotAlreadyTakenException(
                    appointment.doctor_id,
                    appointment.appointment_date,
                    appointment.start_time,
                )


class InMemoryWorkingHoursRepository(IWorkingHoursRepository):
    """In-memory implementation for development/testing"""

    def __init__(self) -> None:
        self._templates: dict[int, WorkingDayTemplate] = {}
        self._next_id = 1

    async def find_templates(self, doctor_id: int, include_inactive: bool = False) -> list[WorkingDayTemplate]:
        found = [
            t
            for t in self._templates.values()
            if t.doctor_id == doctor_id and (include_inactive or t.is_active)
        ]
        found.sort(key=lambda t: (_WEEKDAY_ORDER[t.day_of_week], t.id or 0))
        return [copy.deepcopy(t) for t in found]

    async def find_active_template(self, doctor_id: int, day_of_week: DayOfWeek) -> WorkingDayTemplate | None:
        for template in self._templates.values():
            if template.doctor_id == doctor_id and template.day_of_week == day_of_week and template.is_active:
                return copy.deepcopy(template)
        return None

    async def has_any_template(self, doctor_id: int) -> bool:
        return any(t.doctor_id == doctor_id and t.is_active for t in self._templates.values())

    async def save_template(self, template: WorkingDayTemplate) -> WorkingDayTemplate:
        for existing in self._templates.values():
            if existing.doctor_id == template.doctor_id and existing.day_of_week == template.day_of_week:
                if existing.is_active:
                    existing.deactivate()

        stored = copy.deepcopy(template)
        stored.id = self._next_id
        stored.is_active = True
        stored.updated_at = datetime.now(UTC)
        self._next_id += 1
        self._templates[stored.id] = stored
        return copy.deepcopy(stored)


class InMemoryScheduleOverrideRepository(IScheduleOverrideRepository):
    """In-memory implementation for development/testing"""

    def __init__(self) -> None:
        self._overrides: dict[int, ScheduleOverride] = {}
        self._next_id = 1

    async def find_by_id(self, override_id: int) -> ScheduleOverride | None:
        stored = self._overrides.get(override_id)
        return copy.deepcopy(stored) if stored else None

    async def find_covering(self, doctor_id: int, on_date: date) -> list[ScheduleOverride]:
        return [copy.deepcopy(o) for o in self._overrides.values() if o.doctor_id == doctor_id and o.covers(on_date)]

    async def find_by_doctor(
        self,
        doctor_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ScheduleOverride]:
        found = [
            o
            for o in self._overrides.values()
            if o.doctor_id == doctor_id
            and (start_date is None or o.end_date >= start_date)
            and (end_date is None or o.start_date <= end_date)
        ]
        found.sort(key=lambda o: (o.start_date, o.id or 0))
        return [copy.deepcopy(o) for o in found]

    async def save(self, override: ScheduleOverride) -> ScheduleOverride:
        stored = copy.deepcopy(override)
        if stored.id is None:
            stored.id = self._next_id
            self._next_id += 1
        self._overrides[stored.id] = stored
        return copy.deepcopy(stored)
