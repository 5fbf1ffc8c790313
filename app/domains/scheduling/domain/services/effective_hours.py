"""
Effective Hours Resolver

Resolves the single winning working-hours configuration for one doctor on
one date. Precedence, highest first:

1. Approved override making the doctor unavailable (leave)
2. Approved capacity update applying custom hours
3. Active weekday template inside its effective window and recurrence
4. Unavailable
"""

import logging
from datetime import UTC, date, datetime

from ..entities.schedule_override import ScheduleOverride
from ..entities.working_day_template import WorkingDayTemplate
from ..exceptions import InvalidConfigException, NotConfiguredException
from ..value_objects import EffectiveDay, EffectiveDaySource, SchedulingPolicy

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


class EffectiveHoursResolver:
    """
    Pure precedence resolver for effective working hours.

    Example:
        ```python
        resolver = EffectiveHoursResolver()
        day = resolver.resolve(
            doctor_id=7,
            on_date=date(2024, 1, 15),
            templates=[monday_template],
            overrides=[approved_leave],
        )
        day.source  # EffectiveDaySource.LEAVE
        ```
    """

    def __init__(self, policy: SchedulingPolicy | None = None):
        self.policy = policy or SchedulingPolicy()

    def resolve(
        self,
        doctor_id: int,
        on_date: date,
        templates: list[WorkingDayTemplate],
        overrides: list[ScheduleOverride],
    ) -> EffectiveDay:
        """
        Resolve effective hours.

        Args:
            doctor_id: Doctor ID
            on_date: Concrete calendar date
            templates: Doctor's template rows (inactive rows are ignored)
            overrides: Doctor's overrides (only approved, covering ones count)

        Returns:
            EffectiveDay tagged with the winning source

        Raises:
            NotConfiguredException: If the doctor has no active template at all
            InvalidConfigException: If an override produces inconsistent hours
        """
        active_templates = [t for t in templates if t.is_active and t.doctor_id == doctor_id]
        if not active_templates:
            raise NotConfiguredException(doctor_id)

        template = self._select_template(on_date, active_templates)
        timezone = template.timezone if template else active_templates[0].timezone

        in_effect = [o for o in overrides if o.doctor_id == doctor_id and o.is_in_effect(on_date)]
        in_effect.sort(key=lambda o: o.decided_at or _EPOCH, reverse=True)

        leave = next((o for o in in_effect if o.makes_unavailable), None)
        if leave is not None:
            return EffectiveDay.on_leave(
                doctor_id=doctor_id,
                day=on_date,
                override_id=leave.id,
                timezone=timezone,
                reason=leave.reason or leave.kind.value,
            )

        capacity_update = next((o for o in in_effect if not o.makes_unavailable), None)
        if capacity_update is not None:
            return self._apply_override(doctor_id, on_date, capacity_update, template, timezone)

        if template is None:
            return EffectiveDay.unavailable(doctor_id, on_date, timezone, reason="No template applies on this date")
        if not template.is_working:
            return EffectiveDay.unavailable(
                doctor_id, on_date, timezone, reason="Non-working day", template_id=template.id
            )

        return EffectiveDay(
            doctor_id=doctor_id,
            day=on_date,
            source=EffectiveDaySource.TEMPLATE,
            is_working=True,
            start_time=template.start_time,
            end_time=template.end_time,
            break_start=template.break_start,
            break_end=template.break_end,
            appointment_duration=template.appointment_duration,
            buffer_time=template.buffer_time,
            max_appointments=template.max_appointments_per_day,
            timezone=template.timezone,
            template_id=template.id,
        )

    def _select_template(self, on_date: date, templates: list[WorkingDayTemplate]) -> WorkingDayTemplate | None:
        matching = [t for t in templates if t.applies_on(on_date)]
        if len(matching) > 1:
            logger.warning(
                f"Found {len(matching)} active templates for doctor {matching[0].doctor_id} "
                f"on {on_date.isoformat()}, using the most recently updated"
            )
            matching.sort(key=lambda t: t.updated_at, reverse=True)
        return matching[0] if matching else None

    def _apply_override(
        self,
        doctor_id: int,
        on_date: date,
        override: ScheduleOverride,
        template: WorkingDayTemplate | None,
        timezone: str,
    ) -> EffectiveDay:
        base = template if template is not None and template.is_working else None

        start_time = override.start_time or (base.start_time if base else None)
        end_time = override.end_time or (base.end_time if base else None)
        if start_time is None or end_time is None:
            return EffectiveDay(
                doctor_id=doctor_id,
                day=on_date,
                source=EffectiveDaySource.OVERRIDE,
                is_working=False,
                timezone=timezone,
                override_id=override.id,
                reason="Capacity update without working hours",
            )

        if override.break_start is not None:
            break_start, break_end = override.break_start, override.break_end
        elif base is not None and base.break_start is not None and base.break_end is not None:
            break_start, break_end = base.break_start, base.break_end
            if not (start_time <= break_start and break_end <= end_time):
                # Template break falls outside the custom hours
                break_start = break_end = None
        else:
            break_start = break_end = None

        if break_start is not None and break_end is not None:
            if not (start_time <= break_start < break_end <= end_time):
                raise InvalidConfigException(
                    f"Override {override.id} break does not fit inside its working hours",
                    details={"override_id": override.id},
                )

        duration = override.appointment_duration or (
            base.appointment_duration if base else self.policy.default_appointment_duration
        )
        buffer_time = override.buffer_time if override.buffer_time is not None else (base.buffer_time if base else 0)
        max_appointments = (
            override.max_appointments
            if override.max_appointments is not None
            else (base.max_appointments_per_day if base else None)
        )

        return EffectiveDay(
            doctor_id=doctor_id,
            day=on_date,
            source=EffectiveDaySource.OVERRIDE,
            is_working=True,
            start_time=start_time,
            end_time=end_time,
            break_start=break_start,
            break_end=break_end,
            appointment_duration=duration,
            buffer_time=buffer_time,
            max_appointments=max_appointments,
            timezone=timezone,
            template_id=base.id if base else None,
            override_id=override.id,
            reason=override.reason,
        )
