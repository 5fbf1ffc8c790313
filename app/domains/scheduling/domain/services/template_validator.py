"""
Schedule Template Validator

Policy checks for working-hours templates before they are saved.
"""

from ..entities.working_day_template import WorkingDayTemplate
from ..exceptions import InvalidConfigException
from ..value_objects import SchedulingPolicy, format_hhmm


class ScheduleTemplateValidator:
    """
    Validates a template against the configured scheduling policy.

    Structural invariants (start before end, break inside hours) are already
    enforced by the entity itself; this service checks the tunable bounds.
    """

    def __init__(self, policy: SchedulingPolicy | None = None):
        self.policy = policy or SchedulingPolicy()

    def validate(self, template: WorkingDayTemplate) -> list[str]:
        """
        Collect every policy violation.

        Returns:
            List of human-readable issues (empty when the template is valid)
        """
        issues = list(template.structural_issues())
        if not template.is_working:
            return issues

        policy = self.policy

        if not policy.min_appointment_duration <= template.appointment_duration <= policy.max_appointment_duration:
            issues.append(
                f"Appointment duration must be between {policy.min_appointment_duration} "
                f"and {policy.max_appointment_duration} minutes"
            )
        if not 0 <= template.buffer_time <= policy.max_buffer_time:
            issues.append(f"Buffer time must be between 0 and {policy.max_buffer_time} minutes")

        working = template.working_window
        if working is None:
            return issues

        if working.minutes < policy.min_working_hours * 60 or working.minutes > policy.max_working_hours * 60:
            issues.append(
                f"Working hours must span between {policy.min_working_hours} and {policy.max_working_hours} hours"
            )
        if template.start_time < policy.business_hours_start or template.end_time > policy.business_hours_end:
            issues.append(
                f"Working hours must fall within business hours "
                f"{format_hhmm(policy.business_hours_start)} - {format_hhmm(policy.business_hours_end)}"
            )

        rest = template.break_window
        if rest is not None and not policy.min_break_minutes <= rest.minutes <= policy.max_break_minutes:
            issues.append(
                f"Break must last between {policy.min_break_minutes} and {policy.max_break_minutes} minutes"
            )

        if not 1 <= template.max_appointments_per_day <= policy.max_appointments_per_day:
            issues.append(f"Max appointments per day must be between 1 and {policy.max_appointments_per_day}")
        elif template.appointment_duration > 0 and template.buffer_time >= 0:
            capacity = self.capacity(template)
            if template.max_appointments_per_day > capacity:
                issues.append(
                    f"Max appointments per day ({template.max_appointments_per_day}) "
                    f"exceeds the {capacity} slots the hours allow"
                )
        return issues

    def validate_or_raise(self, template: WorkingDayTemplate) -> None:
        """
        Raises:
            InvalidConfigException: With every issue listed in ``details["issues"]``
        """
        issues = self.validate(template)
        if issues:
            raise InvalidConfigException(
                f"Invalid working-hours template for {template.day_of_week.value}: {issues[0]}",
                issues=issues,
                details={"doctor_id": template.doctor_id, "day_of_week": template.day_of_week.value},
            )

    def capacity(self, template: WorkingDayTemplate) -> int:
        """Upper bound of appointments the hours allow: bookable minutes over slot pitch."""
        working = template.working_window
        if working is None:
            return 0
        rest = template.break_window
        bookable = working.minutes - (rest.minutes if rest else 0)
        return bookable // (template.appointment_duration + template.buffer_time)
