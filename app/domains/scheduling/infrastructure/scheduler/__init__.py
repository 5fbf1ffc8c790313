"""
Scheduling Reminder Scheduler
"""

from app.domains.scheduling.infrastructure.scheduler.reminder_scheduler import (
    APSchedulerReminderScheduler,
    reminder_job_id,
)

__all__ = ["APSchedulerReminderScheduler", "reminder_job_id"]
