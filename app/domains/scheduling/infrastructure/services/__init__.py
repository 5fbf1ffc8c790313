"""
Scheduling Infrastructure Services
"""

from app.domains.scheduling.infrastructure.services.logging_audit import LoggingAuditLogger
from app.domains.scheduling.infrastructure.services.logging_notification import LoggingNotificationService

__all__ = ["LoggingAuditLogger", "LoggingNotificationService"]
