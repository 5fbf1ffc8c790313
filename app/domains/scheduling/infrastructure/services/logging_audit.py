"""
Logging Audit Logger

IAuditLogger adapter writing one structured line per domain event to a
dedicated ``audit`` logger.
"""

import json
import logging

from app.core.domain import DomainEvent
from app.domains.scheduling.application.ports import IAuditLogger

audit_logger = logging.getLogger("audit.scheduling")


class LoggingAuditLogger(IAuditLogger):
    """Audit adapter that logs events as JSON."""

    async def record(self, event: DomainEvent) -> None:
        audit_logger.info(json.dumps(event.to_dict(), default=str, sort_keys=True))
