"""
Request logging middleware.

Logs method, path, status and latency of every scheduling request and tags
it with a correlation ID.
"""

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    HTTP middleware for request/response logging.

    Client errors (4xx) are logged at WARNING, so rejected bookings are
    visible next to the facade's own warnings.
    """

    QUIET_PATHS: tuple[str, ...] = ("/health", "/favicon.ico")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex[:8]
        request.state.correlation_id = correlation_id

        if request.url.path.startswith(self.QUIET_PATHS):
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(f"[{correlation_id}] {request.method} {request.url.path} failed after {elapsed_ms:.1f}ms: {e}")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"[{correlation_id}] {request.method} {request.url.path} -> {response.status_code} in {elapsed_ms:.1f}ms",
        )
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
