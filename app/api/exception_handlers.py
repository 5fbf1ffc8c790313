"""
Exception handlers for FastAPI application.

Centralizes the JSON error format: ``error``, ``message`` and optional
``details``.
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.domain import DomainException

logger = logging.getLogger(__name__)

DOMAIN_STATUS_CODES: dict[str, int] = {
    "ENTITY_NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "NOT_CONFIGURED": 422,
    "INVALID_CONFIG": 422,
    "ILLEGAL_TRANSITION": 409,
    "SCHEDULING_CONFLICT": 409,
    "SLOT_ALREADY_TAKEN": 409,
    "PERSISTENCE_ERROR": 503,
}


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle HTTPException; structured details from the scheduling routes are kept as-is."""
    http_exc = exc if isinstance(exc, HTTPException) else HTTPException(status_code=500, detail=str(exc))
    detail = http_exc.detail
    if isinstance(detail, dict):
        content = {
            "error": detail.get("error", True),
            "message": detail.get("message"),
            "details": {key: value for key, value in detail.items() if key not in ("error", "message")},
        }
    else:
        content = {"error": True, "message": detail}
    content["status_code"] = http_exc.status_code

    return JSONResponse(status_code=http_exc.status_code, content=content, headers=http_exc.headers)


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render domain exceptions that escaped the facade."""
    if not isinstance(exc, DomainException):
        return await global_exception_handler(request, exc)

    status_code = DOMAIN_STATUS_CODES.get(exc.code, 400)
    if status_code >= 500:
        logger.error(f"Domain error on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"Domain error on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(status_code=status_code, content={**exc.to_dict(), "status_code": status_code})


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle request validation errors with per-field messages."""
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=422, content={"error": True, "message": str(exc), "status_code": 422})

    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.url.path}: {errors}")

    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Validation error",
            "details": errors,
            "status_code": 422,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all unhandled exceptions.

    Logs the full exception with traceback and returns a safe error response.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc!s}",
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={"error": True, "message": "Internal server error", "status_code": 500},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("Exception handlers registered")
