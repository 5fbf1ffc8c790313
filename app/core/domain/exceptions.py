"""
Domain exceptions.

Every exception carries a machine-readable ``code``; the application facade
maps codes to result objects and the API maps them to HTTP statuses.
"""

from typing import Any


class DomainException(Exception):
    """
    Base exception for business rule violations.

    Args:
        message: Human-readable error message
        code: Machine-readable error code, defaults to the upper-cased class name
        details: Extra context rendered under ``details`` in API responses
    """

    retryable: bool = False

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Malformed input: bad durations, unknown enum values, inverted ranges."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field


class EntityNotFoundException(DomainException):
    def __init__(self, entity_type: str, entity_id: Any, message: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            message or f"{entity_type} {entity_id} not found",
            "ENTITY_NOT_FOUND",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class InvalidOperationException(DomainException):
    """An operation the entity's current state does not allow."""

    def __init__(
        self,
        operation: str,
        current_state: str,
        message: str | None = None,
        code: str = "INVALID_OPERATION",
    ):
        self.operation = operation
        self.current_state = current_state
        super().__init__(
            message or f"Cannot {operation} while '{current_state}'",
            code,
            {"operation": operation, "current_state": current_state},
        )


class PersistenceException(DomainException):
    """
    Storage failed to read or write.

    The outcome of the write is unknown, so callers may retry with the same
    request ID.
    """

    retryable = True

    def __init__(self, operation: str, original_error: Exception | None = None):
        self.operation = operation
        self.original_error = original_error
        details: dict[str, Any] = {"operation": operation}
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(f"Persistence failure during '{operation}'", "PERSISTENCE_ERROR", details)
