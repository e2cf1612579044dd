"""Domain error taxonomy.

Every error carries an ``ErrorKind``; the API layer maps the kind to an HTTP
status in one place instead of inspecting messages.
"""
import enum
from typing import Any, Optional


class ErrorKind(str, enum.Enum):
    """Kinds of failure surfaced to API callers."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation_error"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    PERSISTENCE = "persistence_error"


class CatalogError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = ErrorKind.PERSISTENCE
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class NotFoundError(CatalogError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class ValidationError(CatalogError):
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class InvalidRangeError(ValidationError):
    default_message = "Start date and end date are required"


class UnauthenticatedError(CatalogError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Authentication required"


class InvalidCredentialError(UnauthenticatedError):
    default_message = "Invalid email or password"


class ForbiddenError(CatalogError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied"


class ConflictError(CatalogError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists"


class PersistenceError(CatalogError):
    kind = ErrorKind.PERSISTENCE
    default_message = "A database error occurred"


class AuditWriteError(PersistenceError):
    """The primary mutation succeeded but its audit entry could not be written."""

    default_message = "Action completed but the audit entry could not be recorded"


class StorageError(PersistenceError):
    """Object storage is unconfigured or rejected the request."""

    default_message = "Object storage request failed"
