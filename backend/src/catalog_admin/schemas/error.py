"""Structured error detail schemas."""
from typing import Any

from pydantic import BaseModel, Field

from catalog_admin.exceptions import ErrorKind


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(default=None, description="Field that caused the error (for validation errors)")
    value: Any | None = Field(default=None, description="Invalid value (for validation errors)")


# Error codes enum for consistency
class ErrorCode:
    """Standard error codes used across the API."""

    # Validation errors (400)
    INVALID_AMOUNT = "invalid_amount"
    INVALID_DATE = "invalid_date"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    VALIDATION_ERROR = "validation_error"

    # Domain errors
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"

    # Internal errors (500)
    DATABASE_ERROR = "database_error"
    INTERNAL_ERROR = "internal_error"


# Map pydantic error types to our error codes
PYDANTIC_ERROR_CODES = {
    "enum": ErrorCode.INVALID_ENUM_VALUE,
    "literal_error": ErrorCode.INVALID_ENUM_VALUE,
    "missing": ErrorCode.MISSING_REQUIRED_FIELD,
    "greater_than": ErrorCode.INVALID_AMOUNT,
    "decimal_max_places": ErrorCode.INVALID_AMOUNT,
    "datetime_from_date_parsing": ErrorCode.INVALID_DATE,
    "datetime_parsing": ErrorCode.INVALID_DATE,
}

# HTTP status for each domain error kind
STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.PERSISTENCE: 500,
}


def details_from_pydantic(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert pydantic error dicts into ErrorDetail payloads."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        value = error.get("input")
        details.append(
            ErrorDetail(
                code=PYDANTIC_ERROR_CODES.get(error["type"], ErrorCode.VALIDATION_ERROR),
                message=error["msg"],
                field=".".join(loc) or None,
                value=value if isinstance(value, (str, int, float, bool)) else None,
            ).model_dump()
        )
    return details
