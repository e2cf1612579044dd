"""Response envelope and pagination schemas shared by every endpoint."""
import math
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope wrapping every JSON response."""

    success: bool = Field(..., description="Whether the request succeeded")
    message: Optional[str] = Field(default=None, description="Human-readable outcome")
    data: Optional[DataT] = Field(default=None, description="Endpoint payload")
    errors: Optional[list[dict[str, Any]]] = Field(default=None, description="Field-level error details")


class Pagination(BaseModel):
    """Page metadata for list endpoints."""

    page: int = Field(..., ge=1, description="Current page (1-indexed)")
    limit: int = Field(..., ge=1, description="Items per page")
    total: int = Field(..., ge=0, description="Total matching items across all pages")
    total_pages: int = Field(..., ge=0, serialization_alias="totalPages", description="ceil(total / limit)")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))
