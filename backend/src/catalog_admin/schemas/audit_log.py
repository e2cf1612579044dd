"""Pydantic schemas for the audit trail."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from catalog_admin.models.audit_log import AuditAction
from catalog_admin.models.base import naive_utc
from catalog_admin.schemas.common import Pagination


class AuditLogCreate(BaseModel):
    """Schema for appending an audit entry."""

    user_id: Optional[int] = Field(default=None, description="Acting user, if any")
    user_email: str = Field(..., min_length=1, description="Snapshot of the acting user's email")
    action: AuditAction = Field(..., description="Action performed")
    product_id: Optional[int] = Field(default=None, description="Product the action applied to")
    details: Optional[dict[str, Any]] = Field(default=None, description="Action-specific payload")


class AuditLogRead(BaseModel):
    """Schema for returning audit entries."""

    id: int
    user_id: Optional[int]
    user_email: str
    action: AuditAction
    product_id: Optional[int]
    details: Optional[dict[str, Any]]
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogFilters(BaseModel):
    """Conjunctive filters for the audit listing. Date bounds are inclusive."""

    user_id: Optional[int] = Field(default=None, gt=0)
    product_id: Optional[int] = Field(default=None, gt=0)
    action: Optional[AuditAction] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def as_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(value) if value else value

    @model_validator(mode="after")
    def ordered_dates(self) -> "AuditLogFilters":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class AuditSummary(BaseModel):
    """Whole-log counts for dashboards."""

    total: int
    by_action: dict[str, int] = Field(default_factory=dict, serialization_alias="byAction")
    by_user: dict[str, int] = Field(default_factory=dict, serialization_alias="byUser")


class AuditLogListData(BaseModel):
    logs: list[AuditLogRead]
    pagination: Pagination


class AuditLogsData(BaseModel):
    logs: list[AuditLogRead]


class AuditSummaryData(BaseModel):
    summary: AuditSummary


class PurgeData(BaseModel):
    deleted: int
    days: int
