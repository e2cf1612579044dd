"""Audit trail query endpoints (admin only)."""
from datetime import datetime
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.api.deps import get_current_user, get_db
from catalog_admin.auth.rbac import Role, require_roles
from catalog_admin.config import settings
from catalog_admin.exceptions import ValidationError
from catalog_admin.models.audit_log import AuditAction
from catalog_admin.schemas.audit_log import (
    AuditLogFilters,
    AuditLogListData,
    AuditLogRead,
    AuditLogsData,
    AuditSummaryData,
    PurgeData,
)
from catalog_admin.schemas.common import ApiResponse
from catalog_admin.services.audit_service import AuditLogService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/audit", tags=["Audit"])


def audit_filters(
    user_id: Optional[int] = Query(default=None, gt=0),
    product_id: Optional[int] = Query(default=None, gt=0),
    action: Optional[AuditAction] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogFilters:
    """Collect the audit listing query parameters into AuditLogFilters."""
    return AuditLogFilters(
        user_id=user_id,
        product_id=product_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )


def logs_response(logs: list) -> ApiResponse[AuditLogsData]:
    """Wrap unpaginated audit entries in the response envelope."""
    return ApiResponse[AuditLogsData](
        success=True,
        data=AuditLogsData(logs=[AuditLogRead.model_validate(log) for log in logs]),
    )


@router.get("", response_model=ApiResponse[AuditLogListData])
@require_roles(Role.ADMIN)
async def list_audit_logs(
    filters: AuditLogFilters = Depends(audit_filters),
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[AuditLogListData]:
    """
    List audit entries, newest first.

    - **user_id**, **product_id**, **action**: Exact-match filters
    - **startDate** / **endDate**: Inclusive timestamp bounds
    - **page** / **limit**: 1-indexed page, up to 100 items (default 50)
    """
    logs, pagination = await AuditLogService(db).find_all(filters)

    return ApiResponse[AuditLogListData](
        success=True,
        data=AuditLogListData(logs=[AuditLogRead.model_validate(log) for log in logs], pagination=pagination),
    )


@router.get("/product/{product_id}", response_model=ApiResponse[AuditLogsData])
@require_roles(Role.ADMIN)
async def product_audit_logs(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[AuditLogsData]:
    """Entries for one product, newest first."""
    return logs_response(await AuditLogService(db).by_product(product_id))


@router.get("/user/{user_id}", response_model=ApiResponse[AuditLogsData])
@require_roles(Role.ADMIN)
async def user_audit_logs(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[AuditLogsData]:
    """Entries written by one user, newest first."""
    return logs_response(await AuditLogService(db).by_user(user_id))


@router.get("/action/{action}", response_model=ApiResponse[AuditLogsData])
@require_roles(Role.ADMIN)
async def action_audit_logs(
    action: str,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[AuditLogsData]:
    """Entries for one action (CREATE, UPDATE, DELETE, RESTORE, LOGIN, LOGOUT)."""
    try:
        audit_action = AuditAction(action.upper())
    except ValueError:
        allowed = ", ".join(a.value for a in AuditAction)
        raise ValidationError(
            f"Invalid action. Must be one of: {allowed}",
            errors=[{"code": "invalid_enum_value", "message": f"Must be one of: {allowed}", "field": "action", "value": action}],
        ) from None

    return logs_response(await AuditLogService(db).by_action(audit_action))


@router.get("/recent", response_model=ApiResponse[AuditLogsData])
@require_roles(Role.ADMIN)
async def recent_audit_logs(
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[AuditLogsData]:
    """The most recent entries (default 10)."""
    return logs_response(await AuditLogService(db).recent(limit))


@router.get("/summary", response_model=ApiResponse[AuditSummaryData])
@require_roles(Role.ADMIN)
async def audit_summary(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[AuditSummaryData]:
    """Counts over the whole log: total, per action and per user email."""
    summary = await AuditLogService(db).summarize()

    return ApiResponse[AuditSummaryData](success=True, data=AuditSummaryData(summary=summary))


@router.get("/date-range", response_model=ApiResponse[AuditLogsData])
@require_roles(Role.ADMIN)
async def date_range_audit_logs(
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[AuditLogsData]:
    """Entries with startDate <= timestamp <= endDate. Both bounds are required."""
    return logs_response(await AuditLogService(db).by_date_range(start_date, end_date))


@router.delete("/purge", response_model=ApiResponse[PurgeData])
@require_roles(Role.ADMIN)
async def purge_audit_logs(
    days: int = Query(default=settings.audit_retention_days, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[PurgeData]:
    """Delete entries older than ``days`` days (default from settings)."""
    deleted = await AuditLogService(db).purge_older_than(days)

    logger.warning("audit_logs_purge_requested", days=days, deleted=deleted, user_id=current_user["id"])
    return ApiResponse[PurgeData](
        success=True,
        message=f"Deleted {deleted} audit log entries older than {days} days",
        data=PurgeData(deleted=deleted, days=days),
    )
