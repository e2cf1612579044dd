"""Audit log service: the append-only store and its query surface."""
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.exceptions import InvalidRangeError, PersistenceError
from catalog_admin.metrics import audit_logs_purged_total
from catalog_admin.models.audit_log import AuditAction, AuditLog
from catalog_admin.models.base import naive_utc, utcnow
from catalog_admin.schemas.audit_log import AuditLogCreate, AuditLogFilters, AuditSummary
from catalog_admin.schemas.common import Pagination

logger = structlog.get_logger(__name__)

# Newest first; id breaks ties between entries written in the same instant
NEWEST_FIRST = (AuditLog.timestamp.desc(), AuditLog.id.desc())


class AuditLogService:
    """Service layer for audit log reads and appends.

    Entries are never edited. The only removal path is ``purge_older_than``.
    """

    def __init__(self, db: AsyncSession):
        """Initialize audit log service with database session."""
        self.db = db

    async def append(self, entry: AuditLogCreate) -> AuditLog:
        """
        Insert an audit entry and return it with server-assigned fields.

        Raises:
            PersistenceError: If the store is unreachable or a constraint fails
                (for example a product_id that does not exist)
        """
        audit_log = AuditLog(**entry.model_dump())

        try:
            self.db.add(audit_log)
            await self.db.flush()
            await self.db.refresh(audit_log)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to create audit log") from e

        logger.info(
            "audit_log_created",
            audit_id=audit_log.id,
            action=audit_log.action.value,
            user_id=audit_log.user_id,
            product_id=audit_log.product_id,
        )
        return audit_log

    async def find_by_id(self, audit_id: int) -> AuditLog | None:
        return await self.db.get(AuditLog, audit_id)

    async def find_all(self, filters: AuditLogFilters) -> tuple[list[AuditLog], Pagination]:
        """
        Filtered, paginated listing.

        All filters are optional and combined with AND. Date bounds are inclusive.

        Returns:
            Tuple of (entries for the requested page, pagination metadata)
        """
        conditions = []
        if filters.user_id is not None:
            conditions.append(AuditLog.user_id == filters.user_id)
        if filters.product_id is not None:
            conditions.append(AuditLog.product_id == filters.product_id)
        if filters.action is not None:
            conditions.append(AuditLog.action == filters.action)
        if filters.start_date is not None:
            conditions.append(AuditLog.timestamp >= naive_utc(filters.start_date))
        if filters.end_date is not None:
            conditions.append(AuditLog.timestamp <= naive_utc(filters.end_date))

        total = await self.db.scalar(select(func.count(AuditLog.id)).where(*conditions)) or 0

        result = await self.db.execute(
            select(AuditLog)
            .where(*conditions)
            .order_by(*NEWEST_FIRST)
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        logs = list(result.scalars().all())

        return logs, Pagination.build(page=filters.page, limit=filters.limit, total=total)

    async def by_user(self, user_id: int) -> list[AuditLog]:
        return await self._list(AuditLog.user_id == user_id)

    async def by_product(self, product_id: int) -> list[AuditLog]:
        return await self._list(AuditLog.product_id == product_id)

    async def by_action(self, action: AuditAction) -> list[AuditLog]:
        return await self._list(AuditLog.action == action)

    async def recent(self, limit: int = 10) -> list[AuditLog]:
        """The ``limit`` most recent entries."""
        result = await self.db.execute(select(AuditLog).order_by(*NEWEST_FIRST).limit(limit))
        return list(result.scalars().all())

    async def by_date_range(self, start: Optional[datetime], end: Optional[datetime]) -> list[AuditLog]:
        """
        Entries with start <= timestamp <= end, newest first.

        Raises:
            InvalidRangeError: If either bound is missing or start is after end
        """
        if start is None or end is None:
            raise InvalidRangeError("Start date and end date are required")
        start, end = naive_utc(start), naive_utc(end)
        if start > end:
            raise InvalidRangeError("Start date must not be after end date")

        return await self._list(AuditLog.timestamp >= start, AuditLog.timestamp <= end)

    async def summarize(self) -> AuditSummary:
        """Counts over the whole log, overall and per action and per actor email."""
        total = await self.db.scalar(select(func.count(AuditLog.id))) or 0

        action_rows = await self.db.execute(
            select(AuditLog.action, func.count(AuditLog.id)).group_by(AuditLog.action)
        )
        user_rows = await self.db.execute(
            select(AuditLog.user_email, func.count(AuditLog.id)).group_by(AuditLog.user_email)
        )

        return AuditSummary(
            total=total,
            by_action={action.value: count for action, count in action_rows.all()},
            by_user={email: count for email, count in user_rows.all()},
        )

    async def purge_older_than(self, days: int = 365) -> int:
        """
        Delete entries older than ``days`` days.

        Returns:
            Number of entries deleted
        """
        cutoff = utcnow() - timedelta(days=days)

        result = await self.db.execute(delete(AuditLog).where(AuditLog.timestamp < cutoff))
        await self.db.flush()
        audit_logs_purged_total.inc(result.rowcount)

        logger.info("audit_logs_purged", cutoff=cutoff.isoformat(), days=days, deleted=result.rowcount)
        return result.rowcount

    async def _list(self, *conditions: Any) -> list[AuditLog]:
        result = await self.db.execute(select(AuditLog).where(*conditions).order_by(*NEWEST_FIRST))
        return list(result.scalars().all())

