#!/usr/bin/env python3
"""
Delete audit log entries older than a retention period.

Meant to be run from cron or a scheduled job; the API exposes the same
operation as DELETE /api/audit/purge.

Usage:
    # Purge with the configured retention (AUDIT_RETENTION_DAYS, default 365)
    python purge_audit_logs.py

    # Keep only the last 90 days
    python purge_audit_logs.py --days 90

    # Report how many entries would be removed without deleting
    python purge_audit_logs.py --days 90 --dry-run
"""

import argparse
import asyncio
import sys
from datetime import timedelta

import structlog
from sqlalchemy import func, select

from catalog_admin.config import settings
from catalog_admin.database import Database
from catalog_admin.middleware.logging import setup_logging
from catalog_admin.models.audit_log import AuditLog
from catalog_admin.models.base import utcnow
from catalog_admin.services.audit_service import AuditLogService

logger = structlog.get_logger("purge_audit_logs")


async def run(days: int, dry_run: bool) -> int:
    database = Database.from_settings(settings)
    try:
        async with database.session() as session:
            if dry_run:
                cutoff = utcnow() - timedelta(days=days)
                count = await session.scalar(
                    select(func.count(AuditLog.id)).where(AuditLog.timestamp < cutoff)
                )
                logger.info("audit_purge_dry_run", days=days, cutoff=cutoff.isoformat(), would_delete=count or 0)
                return 0

            deleted = await AuditLogService(session).purge_older_than(days)
            logger.info("audit_purge_completed", days=days, deleted=deleted)
    finally:
        await database.dispose()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Purge old audit log entries")
    parser.add_argument(
        "--days",
        type=int,
        default=settings.audit_retention_days,
        help=f"Delete entries older than this many days (default: {settings.audit_retention_days})",
    )
    parser.add_argument("--dry-run", action="store_true", help="Only count matching entries")
    args = parser.parse_args()

    if args.days < 1:
        parser.error("--days must be at least 1")

    setup_logging()
    try:
        return asyncio.run(run(args.days, args.dry_run))
    except Exception as e:
        logger.exception("audit_purge_failed", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
