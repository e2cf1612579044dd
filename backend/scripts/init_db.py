#!/usr/bin/env python3
"""
Create the database tables and the default admin user.

Tables that already exist are left alone, so the script is safe to re-run.
Production deployments should apply the Alembic migrations instead and use
this script only with --skip-tables to seed the admin.

Usage:
    # Create tables and the default admin from settings
    python init_db.py

    # Seed a different admin into an already migrated database
    python init_db.py --skip-tables --email ops@example.com --password 's3cret!'
"""

import argparse
import asyncio
import sys

import structlog

from catalog_admin.bootstrap import ensure_default_admin, initialize
from catalog_admin.config import settings
from catalog_admin.database import Database
from catalog_admin.middleware.logging import setup_logging

logger = structlog.get_logger("init_db")


async def run(args: argparse.Namespace) -> int:
    database = Database.from_settings(settings)
    try:
        if args.skip_tables:
            async with database.session() as session:
                _, created = await ensure_default_admin(session, args.email, args.password)
        else:
            created = await initialize(database, args.email, args.password)
    finally:
        await database.dispose()

    logger.info("init_db_completed", admin_email=args.email, admin_created=created)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize the catalog admin database")
    parser.add_argument("--email", default=settings.default_admin_email, help="Admin email to seed")
    parser.add_argument("--password", default=settings.default_admin_password, help="Admin password to seed")
    parser.add_argument(
        "--skip-tables",
        action="store_true",
        help="Only seed the admin; assume migrations already created the tables",
    )
    args = parser.parse_args()

    setup_logging()
    try:
        return asyncio.run(run(args))
    except Exception as e:
        logger.exception("init_db_failed", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
