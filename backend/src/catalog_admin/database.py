"""Database engine and session management with async SQLAlchemy."""
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from catalog_admin.config import Settings

logger = structlog.get_logger(__name__)

# Declarative base for all models
Base = declarative_base()


class Database:
    """
    Owns the connection pool and the session factory.

    One instance is created at application startup and disposed on shutdown;
    request handlers check sessions out of it through ``session()``.
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        """
        Create the async engine.

        Args:
            url: SQLAlchemy async database URL
            engine_kwargs: Extra keyword arguments forwarded to create_async_engine
        """
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the pooled engine described by application settings."""
        engine_kwargs: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
        if not settings.database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
            )
        return cls(settings.database_url, **engine_kwargs)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a session that commits on success and rolls back on error.

        Yields:
            AsyncSession: Database session for one unit of work
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create all tables known to the declarative base."""
        # Importing the models package registers every table on Base.metadata
        import catalog_admin.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Release every pooled connection."""
        await self.engine.dispose()
        logger.info("database_disposed")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """SQLite only enforces foreign keys when asked to, per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
