"""Base model with common fields for all entities."""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer

from catalog_admin.database import Base as DeclarativeBase


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC so it compares with stored timestamps."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base model class with an integer primary key."""

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)


class TimestampedBase(Base):
    """Base for mutable entities that track creation and last update."""

    __abstract__ = True

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
