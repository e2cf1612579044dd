"""User model for admin and catalog operators."""
import enum

from sqlalchemy import Boolean, Column, Index, String, text
from sqlalchemy import Enum as SQLEnum

from catalog_admin.models.base import TimestampedBase


class UserRole(str, enum.Enum):
    """Roles a user can hold."""

    ADMIN = "admin"
    USER = "user"


class User(TimestampedBase):
    """
    Identity record.

    Users are soft-deleted; the email is unique among users that are not deleted.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    email = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(
            UserRole,
            name="user_role",
            native_enum=False,
            length=20,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=UserRole.USER,
    )
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, email={self.email}, role={self.role.value if self.role else None})>"
