"""Audit log model for tracking state-changing actions."""
import enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB

from catalog_admin.models.base import Base, utcnow


class AuditAction(str, enum.Enum):
    """Actions recorded in the audit trail."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESTORE = "RESTORE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"


class AuditLog(Base):
    """
    Append-only audit record.

    ``user_email`` is a snapshot of the actor at action time and survives the
    actor's deletion. Rows are never updated; only the age-based purge removes them.
    """

    __tablename__ = "audit_logs"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_email = Column(String(255), nullable=False)
    action = Column(
        SQLEnum(AuditAction, name="audit_action", native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    details = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<AuditLog(id={self.id}, action={self.action}, user_email={self.user_email}, product_id={self.product_id})>"
