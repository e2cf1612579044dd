"""SQLAlchemy ORM models for the catalog admin service."""
# Import all models here to ensure they are registered with Alembic

from catalog_admin.models.base import Base
from catalog_admin.models.user import User, UserRole
from catalog_admin.models.product import Product
from catalog_admin.models.audit_log import AuditLog, AuditAction

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Product",
    "AuditLog",
    "AuditAction",
]
