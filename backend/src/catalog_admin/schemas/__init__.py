"""Pydantic schemas for request validation and response serialization."""
from catalog_admin.schemas.common import ApiResponse, Pagination
from catalog_admin.schemas.user import (
    AuthData,
    LoginRequest,
    RoleUpdate,
    SignupRequest,
    UserData,
    UserListData,
    UserRead,
)
from catalog_admin.schemas.product import (
    ImageData,
    ImageInfo,
    ProductCreate,
    ProductData,
    ProductFilters,
    ProductListData,
    ProductRead,
    ProductsData,
    ProductUpdate,
)
from catalog_admin.schemas.audit_log import (
    AuditLogCreate,
    AuditLogFilters,
    AuditLogListData,
    AuditLogRead,
    AuditLogsData,
    AuditSummary,
    AuditSummaryData,
    PurgeData,
)

__all__ = [
    "ApiResponse",
    "Pagination",
    "AuthData",
    "LoginRequest",
    "RoleUpdate",
    "SignupRequest",
    "UserData",
    "UserListData",
    "UserRead",
    "ImageData",
    "ImageInfo",
    "ProductCreate",
    "ProductData",
    "ProductFilters",
    "ProductListData",
    "ProductRead",
    "ProductsData",
    "ProductUpdate",
    "AuditLogCreate",
    "AuditLogFilters",
    "AuditLogListData",
    "AuditLogRead",
    "AuditLogsData",
    "AuditSummary",
    "AuditSummaryData",
    "PurgeData",
]
