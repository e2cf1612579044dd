"""Pydantic schemas for users and authentication."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from catalog_admin.models.user import UserRole


class SignupRequest(BaseModel):
    """Schema for creating an account.

    Examples:
        ```json
        {"email": "admin@example.com", "password": "secret123", "role": "admin"}
        ```
    """

    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=6, description="Password (at least 6 characters)")
    role: UserRole = Field(default=UserRole.USER, description="Role granted at signup")


class LoginRequest(BaseModel):
    """Schema for exchanging credentials for a token."""

    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=6, description="Password")


class RoleUpdate(BaseModel):
    """Schema for changing a user's role."""

    role: UserRole = Field(..., description="New role")


class UserRead(BaseModel):
    """Schema for returning user data. Never includes the password hash."""

    id: int
    email: str
    role: UserRole
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserData(BaseModel):
    user: UserRead


class UserListData(BaseModel):
    users: list[UserRead]


class AuthData(BaseModel):
    """Payload returned by signup and login."""

    user: UserRead
    token: str
