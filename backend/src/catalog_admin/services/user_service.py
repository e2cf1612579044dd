"""User service for identity management."""
from typing import Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.auth.password import hash_password, verify_password
from catalog_admin.exceptions import ConflictError, ForbiddenError, InvalidCredentialError, NotFoundError
from catalog_admin.models.base import utcnow
from catalog_admin.models.user import User, UserRole

logger = structlog.get_logger(__name__)


class UserService:
    """Service layer for user operations."""

    def __init__(self, db: AsyncSession):
        """Initialize user service with database session."""
        self.db = db

    async def create_user(self, email: str, password: str, role: UserRole = UserRole.USER) -> User:
        """
        Create a new user.

        Raises:
            ConflictError: If an active user already has this email
        """
        existing = await self.get_user_by_email(email)
        if existing:
            raise ConflictError("User with this email already exists")

        user = User(email=email, password_hash=hash_password(password), role=role)
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent signup with the same email
            await self.db.rollback()
            raise ConflictError("User with this email already exists") from e
        await self.db.refresh(user)

        logger.info("user_created", user_id=user.id, role=user.role.value)
        return user

    async def get_user(self, user_id: int) -> User | None:
        """Get a non-deleted user by ID."""
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        """Get a non-deleted user by email."""
        result = await self.db.execute(
            select(User).where(User.email == email, User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    async def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials.

        Unknown email and wrong password produce the same error.

        Raises:
            InvalidCredentialError: If the credentials do not match an active user
        """
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("login_rejected", email=email)
            raise InvalidCredentialError("Invalid email or password")
        return user

    async def touch_last_login(self, user_id: int) -> None:
        """Bump updated_at to record the latest login."""
        await self.db.execute(update(User).where(User.id == user_id).values(updated_at=utcnow()))
        await self.db.flush()

    async def list_users(self) -> list[User]:
        """List non-deleted users, newest first."""
        result = await self.db.execute(
            select(User).where(User.is_deleted.is_(False)).order_by(User.created_at.desc(), User.id.desc())
        )
        return list(result.scalars().all())

    async def update_role(self, user_id: int, role: UserRole, acting_user_id: Optional[int] = None) -> User:
        """
        Change a user's role.

        Raises:
            NotFoundError: If the user does not exist
            ForbiddenError: If an admin tries to remove their own admin role
        """
        user = await self._require_user(user_id)

        if user.id == acting_user_id and role != UserRole.ADMIN:
            raise ForbiddenError("Cannot remove your own admin role")

        user.role = role
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("user_role_updated", user_id=user.id, role=role.value, acting_user_id=acting_user_id)
        return user

    async def soft_delete(self, user_id: int, acting_user_id: Optional[int] = None) -> User:
        """
        Soft delete a user.

        Raises:
            NotFoundError: If the user does not exist
            ForbiddenError: If an admin tries to delete their own account
        """
        user = await self._require_user(user_id)

        if user.id == acting_user_id:
            raise ForbiddenError("Cannot delete your own account")

        user.is_deleted = True
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("user_deleted", user_id=user.id, acting_user_id=acting_user_id)
        return user

    async def _require_user(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
