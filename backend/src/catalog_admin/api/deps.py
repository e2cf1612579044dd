"""FastAPI dependencies for database sessions and authentication."""
from typing import AsyncGenerator, Optional

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.auth.jwt import jwt_auth
from catalog_admin.exceptions import UnauthenticatedError
from catalog_admin.services.user_service import UserService

logger = structlog.get_logger(__name__)

# Missing credentials are reported by get_current_user in the API envelope
security = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Sessions come from the Database created at startup and stored on app.state.

    Yields:
        AsyncSession: Database session for the request lifecycle
    """
    async with request.app.state.db.session() as session:
        yield session


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Resolve the caller from a bearer token.

    The token must verify and its subject must still be an active user. Role
    and email are taken from the database, not from the token claims.

    Returns:
        dict: ``{"id", "email", "role"}`` of the authenticated user

    Raises:
        UnauthenticatedError: If the token is missing, invalid, expired, or
            names a user that no longer exists
    """
    if not credentials:
        raise UnauthenticatedError("Access token required")

    token = credentials.credentials

    try:
        payload = jwt_auth.verify_access_token(token)
        user_id = int(payload["sub"])
    except jwt.ExpiredSignatureError:
        logger.warning("token_expired")
        raise UnauthenticatedError("Token has expired")
    except (jwt.InvalidTokenError, ValueError) as e:
        logger.warning("invalid_token", error=str(e))
        raise UnauthenticatedError("Invalid or expired token")

    user = await UserService(db).get_user(user_id)
    if not user:
        logger.warning("token_user_missing", user_id=user_id)
        raise UnauthenticatedError("User not found")

    return {"id": user.id, "email": user.email, "role": user.role.value}

