"""Role-based access control decorator and utilities.

Two roles exist:
- admin: full access, including catalog mutations, users and the audit trail
- user: authenticated access to their own session only
"""
from functools import wraps
from typing import Callable, List

import structlog

from catalog_admin.exceptions import ForbiddenError, UnauthenticatedError
from catalog_admin.models.user import UserRole as Role

logger = structlog.get_logger(__name__)


# Role hierarchy: higher roles inherit permissions from lower roles
ROLE_HIERARCHY = {
    Role.ADMIN: [Role.ADMIN, Role.USER],
    Role.USER: [Role.USER],
}


def check_role_hierarchy(user_role: str, required_roles: List[Role]) -> bool:
    """
    Check if user role satisfies any of the required roles (considering hierarchy).

    Args:
        user_role: User's role
        required_roles: List of acceptable roles

    Returns:
        True if user role satisfies requirement
    """
    try:
        user_role_enum = Role(user_role)
    except ValueError:
        logger.warning("invalid_role_check", role=user_role)
        return False

    user_allowed_roles = ROLE_HIERARCHY.get(user_role_enum, [])
    return any(req_role in user_allowed_roles for req_role in required_roles)


def require_roles(*required_roles: Role):
    """
    Decorator to require specific roles for endpoint access.

    Usage:
        @router.delete("/{product_id}")
        @require_roles(Role.ADMIN)
        async def delete_product(..., current_user: dict = Depends(get_current_user)):
            ...

    Raises:
        UnauthenticatedError: if no user was resolved for the request
        ForbiddenError: if the user's role does not satisfy the requirement
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            # Extract current_user from kwargs (injected by get_current_user dependency)
            current_user = kwargs.get("current_user")

            if not current_user:
                logger.error("rbac_missing_current_user", endpoint=func.__name__)
                raise UnauthenticatedError("Authentication required")

            user_role = current_user.get("role")

            if not check_role_hierarchy(user_role, list(required_roles)):
                logger.warning(
                    "rbac_permission_denied",
                    user_id=current_user.get("id"),
                    user_role=user_role,
                    required_roles=[r.value for r in required_roles],
                    endpoint=func.__name__,
                )
                names = ", ".join(r.value for r in required_roles)
                raise ForbiddenError(f"Access denied. {names} role required.")

            return await func(*args, **kwargs)

        return wrapper
    return decorator
