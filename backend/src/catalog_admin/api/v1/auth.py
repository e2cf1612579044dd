"""Authentication endpoints: signup, login, logout and the current user."""
import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.api.deps import get_current_user, get_db
from catalog_admin.exceptions import UnauthenticatedError
from catalog_admin.schemas.common import ApiResponse
from catalog_admin.schemas.user import AuthData, LoginRequest, SignupRequest, UserData, UserRead
from catalog_admin.services.audited_actions import AuditedActionService
from catalog_admin.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", response_model=ApiResponse[AuthData], status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AuthData]:
    """
    Create an account and return it with an access token.

    - **email**: Login email (unique among active users)
    - **password**: At least 6 characters
    - **role**: `admin` or `user` (default: `user`)
    """
    user, token = await AuditedActionService(db).signup(request)

    return ApiResponse[AuthData](
        success=True,
        message="User created successfully",
        data=AuthData(user=UserRead.model_validate(user), token=token),
    )


@router.post("/login", response_model=ApiResponse[AuthData])
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AuthData]:
    """Exchange email and password for an access token."""
    user, token = await AuditedActionService(db).login(request.email, request.password)

    return ApiResponse[AuthData](
        success=True,
        message="Login successful",
        data=AuthData(user=UserRead.model_validate(user), token=token),
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[None]:
    """
    Record a logout.

    Tokens are not revoked; the client discards its token.
    """
    await AuditedActionService(db).logout(actor=current_user)

    return ApiResponse[None](success=True, message="Logout successful")


@router.get("/me", response_model=ApiResponse[UserData])
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[UserData]:
    """Return the authenticated user."""
    user = await UserService(db).get_user(current_user["id"])
    if not user:
        raise UnauthenticatedError("User not found")

    return ApiResponse[UserData](success=True, data=UserData(user=UserRead.model_validate(user)))
