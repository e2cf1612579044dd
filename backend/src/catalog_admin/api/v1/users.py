"""User administration endpoints (admin only)."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.api.deps import get_current_user, get_db
from catalog_admin.auth.rbac import Role, require_roles
from catalog_admin.exceptions import NotFoundError
from catalog_admin.schemas.common import ApiResponse
from catalog_admin.schemas.product import ProductRead, ProductsData
from catalog_admin.schemas.user import RoleUpdate, UserData, UserListData, UserRead
from catalog_admin.services.product_service import ProductService
from catalog_admin.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=ApiResponse[UserListData])
@require_roles(Role.ADMIN)
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[UserListData]:
    """List active users, newest first."""
    users = await UserService(db).list_users()

    return ApiResponse[UserListData](
        success=True,
        data=UserListData(users=[UserRead.model_validate(user) for user in users]),
    )


@router.get("/{user_id}", response_model=ApiResponse[UserData])
@require_roles(Role.ADMIN)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[UserData]:
    """Get an active user by ID."""
    user = await UserService(db).get_user(user_id)
    if not user:
        raise NotFoundError("User not found")

    return ApiResponse[UserData](success=True, data=UserData(user=UserRead.model_validate(user)))


@router.get("/{user_id}/products", response_model=ApiResponse[ProductsData])
@require_roles(Role.ADMIN)
async def list_user_products(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[ProductsData]:
    """Active products created by a user, newest first."""
    if not await UserService(db).get_user(user_id):
        raise NotFoundError("User not found")

    products = await ProductService(db).list_by_creator(user_id)

    return ApiResponse[ProductsData](
        success=True,
        data=ProductsData(products=[ProductRead.model_validate(p) for p in products]),
    )


@router.patch("/{user_id}/role", response_model=ApiResponse[UserData])
@require_roles(Role.ADMIN)
async def update_user_role(
    user_id: int,
    request: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[UserData]:
    """
    Change a user's role.

    An admin cannot remove their own admin role.
    """
    user = await UserService(db).update_role(user_id, request.role, acting_user_id=current_user["id"])

    return ApiResponse[UserData](
        success=True,
        message="User role updated successfully",
        data=UserData(user=UserRead.model_validate(user)),
    )


@router.delete("/{user_id}", response_model=ApiResponse[UserData])
@require_roles(Role.ADMIN)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[UserData]:
    """
    Soft delete a user.

    An admin cannot delete their own account. Audit entries written by the
    user keep their email.
    """
    user = await UserService(db).soft_delete(user_id, acting_user_id=current_user["id"])

    return ApiResponse[UserData](
        success=True,
        message="User deleted successfully",
        data=UserData(user=UserRead.model_validate(user)),
    )
