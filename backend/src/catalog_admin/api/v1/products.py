"""Product catalog endpoints.

Reads are public. Mutations and the admin listings require the admin role;
every mutation is written to the audit trail.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.api.deps import get_current_user, get_db
from catalog_admin.auth.rbac import Role, require_roles
from catalog_admin.exceptions import NotFoundError
from catalog_admin.schemas.common import ApiResponse, Pagination
from catalog_admin.schemas.product import (
    ProductCreate,
    ProductData,
    ProductFilters,
    ProductListData,
    ProductRead,
    ProductsData,
    ProductUpdate,
    SortField,
    SortOrder,
)
from catalog_admin.services.audited_actions import AuditedActionService
from catalog_admin.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


def product_filters(
    search: Optional[str] = Query(default=None, description="Substring of name or description"),
    sort_by: SortField = Query(default="created_at", alias="sortBy"),
    sort_order: SortOrder = Query(default="desc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    include_deleted: bool = Query(default=False, alias="includeDeleted"),
) -> ProductFilters:
    """Collect the product listing query parameters into ProductFilters."""
    return ProductFilters(
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
        include_deleted=include_deleted,
    )


@router.get("", response_model=ApiResponse[ProductListData])
async def list_products(
    filters: ProductFilters = Depends(product_filters),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ProductListData]:
    """
    List products.

    - **search**: Case-insensitive match on name or description
    - **sortBy**: `name`, `price` or `created_at` (default)
    - **sortOrder**: `asc` or `desc` (default)
    - **page** / **limit**: 1-indexed page, up to 100 items (default 10)
    - **includeDeleted**: Include soft-deleted products
    """
    products, total = await ProductService(db).list_products(filters)

    return ApiResponse[ProductListData](
        success=True,
        data=ProductListData(
            products=[ProductRead.model_validate(p) for p in products],
            pagination=Pagination.build(page=filters.page, limit=filters.limit, total=total),
        ),
    )


@router.get("/admin/deleted", response_model=ApiResponse[ProductsData])
@require_roles(Role.ADMIN)
async def list_deleted_products(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[ProductsData]:
    """Soft-deleted products, most recently changed first."""
    products = await ProductService(db).list_deleted()

    return ApiResponse[ProductsData](
        success=True,
        data=ProductsData(products=[ProductRead.model_validate(p) for p in products]),
    )


@router.get("/admin/search/{name}", response_model=ApiResponse[ProductsData])
@require_roles(Role.ADMIN)
async def search_products_by_name(
    name: str,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[ProductsData]:
    """Active products whose name contains ``name``, alphabetically."""
    products = await ProductService(db).search_by_name(name)

    return ApiResponse[ProductsData](
        success=True,
        data=ProductsData(products=[ProductRead.model_validate(p) for p in products]),
    )


@router.get("/{product_id}", response_model=ApiResponse[ProductData])
async def get_product(
    product_id: int,
    include_deleted: bool = Query(default=False, alias="includeDeleted"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ProductData]:
    """Get a product by ID. Soft-deleted products are hidden unless includeDeleted is set."""
    product = await ProductService(db).get_product(product_id, include_deleted=include_deleted)
    if not product:
        raise NotFoundError("Product not found")

    return ApiResponse[ProductData](success=True, data=ProductData(product=ProductRead.model_validate(product)))


@router.post("", response_model=ApiResponse[ProductData], status_code=status.HTTP_201_CREATED)
@require_roles(Role.ADMIN)
async def create_product(
    product_data: ProductCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[ProductData]:
    """
    Create a product.

    - **name**: 1 to 255 characters
    - **price**: Positive, at most two decimal places
    - **description**: Optional
    - **image_url**: Optional URL, usually from `POST /api/upload/image`
    """
    product = await AuditedActionService(db).create_product(product_data, actor=current_user)

    return ApiResponse[ProductData](
        success=True,
        message="Product created successfully",
        data=ProductData(product=ProductRead.model_validate(product)),
    )


@router.put("/{product_id}", response_model=ApiResponse[ProductData])
@require_roles(Role.ADMIN)
async def update_product(
    product_id: int,
    changes: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[ProductData]:
    """Update the supplied fields of a product."""
    product = await AuditedActionService(db).update_product(product_id, changes, actor=current_user)

    return ApiResponse[ProductData](
        success=True,
        message="Product updated successfully",
        data=ProductData(product=ProductRead.model_validate(product)),
    )


@router.delete("/{product_id}", response_model=ApiResponse[None])
@require_roles(Role.ADMIN)
async def delete_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[None]:
    """Soft delete a product. It stays restorable."""
    await AuditedActionService(db).delete_product(product_id, actor=current_user)

    return ApiResponse[None](success=True, message="Product deleted successfully")


@router.patch("/{product_id}/restore", response_model=ApiResponse[None])
@require_roles(Role.ADMIN)
async def restore_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[None]:
    """Restore a soft-deleted product. Restoring an active product also succeeds."""
    await AuditedActionService(db).restore_product(product_id, actor=current_user)

    return ApiResponse[None](success=True, message="Product restored successfully")
