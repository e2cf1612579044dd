"""Product image upload endpoints (admin only).

Images go to the object store; attaching or removing a product's image is
an audited product UPDATE.
"""
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.api.deps import get_current_user, get_db
from catalog_admin.auth.rbac import Role, require_roles
from catalog_admin.exceptions import NotFoundError, StorageError, ValidationError
from catalog_admin.schemas.common import ApiResponse
from catalog_admin.schemas.product import ImageData, ProductData, ProductRead
from catalog_admin.services.audited_actions import AuditedActionService
from catalog_admin.services.product_service import ProductService
from catalog_admin.services.storage_service import S3StorageService, get_storage

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/upload", tags=["Upload"])


async def read_image(image: Optional[UploadFile]) -> tuple[bytes, Optional[str], Optional[str]]:
    if image is None:
        raise ValidationError(
            "No image file provided",
            errors=[{"code": "missing_required_field", "message": "Field required", "field": "image"}],
        )
    data = await image.read()
    return data, image.filename, image.content_type


@router.post("/products/{product_id}/image", response_model=ApiResponse[ImageData])
@require_roles(Role.ADMIN)
async def upload_product_image(
    product_id: int,
    image: Optional[UploadFile] = File(default=None, description="Image file (jpeg, png, gif, webp; max 5MB)"),
    db: AsyncSession = Depends(get_db),
    storage: S3StorageService = Depends(get_storage),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[ImageData]:
    """
    Upload an image and attach it to a product.

    If the product disappears before the image is attached, the uploaded
    object is deleted again.
    """
    data, filename, content_type = await read_image(image)

    if not await ProductService(db).get_product(product_id, include_deleted=True):
        raise NotFoundError("Product not found")

    uploaded = await storage.upload(data, filename, content_type, folder="products")

    try:
        product = await AuditedActionService(db).set_product_image(product_id, uploaded.url, actor=current_user)
    except NotFoundError:
        await storage.delete(uploaded.key)
        raise

    return ApiResponse[ImageData](
        success=True,
        message="Product image uploaded successfully",
        data=ImageData(image=uploaded, product=ProductRead.model_validate(product)),
    )


@router.post("/image", response_model=ApiResponse[ImageData])
@require_roles(Role.ADMIN)
async def upload_image(
    image: Optional[UploadFile] = File(default=None, description="Image file (jpeg, png, gif, webp; max 5MB)"),
    storage: S3StorageService = Depends(get_storage),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[ImageData]:
    """Upload an image not yet tied to a product, for use in a later create."""
    data, filename, content_type = await read_image(image)

    uploaded = await storage.upload(data, filename, content_type, folder="products")

    return ApiResponse[ImageData](success=True, message="Image uploaded successfully", data=ImageData(image=uploaded))


@router.delete("/products/{product_id}/image", response_model=ApiResponse[ProductData])
@require_roles(Role.ADMIN)
async def delete_product_image(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    storage: S3StorageService = Depends(get_storage),
    current_user: dict = Depends(get_current_user),
) -> ApiResponse[ProductData]:
    """
    Remove a product's image.

    The product's image_url is cleared even if the object store refuses the delete.
    """
    product = await ProductService(db).get_product(product_id, include_deleted=True)
    if not product:
        raise NotFoundError("Product not found")

    if product.image_url:
        key = storage.key_from_url(product.image_url)
        if key:
            try:
                await storage.delete(key)
            except StorageError as e:
                logger.warning("product_image_delete_failed", product_id=product_id, key=key, error=str(e))

    product = await AuditedActionService(db).set_product_image(product_id, None, actor=current_user)

    return ApiResponse[ProductData](
        success=True,
        message="Product image deleted successfully",
        data=ProductData(product=ProductRead.model_validate(product)),
    )
