"""Integration tests for product image uploads."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.models.audit_log import AuditAction
from catalog_admin.models.product import Product
from catalog_admin.services.audit_service import AuditLogService
from catalog_admin.services.storage_service import S3StorageService, file_extension

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def png(name: str = "photo.png", data: bytes = PNG_BYTES) -> dict:
    return {"image": (name, data, "image/png")}


@pytest.mark.asyncio
async def test_upload_product_image(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict, storage, test_product: Product
) -> None:
    """Test that an upload stores the object, sets image_url and audits an UPDATE."""
    response = await async_client.post(
        f"/api/upload/products/{test_product.id}/image",
        files=png(),
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    key = data["image"]["key"]
    assert key.startswith("products/") and key.endswith(".png")
    assert storage.objects[key] == PNG_BYTES
    assert data["image"]["url"] == f"https://test-bucket.s3.us-east-1.amazonaws.com/{key}"
    assert data["product"]["image_url"] == data["image"]["url"]

    logs = await AuditLogService(db_session).by_product(test_product.id)
    assert len(logs) == 1
    assert logs[0].action == AuditAction.UPDATE
    assert logs[0].details == {"product_name": "Steel Bracket", "updated_fields": ["image_url"]}


@pytest.mark.asyncio
async def test_upload_rejects_non_image(
    async_client: AsyncClient, admin_headers: dict, storage, test_product: Product
) -> None:
    """Test that non-image content types are a 400 and nothing is stored."""
    response = await async_client.post(
        f"/api/upload/products/{test_product.id}/image",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid file type. Only images are allowed."
    assert storage.objects == {}


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file(
    async_client: AsyncClient, admin_headers: dict, storage, test_product: Product
) -> None:
    """Test the size limit."""
    storage.max_bytes = 16

    response = await async_client.post(
        f"/api/upload/products/{test_product.id}/image",
        files=png(),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("File size too large")
    assert storage.objects == {}


@pytest.mark.asyncio
async def test_upload_without_file(async_client: AsyncClient, admin_headers: dict, test_product: Product) -> None:
    """Test that a missing image field is a 400."""
    response = await async_client.post(
        f"/api/upload/products/{test_product.id}/image",
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "No image file provided"


@pytest.mark.asyncio
async def test_upload_to_missing_product(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict, storage
) -> None:
    """Test that an unknown product is a 404 and nothing is uploaded."""
    response = await async_client.post("/api/upload/products/777/image", files=png(), headers=admin_headers)

    assert response.status_code == 404
    assert storage.objects == {}
    assert await AuditLogService(db_session).recent() == []


@pytest.mark.asyncio
async def test_upload_requires_admin(
    async_client: AsyncClient, user_headers: dict, storage, test_product: Product
) -> None:
    """Test that regular users cannot upload."""
    response = await async_client.post(
        f"/api/upload/products/{test_product.id}/image",
        files=png(),
        headers=user_headers,
    )

    assert response.status_code == 403
    assert storage.objects == {}


@pytest.mark.asyncio
async def test_upload_standalone_image(async_client: AsyncClient, admin_headers: dict, storage) -> None:
    """Test uploading an image that is not yet tied to a product."""
    response = await async_client.post("/api/upload/image", files=png("banner.webp"), headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Image uploaded successfully"
    assert body["data"]["product"] is None
    assert body["data"]["image"]["filename"].endswith(".webp")
    assert body["data"]["image"]["key"] in storage.objects


@pytest.mark.asyncio
async def test_upload_without_bucket_is_storage_error(
    async_client: AsyncClient, admin_headers: dict, storage
) -> None:
    """Test that an unconfigured bucket is reported as a server error."""
    storage.bucket = None

    response = await async_client.post("/api/upload/image", files=png(), headers=admin_headers)

    assert response.status_code == 500
    assert response.json()["message"] == "AWS_S3_BUCKET_NAME is not configured"


@pytest.mark.asyncio
async def test_delete_product_image(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict, storage, test_product: Product
) -> None:
    """Test that removing an image deletes the object and clears image_url."""
    uploaded = await async_client.post(
        f"/api/upload/products/{test_product.id}/image",
        files=png(),
        headers=admin_headers,
    )
    key = uploaded.json()["data"]["image"]["key"]

    response = await async_client.delete(f"/api/upload/products/{test_product.id}/image", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["product"]["image_url"] is None
    assert storage.deleted == [key]
    assert key not in storage.objects

    logs = await AuditLogService(db_session).by_product(test_product.id)
    assert [log.action for log in logs] == [AuditAction.UPDATE, AuditAction.UPDATE]


@pytest.mark.asyncio
async def test_delete_image_of_missing_product(async_client: AsyncClient, admin_headers: dict) -> None:
    """Test that removing the image of an unknown product is a 404."""
    response = await async_client.delete("/api/upload/products/777/image", headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.parametrize(
    "url,key",
    [
        ("https://images.s3.us-east-1.amazonaws.com/products/a.png", "products/a.png"),
        ("http://localhost:9000/images/products/b.jpg", "products/b.jpg"),
        ("https://cdn.example.com/", None),
    ],
)
def test_key_from_url(url: str, key) -> None:
    """Test recovering object keys from virtual-host and path-style URLs."""
    storage = S3StorageService(bucket="images")

    assert storage.key_from_url(url) == key


def test_url_for_custom_endpoint() -> None:
    """Test path-style URLs when an endpoint is configured."""
    storage = S3StorageService(bucket="images", endpoint_url="http://localhost:9000/")

    assert storage.url_for("products/c.gif") == "http://localhost:9000/images/products/c.gif"


@pytest.mark.parametrize(
    "filename,extension",
    [("photo.PNG", "png"), ("archive.tar.gz", "gz"), ("noext", "jpg"), (None, "jpg")],
)
def test_file_extension(filename, extension: str) -> None:
    """Test extension extraction for generated object names."""
    assert file_extension(filename) == extension
