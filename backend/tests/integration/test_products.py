"""Integration tests for product catalog endpoints."""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.models.audit_log import AuditAction, AuditLog
from catalog_admin.models.product import Product
from catalog_admin.services.audit_service import AuditLogService
from tests.utils.factories import ProductFactory


async def _audit_count(db_session: AsyncSession) -> int:
    return await db_session.scalar(select(func.count(AuditLog.id)))


@pytest.mark.asyncio
async def test_admin_creates_product_with_audit_entry(async_client: AsyncClient, db_session: AsyncSession) -> None:
    """Test the signup, login, create flow produces one CREATE entry for the product."""
    signup = await async_client.post(
        "/api/auth/signup",
        json={"email": "a@x.com", "password": "secret123", "role": "admin"},
    )
    assert signup.status_code == 201

    login = await async_client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["data"]["token"]

    response = await async_client.post(
        "/api/products",
        json={"name": "Widget", "price": 10.00},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    product = body["data"]["product"]
    assert product["name"] == "Widget"
    assert product["price"] == 10.0
    assert product["is_deleted"] is False

    logs = await AuditLogService(db_session).by_product(product["id"])
    assert len(logs) == 1
    assert logs[0].action == AuditAction.CREATE
    assert logs[0].user_email == "a@x.com"
    assert logs[0].details["product_name"] == "Widget"


@pytest.mark.asyncio
async def test_create_product_rejects_non_positive_price(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict
) -> None:
    """Test that a negative price is a 400 and leaves no product or audit entry."""
    response = await async_client.post(
        "/api/products",
        json={"name": "Bad", "price": -5},
        headers=admin_headers,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert any(error["field"] == "price" for error in body["errors"])
    assert await db_session.scalar(select(func.count(Product.id))) == 0
    assert await _audit_count(db_session) == 0


@pytest.mark.asyncio
async def test_create_product_requires_authentication(async_client: AsyncClient) -> None:
    """Test that creating without a token is a 401."""
    response = await async_client.post("/api/products", json=ProductFactory.create())

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_create_product_requires_admin(
    async_client: AsyncClient, db_session: AsyncSession, user_headers: dict
) -> None:
    """Test that a regular user cannot create products."""
    response = await async_client.post("/api/products", json=ProductFactory.create(), headers=user_headers)

    assert response.status_code == 403
    assert await _audit_count(db_session) == 0


@pytest.mark.asyncio
async def test_update_product_records_supplied_fields(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict, test_product: Product
) -> None:
    """Test that an update changes only the supplied fields and audits their names."""
    response = await async_client.put(
        f"/api/products/{test_product.id}",
        json={"price": 19.99},
        headers=admin_headers,
    )

    assert response.status_code == 200
    product = response.json()["data"]["product"]
    assert product["price"] == 19.99
    assert product["name"] == "Steel Bracket"
    assert product["description"] == "Galvanized"

    logs = await AuditLogService(db_session).by_product(test_product.id)
    assert len(logs) == 1
    assert logs[0].action == AuditAction.UPDATE
    assert logs[0].details == {"product_name": "Steel Bracket", "updated_fields": ["price"]}


@pytest.mark.asyncio
async def test_update_missing_product_returns_404(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict
) -> None:
    """Test that updating an unknown id is a 404 with no audit entry."""
    response = await async_client.put("/api/products/999", json={"name": "Ghost"}, headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Product not found"
    assert await _audit_count(db_session) == 0


@pytest.mark.asyncio
async def test_update_rejects_null_name(
    async_client: AsyncClient, admin_headers: dict, test_product: Product
) -> None:
    """Test that required columns cannot be cleared."""
    response = await async_client.put(
        f"/api/products/{test_product.id}",
        json={"name": None},
        headers=admin_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_non_admin_delete_is_forbidden(
    async_client: AsyncClient, db_session: AsyncSession, user_headers: dict, test_product: Product
) -> None:
    """Test that a user-role delete is a 403, writes nothing and leaves the product active."""
    response = await async_client.delete(f"/api/products/{test_product.id}", headers=user_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Access denied. admin role required."
    assert await _audit_count(db_session) == 0

    is_deleted = await db_session.scalar(select(Product.is_deleted).where(Product.id == test_product.id))
    assert is_deleted is False


@pytest.mark.asyncio
async def test_delete_then_restore(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict, test_product: Product
) -> None:
    """Test that delete then restore leaves the product active with DELETE then RESTORE entries."""
    deleted = await async_client.delete(f"/api/products/{test_product.id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Product deleted successfully"

    restored = await async_client.patch(f"/api/products/{test_product.id}/restore", headers=admin_headers)
    assert restored.status_code == 200
    assert restored.json()["message"] == "Product restored successfully"

    response = await async_client.get(f"/api/products/{test_product.id}")
    assert response.status_code == 200
    assert response.json()["data"]["product"]["is_deleted"] is False

    logs = await AuditLogService(db_session).by_product(test_product.id)
    assert [log.action for log in reversed(logs)] == [AuditAction.DELETE, AuditAction.RESTORE]
    assert logs[0].details == {"action": "restore"}
    assert logs[1].details == {"product_name": "Steel Bracket"}


@pytest.mark.asyncio
async def test_restore_active_product_twice(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict, test_product: Product
) -> None:
    """Test that restoring an already active product succeeds and is audited each time."""
    for _ in range(2):
        response = await async_client.patch(f"/api/products/{test_product.id}/restore", headers=admin_headers)
        assert response.status_code == 200

    logs = await AuditLogService(db_session).by_product(test_product.id)
    assert [log.action for log in logs] == [AuditAction.RESTORE, AuditAction.RESTORE]


@pytest.mark.asyncio
async def test_restore_missing_product_returns_404(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict
) -> None:
    """Test that restoring an unknown id is a 404 with no audit entry."""
    response = await async_client.patch("/api/products/4040/restore", headers=admin_headers)

    assert response.status_code == 404
    assert await _audit_count(db_session) == 0


@pytest.mark.asyncio
async def test_get_deleted_product_is_hidden_by_default(
    async_client: AsyncClient, admin_headers: dict, test_product: Product
) -> None:
    """Test that a soft-deleted product is 404 unless includeDeleted is set."""
    await async_client.delete(f"/api/products/{test_product.id}", headers=admin_headers)

    hidden = await async_client.get(f"/api/products/{test_product.id}")
    shown = await async_client.get(f"/api/products/{test_product.id}", params={"includeDeleted": "true"})

    assert hidden.status_code == 404
    assert shown.status_code == 200
    assert shown.json()["data"]["product"]["is_deleted"] is True


@pytest.mark.asyncio
async def test_list_products_search_sort_and_paginate(async_client: AsyncClient, admin_headers: dict) -> None:
    """Test the public listing's search, ordering and page metadata."""
    for name, price in [("Alpha Gear", 30), ("Beta Gear", 10), ("Gamma Bolt", 20), ("Delta Gear", 40)]:
        response = await async_client.post(
            "/api/products",
            json=ProductFactory.create({"name": name, "price": price}),
            headers=admin_headers,
        )
        assert response.status_code == 201

    response = await async_client.get(
        "/api/products",
        params={"search": "gear", "sortBy": "price", "sortOrder": "asc", "page": 1, "limit": 2},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert [p["name"] for p in data["products"]] == ["Beta Gear", "Alpha Gear"]
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    page2 = await async_client.get(
        "/api/products",
        params={"search": "gear", "sortBy": "price", "sortOrder": "asc", "page": 2, "limit": 2},
    )
    assert [p["name"] for p in page2.json()["data"]["products"]] == ["Delta Gear"]


@pytest.mark.asyncio
async def test_list_products_excludes_deleted_unless_requested(
    async_client: AsyncClient, admin_headers: dict, test_product: Product
) -> None:
    """Test that soft-deleted products appear only with includeDeleted."""
    await async_client.delete(f"/api/products/{test_product.id}", headers=admin_headers)

    default = await async_client.get("/api/products")
    everything = await async_client.get("/api/products", params={"includeDeleted": "true"})

    assert default.json()["data"]["pagination"]["total"] == 0
    assert [p["id"] for p in everything.json()["data"]["products"]] == [test_product.id]


@pytest.mark.asyncio
async def test_list_products_rejects_unknown_sort_field(async_client: AsyncClient) -> None:
    """Test that sortBy is restricted to known columns."""
    response = await async_client.get("/api/products", params={"sortBy": "password_hash"})

    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


@pytest.mark.asyncio
async def test_admin_deleted_listing(
    async_client: AsyncClient, admin_headers: dict, user_headers: dict, test_product: Product
) -> None:
    """Test the admin-only listing of soft-deleted products."""
    await async_client.delete(f"/api/products/{test_product.id}", headers=admin_headers)

    response = await async_client.get("/api/products/admin/deleted", headers=admin_headers)
    forbidden = await async_client.get("/api/products/admin/deleted", headers=user_headers)

    assert response.status_code == 200
    assert [p["id"] for p in response.json()["data"]["products"]] == [test_product.id]
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_admin_search_by_name(async_client: AsyncClient, admin_headers: dict, test_product: Product) -> None:
    """Test the admin name search matches substrings case-insensitively."""
    response = await async_client.get("/api/products/admin/search/bracket", headers=admin_headers)
    miss = await async_client.get("/api/products/admin/search/widget", headers=admin_headers)

    assert response.status_code == 200
    assert [p["name"] for p in response.json()["data"]["products"]] == ["Steel Bracket"]
    assert miss.json()["data"]["products"] == []


@pytest.mark.asyncio
async def test_product_reports_creator_email(
    async_client: AsyncClient, admin_headers: dict, test_product: Product
) -> None:
    """Test that product reads carry the creating admin's email."""
    response = await async_client.get(f"/api/products/{test_product.id}")

    product = response.json()["data"]["product"]
    assert product["creator_email"] == "admin@example.com"
    assert product["created_by"] == test_product.created_by
