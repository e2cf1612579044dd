"""Integration tests for error envelopes, health checks and first-run setup."""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.bootstrap import ensure_default_admin, initialize
from catalog_admin.database import Database
from catalog_admin.exceptions import PersistenceError
from catalog_admin.models.audit_log import AuditLog
from catalog_admin.models.product import Product
from catalog_admin.models.user import User, UserRole
from catalog_admin.services.audit_service import AuditLogService


@pytest.mark.asyncio
async def test_unknown_route_returns_envelope(async_client: AsyncClient) -> None:
    """Test that unmatched routes get the standard 404 envelope."""
    response = await async_client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route /api/does-not-exist not found"}


@pytest.mark.asyncio
async def test_validation_error_format(async_client: AsyncClient, admin_headers: dict) -> None:
    """Test that body validation failures are 400s with field details."""
    response = await async_client.post("/api/products", json={"price": "abc"}, headers=admin_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"name", "price"} <= fields
    assert any(error["code"] == "missing_required_field" for error in body["errors"])


@pytest.mark.asyncio
async def test_path_parameter_validation(async_client: AsyncClient) -> None:
    """Test that a non-integer id is a 400, not a 404."""
    response = await async_client.get("/api/products/not-a-number")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_audit_failure_after_mutation(
    async_client: AsyncClient, db_session: AsyncSession, admin_headers: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test that a failed audit write is a 500 while the product stays created."""
    async def failing_append(self, entry):
        raise PersistenceError("Failed to create audit log")

    monkeypatch.setattr(AuditLogService, "append", failing_append)

    response = await async_client.post(
        "/api/products",
        json={"name": "Orphan", "price": 3.5},
        headers=admin_headers,
    )

    assert response.status_code == 500
    assert response.json()["message"] == "Action completed but the audit entry could not be recorded"
    assert await db_session.scalar(select(func.count(Product.id)).where(Product.name == "Orphan")) == 1
    assert await db_session.scalar(select(func.count(AuditLog.id))) == 0


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient) -> None:
    """Test the liveness probe."""
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["message"] == "Server is running"


@pytest.mark.asyncio
async def test_readiness(async_client: AsyncClient) -> None:
    """Test the readiness probe against the test database."""
    response = await async_client.get("/health/ready")

    assert response.status_code == 200
    assert response.json()["checks"] == {"database": "connected"}


@pytest.mark.asyncio
async def test_response_headers(async_client: AsyncClient) -> None:
    """Test security headers and request id propagation."""
    response = await async_client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["x-request-id"] == "req-123"
    assert response.headers["x-frame-options"] == "DENY"
    assert response.headers["x-content-type-options"] == "nosniff"
    assert "strict-transport-security" not in response.headers


@pytest.mark.asyncio
async def test_metrics_endpoint(async_client: AsyncClient) -> None:
    """Test that Prometheus metrics are exposed."""
    await async_client.get("/health")

    response = await async_client.get("/metrics/")

    assert response.status_code == 200
    assert "api_requests_total" in response.text


@pytest.mark.asyncio
async def test_ensure_default_admin_is_idempotent(db_session: AsyncSession) -> None:
    """Test that seeding the admin twice creates one account."""
    first, created = await ensure_default_admin(db_session, "root@example.com", "changeme123")
    await db_session.commit()
    second, created_again = await ensure_default_admin(db_session, "root@example.com", "changeme123")

    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert first.role == UserRole.ADMIN


@pytest.mark.asyncio
async def test_initialize_creates_schema_and_admin(tmp_path) -> None:
    """Test first-run setup on an empty database."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}")
    try:
        assert await initialize(database, "root@example.com", "changeme123") is True
        assert await initialize(database, "root@example.com", "changeme123") is False

        async with database.session() as session:
            count = await session.scalar(select(func.count(User.id)))
        assert count == 1
    finally:
        await database.dispose()
