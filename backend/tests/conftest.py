"""Pytest configuration and fixtures for async testing."""
import os

# Settings are read at import time; keep hashing cheap and tokens deterministic
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-with-enough-bytes-for-hs256")

from pathlib import Path
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.auth.jwt import jwt_auth
from catalog_admin.database import Database
from catalog_admin.main import app
from catalog_admin.models.product import Product
from catalog_admin.models.user import User, UserRole
from catalog_admin.schemas.product import ProductCreate
from catalog_admin.services.product_service import ProductService
from catalog_admin.services.storage_service import S3StorageService, get_storage
from catalog_admin.services.user_service import UserService


class InMemoryStorage(S3StorageService):
    """S3StorageService that keeps objects in a dict instead of calling AWS."""

    def __init__(self, bucket: Optional[str] = "test-bucket"):
        super().__init__(bucket=bucket, region="us-east-1")
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def _put_object(self, bucket, key, data, content_type, metadata) -> None:
        self.objects[key] = data

    def _delete_object(self, bucket, key) -> None:
        self.objects.pop(key, None)
        self.deleted.append(key)


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """
    Fresh SQLite database file per test.

    Yields:
        Database: Handle with all tables created
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'catalog_test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session for arranging and inspecting test data.

    Commit before issuing requests; the API uses its own sessions.

    Yields:
        AsyncSession: Database session for testing
    """
    async with database.session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest_asyncio.fixture(scope="function")
async def async_client(database: Database, storage: InMemoryStorage) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client bound to the test database and the in-memory image store.

    Yields:
        AsyncClient: Async HTTP client for API testing
    """
    app.state.db = database
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, email: str, role: UserRole) -> User:
    user = await UserService(db_session).create_user(email, "password123", role)
    await db_session.commit()
    return user


def auth_headers(user: User) -> dict[str, str]:
    token = jwt_auth.create_access_token(user.id, user.email, user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="function")
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@example.com", UserRole.ADMIN)


@pytest_asyncio.fixture(scope="function")
async def regular_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "user@example.com", UserRole.USER)


@pytest.fixture(scope="function")
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture(scope="function")
def user_headers(regular_user: User) -> dict[str, str]:
    return auth_headers(regular_user)


@pytest.fixture(scope="function")
def admin_actor(admin_user: User) -> dict:
    """The admin as the API's get_current_user would return it."""
    return {"id": admin_user.id, "email": admin_user.email, "role": admin_user.role.value}


@pytest_asyncio.fixture(scope="function")
async def test_product(db_session: AsyncSession, admin_user: User) -> Product:
    """
    Product inserted directly through the store, so it has no audit entries.

    Returns:
        Product: Active product created by the admin
    """
    product = await ProductService(db_session).create_product(
        ProductCreate(name="Steel Bracket", price="24.50", description="Galvanized"),
        created_by=admin_user.id,
    )
    await db_session.commit()
    return product
