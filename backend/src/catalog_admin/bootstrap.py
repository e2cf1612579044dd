"""First-run setup: schema creation and the default admin account."""
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.database import Database
from catalog_admin.models.user import User, UserRole
from catalog_admin.services.user_service import UserService

logger = structlog.get_logger(__name__)


async def ensure_default_admin(db: AsyncSession, email: str, password: str) -> tuple[User, bool]:
    """
    Create the admin account unless an active user already has ``email``.

    An existing user with that email is left untouched, whatever its role.

    Returns:
        Tuple of (user, created)
    """
    service = UserService(db)

    existing = await service.get_user_by_email(email)
    if existing:
        logger.info("default_admin_exists", user_id=existing.id, email=email)
        return existing, False

    admin = await service.create_user(email, password, UserRole.ADMIN)
    logger.info("default_admin_created", user_id=admin.id, email=email)
    return admin, True


async def initialize(database: Database, admin_email: str, admin_password: str) -> bool:
    """Create missing tables and the default admin. Returns True if the admin was created."""
    await database.create_all()
    logger.info("database_tables_created")

    async with database.session() as session:
        _, created = await ensure_default_admin(session, admin_email, admin_password)
    return created
