"""State-changing actions that leave an audit trail.

Every method here performs one mutation through the product or user
service and then appends a matching audit entry. Existence and input checks
run before the mutation, so a rejected action never produces an entry. The
mutation is committed before its audit entry is written; if the audit write
fails the mutation is kept and the failure is reported to the caller.
"""
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.auth.jwt import jwt_auth
from catalog_admin.exceptions import InvalidCredentialError, NotFoundError
from catalog_admin.metrics import auth_events_total, product_mutations_total
from catalog_admin.models.audit_log import AuditAction
from catalog_admin.models.product import Product
from catalog_admin.models.user import User
from catalog_admin.schemas.product import ProductCreate, ProductUpdate
from catalog_admin.schemas.user import SignupRequest
from catalog_admin.services.product_service import ProductService
from catalog_admin.services.user_service import UserService
from catalog_admin.utils.audit import AuditOutcome, audited, record_action

logger = structlog.get_logger(__name__)


def actor_of(user: User) -> dict:
    """Actor dict for a freshly loaded user, shaped like the authenticated user."""
    return {"id": user.id, "email": user.email, "role": user.role.value}


class AuditedActionService:
    """Runs catalog and session mutations together with their audit entries."""

    def __init__(self, db: AsyncSession):
        """Initialize with database session."""
        self.db = db
        self.products = ProductService(db)
        self.users = UserService(db)

    @audited(AuditAction.CREATE)
    async def create_product(self, product_data: ProductCreate, actor: dict) -> AuditOutcome:
        """Create a product owned by the acting admin."""
        product = await self.products.create_product(product_data, created_by=actor["id"])
        product_mutations_total.labels(action="create").inc()

        logger.info("product_created", product_id=product.id, user_id=actor["id"])
        return AuditOutcome(
            product,
            {"product_name": product.name, "price": float(product.price)},
            product.id,
        )

    @audited(AuditAction.UPDATE)
    async def update_product(self, product_id: int, changes: ProductUpdate, actor: dict) -> AuditOutcome:
        """
        Apply a partial update.

        ``updated_fields`` in the audit entry lists the fields the caller
        supplied, whether or not their values differ from the stored ones.

        Raises:
            NotFoundError: If the product does not exist
        """
        await self._require_product(product_id)

        values = changes.model_dump(exclude_unset=True)
        if values.get("image_url") is not None:
            values["image_url"] = str(values["image_url"])

        product = await self.products.update_product(product_id, values)
        product_mutations_total.labels(action="update").inc()

        logger.info("product_updated", product_id=product_id, fields=list(values), user_id=actor["id"])
        return AuditOutcome(
            product,
            {"product_name": product.name, "updated_fields": list(values)},
            product.id,
        )

    @audited(AuditAction.DELETE)
    async def delete_product(self, product_id: int, actor: dict) -> AuditOutcome:
        """
        Soft delete a product.

        Raises:
            NotFoundError: If the product does not exist
        """
        existing = await self._require_product(product_id)
        product_name = existing.name

        await self.products.soft_delete(product_id)
        product_mutations_total.labels(action="delete").inc()

        logger.info("product_deleted", product_id=product_id, user_id=actor["id"])
        return AuditOutcome(None, {"product_name": product_name}, product_id)

    @audited(AuditAction.RESTORE)
    async def restore_product(self, product_id: int, actor: dict) -> AuditOutcome:
        """
        Clear a product's deleted flag. Restoring an active product succeeds.

        Raises:
            NotFoundError: If no product has this id
        """
        if not await self.products.restore(product_id):
            raise NotFoundError("Product not found")
        product_mutations_total.labels(action="restore").inc()

        logger.info("product_restored", product_id=product_id, user_id=actor["id"])
        return AuditOutcome(None, {"action": "restore"}, product_id)

    @audited(AuditAction.UPDATE)
    async def set_product_image(self, product_id: int, image_url: Optional[str], actor: dict) -> AuditOutcome:
        """
        Point a product at a new image, or clear it with ``None``.

        Raises:
            NotFoundError: If the product does not exist
        """
        await self._require_product(product_id)

        product = await self.products.update_product(product_id, {"image_url": image_url})
        product_mutations_total.labels(action="update").inc()

        logger.info("product_image_set", product_id=product_id, cleared=image_url is None, user_id=actor["id"])
        return AuditOutcome(
            product,
            {"product_name": product.name, "updated_fields": ["image_url"]},
            product.id,
        )

    async def signup(self, request: SignupRequest) -> tuple[User, str]:
        """
        Create an account and issue its first token.

        The signup is audited as a LOGIN by the new user. A failed audit
        write is logged and does not undo the signup.

        Raises:
            ConflictError: If an active user already has this email
        """
        user = await self.users.create_user(request.email, request.password, request.role)
        await self.db.commit()

        token = jwt_auth.create_access_token(user.id, user.email, user.role.value)
        auth_events_total.labels(event="signup", status="success").inc()

        entry = await record_action(
            self.db,
            actor=actor_of(user),
            action=AuditAction.LOGIN,
            details={"action": "signup", "role": user.role.value},
            fatal=False,
        )
        if entry is None:
            # the failed audit write rolled back the session and expired the user
            await self.db.refresh(user)
        return user, token

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """
        Exchange credentials for a token.

        Raises:
            InvalidCredentialError: If the credentials do not match an active user
        """
        try:
            user = await self.users.authenticate(email, password)
        except InvalidCredentialError:
            auth_events_total.labels(event="login", status="failed").inc()
            raise

        await self.users.touch_last_login(user.id)
        await self.db.commit()

        token = jwt_auth.create_access_token(user.id, user.email, user.role.value)
        auth_events_total.labels(event="login", status="success").inc()

        entry = await record_action(
            self.db,
            actor=actor_of(user),
            action=AuditAction.LOGIN,
            details={"action": "login"},
            fatal=False,
        )
        if entry is None:
            await self.db.refresh(user)
        logger.info("user_logged_in", user_id=user.id)
        return user, token

    @audited(AuditAction.LOGOUT, fatal=False)
    async def logout(self, actor: dict) -> AuditOutcome:
        """Record the end of a session. Tokens are stateless, so nothing is revoked."""
        auth_events_total.labels(event="logout", status="success").inc()
        logger.info("user_logged_out", user_id=actor["id"])
        return AuditOutcome(None, {"action": "logout"})

    async def _require_product(self, product_id: int) -> Product:
        product = await self.products.get_product(product_id, include_deleted=True)
        if not product:
            raise NotFoundError("Product not found")
        return product
