"""Product service for catalog operations."""
from typing import Any, Optional

import structlog
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.models.base import utcnow
from catalog_admin.models.product import Product
from catalog_admin.schemas.product import ProductCreate, ProductFilters

logger = structlog.get_logger(__name__)

SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "created_at": Product.created_at,
}


class ProductService:
    """Service layer for product operations.

    Methods here touch only the products table. Audit entries for mutations
    are written by ``AuditedActionService``.
    """

    def __init__(self, db: AsyncSession):
        """Initialize product service with database session."""
        self.db = db

    async def create_product(self, product_data: ProductCreate, created_by: Optional[int]) -> Product:
        """Insert a product and return it re-read with its creator."""
        values = product_data.model_dump()
        if values.get("image_url") is not None:
            values["image_url"] = str(values["image_url"])
        product = Product(**values, created_by=created_by)

        self.db.add(product)
        await self.db.flush()

        return await self.get_product(product.id, include_deleted=True)

    async def get_product(self, product_id: int, include_deleted: bool = True) -> Product | None:
        """
        Get product by ID.

        Args:
            product_id: Product id
            include_deleted: Whether soft-deleted products are returned

        Returns:
            Product or None if not found
        """
        query = (
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        if not include_deleted:
            query = query.where(Product.is_deleted.is_(False))

        result = await self.db.execute(query)
        return result.unique().scalar_one_or_none()

    async def list_products(self, filters: ProductFilters) -> tuple[list[Product], int]:
        """
        List products with search, sorting and pagination.

        Returns:
            Tuple of (products, total_count)
        """
        query = select(Product)

        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

        if not filters.include_deleted:
            query = query.where(Product.is_deleted.is_(False))

        count_query = select(func.count()).select_from(query.with_only_columns(Product.id).subquery())
        total = await self.db.scalar(count_query)

        column = SORT_COLUMNS[filters.sort_by]
        ordering = column.asc() if filters.sort_order == "asc" else column.desc()
        query = query.order_by(ordering, Product.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        result = await self.db.execute(query)
        return list(result.unique().scalars().all()), total or 0

    async def update_product(self, product_id: int, changes: dict[str, Any]) -> Product | None:
        """
        Apply a partial update.

        Args:
            product_id: Product id
            changes: Column values to set; an empty dict leaves the row untouched

        Returns:
            Updated product or None if not found
        """
        if changes:
            await self.db.execute(
                update(Product).where(Product.id == product_id).values(**changes, updated_at=utcnow())
            )
            await self.db.flush()
        return await self.get_product(product_id, include_deleted=True)

    async def soft_delete(self, product_id: int) -> bool:
        """Mark a product deleted. Returns False if no row matched."""
        return await self._set_deleted(product_id, True)

    async def restore(self, product_id: int) -> bool:
        """Clear a product's deleted flag. Returns False if no row matched."""
        return await self._set_deleted(product_id, False)

    async def hard_delete(self, product_id: int) -> bool:
        """
        Permanently remove a product.

        Maintenance only: no API route calls this, and audit rows keep their
        history with product_id cleared by the foreign key.
        """
        result = await self.db.execute(delete(Product).where(Product.id == product_id))
        await self.db.flush()
        logger.warning("product_hard_deleted", product_id=product_id, rows=result.rowcount)
        return result.rowcount > 0

    async def list_deleted(self) -> list[Product]:
        """Soft-deleted products, most recently changed first."""
        result = await self.db.execute(
            select(Product).where(Product.is_deleted.is_(True)).order_by(Product.updated_at.desc(), Product.id.desc())
        )
        return list(result.unique().scalars().all())

    async def search_by_name(self, name: str) -> list[Product]:
        """Active products whose name contains ``name``, alphabetically."""
        result = await self.db.execute(
            select(Product)
            .where(Product.name.ilike(f"%{name}%"), Product.is_deleted.is_(False))
            .order_by(Product.name.asc())
        )
        return list(result.unique().scalars().all())

    async def list_by_creator(self, user_id: int) -> list[Product]:
        """Active products created by a user, newest first."""
        result = await self.db.execute(
            select(Product)
            .where(Product.created_by == user_id, Product.is_deleted.is_(False))
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        return list(result.unique().scalars().all())

    async def _set_deleted(self, product_id: int, deleted: bool) -> bool:
        result = await self.db.execute(
            update(Product).where(Product.id == product_id).values(is_deleted=deleted, updated_at=utcnow())
        )
        await self.db.flush()
        return result.rowcount > 0
