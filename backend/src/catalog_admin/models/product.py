"""Product model for the catalog."""
from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from catalog_admin.models.base import TimestampedBase


class Product(TimestampedBase):
    """
    Catalog entry.

    Products are soft-deleted and restorable; ``created_by`` is cleared if the
    creator row is ever removed.
    """

    __tablename__ = "products"
    __table_args__ = (CheckConstraint("price > 0", name="ck_products_price_positive"),)

    name = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    creator = relationship("User", lazy="joined")

    @property
    def creator_email(self) -> str | None:
        """Email of the creating user, if still present."""
        return self.creator.email if self.creator is not None else None

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, name={self.name}, is_deleted={self.is_deleted})>"
