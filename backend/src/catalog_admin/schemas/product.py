"""Pydantic schemas for products."""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, PlainSerializer, model_validator

from catalog_admin.schemas.common import Pagination

# Decimal on the way in, JSON number on the way out
Price = Annotated[
    Decimal,
    Field(gt=0, max_digits=10, decimal_places=2, description="Positive price with two decimals"),
    PlainSerializer(float, return_type=float, when_used="json"),
]

ImageUrl = Annotated[HttpUrl, PlainSerializer(str, return_type=str)]

SortField = Literal["name", "price", "created_at"]
SortOrder = Literal["asc", "desc"]


class ProductCreate(BaseModel):
    """Schema for creating a product.

    Examples:
        ```json
        {"name": "Widget", "price": 10.00, "description": "Steel widget"}
        ```
    """

    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    price: Price
    description: Optional[str] = Field(default=None, description="Free-form description")
    image_url: Optional[ImageUrl] = Field(default=None, description="Image URL in the object store")


class ProductUpdate(BaseModel):
    """Schema for a partial product update. Only supplied fields change."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[Price] = None
    description: Optional[str] = None
    image_url: Optional[ImageUrl] = None

    @model_validator(mode="after")
    def required_columns_not_null(self) -> "ProductUpdate":
        for field in ("name", "price"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class ProductFilters(BaseModel):
    """Listing options for the public catalog."""

    search: Optional[str] = None
    sort_by: SortField = "created_at"
    sort_order: SortOrder = "desc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    include_deleted: bool = False


class ProductRead(BaseModel):
    """Schema for returning product data."""

    id: int
    name: str
    price: Price
    description: Optional[str]
    image_url: Optional[str]
    is_deleted: bool
    created_by: Optional[int]
    creator_email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductData(BaseModel):
    product: ProductRead


class ProductListData(BaseModel):
    products: list[ProductRead]
    pagination: Pagination


class ProductsData(BaseModel):
    products: list[ProductRead]


class ImageInfo(BaseModel):
    """Result of an object store upload."""

    url: str
    key: str
    filename: str


class ImageData(BaseModel):
    image: ImageInfo
    product: Optional[ProductRead] = None
