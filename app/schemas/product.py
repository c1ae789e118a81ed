# app/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

ProductSortColumn = Literal[
    "name",
    "price",
    "stock_quantity",
    "sku",
    "category",
    "is_active",
    "created_at",
    "updated_at",
]
SortDirection = Literal["asc", "desc"]


def _strip_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    - sku is optional but must be unique when provided.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    description: str | None = None
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    sku: str | None = Field(default=None, max_length=64)
    category: str | None = Field(default=None, max_length=50)
    stock_quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("sku", "category", "description")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    description: str | None = None
    price: Decimal
    sku: str | None = None
    category: str | None = None
    stock_quantity: int
    low_stock_threshold: int | None = None
    is_active: bool
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.

    stock_quantity is not editable here; use the stock adjustment
    endpoint so every change is logged.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    sku: str | None = Field(default=None, max_length=64)
    category: str | None = Field(default=None, max_length=50)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("sku", "category", "description")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class ProductPage(SQLModel):
    """
    One page of the filtered catalog plus the total match count.
    """

    items: list[ProductRead]
    total_count: int
    page: int
    page_size: int
    total_pages: int


class ProductBulkStatusUpdate(SQLModel):
    """
    Admin payload to activate/deactivate many products at once.
    """

    model_config = ConfigDict(extra="forbid")

    product_ids: list[uuid.UUID]
    is_active: bool


class StockAdjustment(SQLModel):
    """
    Manual stock correction (delivery received, breakage, recount).
    """

    model_config = ConfigDict(extra="forbid")

    quantity_change: int
    reason: str = Field(max_length=255)

    @field_validator("quantity_change")
    @classmethod
    def non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("quantity_change cannot be zero")
        return v

    @field_validator("reason")
    @classmethod
    def reason_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("reason cannot be empty")
        return v


class InventoryLogRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity_change: int
    previous_quantity: int
    new_quantity: int
    reason: str
    created_by: uuid.UUID
    created_at: datetime
