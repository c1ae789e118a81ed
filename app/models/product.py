# app/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Product catalog entry sold at the register.

    Columns:
      - id, name, description, price, sku, category, stock_quantity,
        low_stock_threshold, is_active, image_url, created_at, updated_at

    stock_quantity is mutated only by stock adjustments and by order
    submission, never directly by the checkout cart.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name shown in the catalog and on receipts",
    )

    description: str | None = Field(
        default=None,
        description="Optional long description",
    )

    price: Decimal = Field(
        gt=0,
        max_digits=12,
        decimal_places=2,
        description="Unit price (e.g. IDR)",
    )

    sku: str | None = Field(
        default=None,
        max_length=64,
        unique=True,
        index=True,
        description="Stock keeping unit / barcode value",
    )

    category: str | None = Field(
        default=None,
        max_length=50,
        index=True,
    )

    stock_quantity: int = Field(
        default=0,
        ge=0,
        description="How many units currently in stock",
    )

    low_stock_threshold: int | None = Field(
        default=None,
        ge=0,
        description="Alert level; falls back to DEFAULT_LOW_STOCK_THRESHOLD",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product can be sold",
    )

    image_url: str | None = Field(
        default=None,
        description="Public URL in Supabase Storage",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last modification timestamp (UTC)",
    )


class InventoryLog(SQLModel, table=True):
    """
    Audit row for every stock mutation (manual adjustment or sale).
    """

    __tablename__ = "inventory_logs"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    quantity_change: int
    previous_quantity: int = Field(ge=0)
    new_quantity: int = Field(ge=0)

    reason: str = Field(max_length=255)

    created_by: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
