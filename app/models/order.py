# app/models/order.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Completed sale.

    Columns:
      - id, user_id (cashier), subtotal, tax, total,
        payment_method, payment_details, idempotency_key, created_at

    Rows are written once by order submission and never updated.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
        description="Cashier who rang up the sale",
    )

    subtotal: Decimal = Field(max_digits=12, decimal_places=2)

    # No tax is charged at the register
    tax: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)

    total: Decimal = Field(max_digits=12, decimal_places=2)

    # cash | bank_transfer | card | mobile_payment | gift_card
    payment_method: str = Field(
        max_length=32,
        description="Payment method identifier",
    )

    payment_details: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Method-specific details (tendered, change, reference)",
    )

    idempotency_key: str | None = Field(
        default=None,
        max_length=128,
        unique=True,
        index=True,
        description="Client key that makes resubmission return the same order",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    Name and price are snapshotted at sale time so later catalog edits
    do not change historical receipts.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    product_name: str = Field(max_length=255)

    product_price: Decimal = Field(max_digits=12, decimal_places=2)

    quantity: int = Field(
        gt=0,
        description="Quantity sold (>=1)",
    )

    total: Decimal = Field(max_digits=12, decimal_places=2)
