# app/schemas/order.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.payment import PaymentDetails, PaymentMethod


class OrderLineCreate(SQLModel):
    """
    One sold line as snapshotted by the register at sale time.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    product_name: str = Field(max_length=255)
    product_price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    quantity: int = Field(gt=0)

    @field_validator("product_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("product_name cannot be empty")
        return v


class OrderCreate(SQLModel):
    """
    Payload for submitting a completed sale.

    Register provides:
      - line items (name/price/quantity snapshots)
      - subtotal and total as shown to the customer
      - payment method and details

    Backend derives:
      - user_id from token (the cashier)
      - tax = 0
      - change_due (recomputed for cash)
    """

    model_config = ConfigDict(extra="forbid")

    lines: list[OrderLineCreate]
    subtotal: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    total: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    user_id: uuid.UUID
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    payment_method: PaymentMethod
    payment_details: PaymentDetails
    created_at: datetime


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    product_price: Decimal
    quantity: int
    total: Decimal


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]
