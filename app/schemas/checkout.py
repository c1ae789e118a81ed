# app/schemas/checkout.py
import uuid
from typing import Any

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

from app.schemas.cart import CartLineRead, CartSummary
from app.schemas.payment import PaymentInput, PaymentValidation
from app.services.product_matcher import MatchResult


class ScanInput(SQLModel):
    """
    Text submitted from the search box (typed query or scanner burst).
    """

    model_config = ConfigDict(extra="forbid")

    text: str = Field(min_length=1, max_length=128)


class CheckoutState(SQLModel):
    """
    Snapshot of a cashier's checkout session for the register UI.
    """

    cashier_id: uuid.UUID
    items: list[CartLineRead]
    summary: CartSummary
    query: str
    payment: PaymentInput
    payment_validation: PaymentValidation
    processing: bool
    warning: str | None = None
    last_error: Any | None = None
    last_match: MatchResult | None = None
    last_order_id: uuid.UUID | None = None
