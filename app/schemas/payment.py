# app/schemas/payment.py
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

PaymentMethod = Literal["cash", "bank_transfer", "card", "mobile_payment", "gift_card"]

# Methods the register actually offers. The others exist in stored data
# but are rejected at checkout.
ACTIVE_PAYMENT_METHODS: tuple[str, ...] = ("cash", "bank_transfer")


class CustomerInfo(SQLModel):
    """
    Optional customer name/phone printed with the sale.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=32)

    @field_validator("name", "phone")
    @classmethod
    def normalize(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    def is_empty(self) -> bool:
        return not (self.name or self.phone)


class PaymentDetails(SQLModel):
    """
    Method-specific payment details stored with the order.

    cash          -> amount_tendered, change_due
    bank_transfer -> bank_reference
    """

    amount_tendered: Decimal | None = None
    change_due: Decimal | None = None
    bank_reference: str | None = None
    customer_info: CustomerInfo | None = None


class PaymentInput(SQLModel):
    """
    Payment form state sent by the register.
    """

    model_config = ConfigDict(extra="forbid")

    method: PaymentMethod = "cash"
    amount_tendered: Decimal | None = Field(default=None, ge=0)
    customer_info: CustomerInfo | None = None


class PaymentValidation(SQLModel):
    """
    Outcome of validating the payment form against the cart total.
    """

    is_valid: bool
    change_due: Decimal
    error: str | None = None
