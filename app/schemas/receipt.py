# app/schemas/receipt.py
import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel

from app.schemas.payment import CustomerInfo, PaymentMethod
from app.schemas.setting import BusinessInfo


class ReceiptLine(SQLModel):
    name: str
    price: Decimal
    quantity: int
    total: Decimal


class ReceiptRead(SQLModel):
    """
    Everything printed on a receipt, built from a stored order snapshot.
    """

    order_id: uuid.UUID
    receipt_number: str
    date: datetime
    business: BusinessInfo
    cashier_name: str | None = None
    customer: CustomerInfo | None = None
    items: list[ReceiptLine]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    payment_method: PaymentMethod
    payment_label: str
    amount_tendered: Decimal | None = None
    change_due: Decimal | None = None
    bank_reference: str | None = None
    text: str = ""
