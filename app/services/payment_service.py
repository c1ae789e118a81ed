# app/services/payment_service.py
import time
from decimal import Decimal

from app.schemas.payment import (
    ACTIVE_PAYMENT_METHODS,
    CustomerInfo,
    PaymentDetails,
    PaymentValidation,
)

ZERO = Decimal("0")


class PaymentService:
    """
    Payment form rules.

      - cash: valid iff amount_tendered >= total;
              change_due = max(0, amount_tendered - total)
      - bank_transfer: always valid (instructions only, nothing to verify)
      - card / mobile_payment / gift_card: not offered at the register
    """

    def validate(
        self,
        method: str,
        total: Decimal,
        amount_tendered: Decimal | None = None,
    ) -> PaymentValidation:
        if method not in ACTIVE_PAYMENT_METHODS:
            return PaymentValidation(
                is_valid=False,
                change_due=ZERO,
                error="Payment method not available",
            )

        if method == "bank_transfer":
            return PaymentValidation(is_valid=True, change_due=ZERO)

        tendered = amount_tendered if amount_tendered is not None else ZERO
        change_due = max(ZERO, tendered - total)
        if tendered < total:
            return PaymentValidation(
                is_valid=False,
                change_due=change_due,
                error="Amount tendered is less than the total",
            )
        return PaymentValidation(is_valid=True, change_due=change_due)

    def build_details(
        self,
        method: str,
        total: Decimal,
        amount_tendered: Decimal | None = None,
        customer_info: CustomerInfo | None = None,
    ) -> PaymentDetails:
        """
        Details stored with the order. Assumes `validate` already passed.
        """
        details = PaymentDetails()
        if method == "cash":
            tendered = amount_tendered if amount_tendered is not None else ZERO
            details.amount_tendered = tendered
            details.change_due = max(ZERO, tendered - total)
        elif method == "bank_transfer":
            details.bank_reference = f"ORDER-{int(time.time() * 1000)}"

        if customer_info is not None and not customer_info.is_empty():
            details.customer_info = customer_info
        return details
