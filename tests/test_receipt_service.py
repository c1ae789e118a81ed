# tests/test_receipt_service.py
import uuid
from datetime import datetime
from decimal import Decimal

from app.schemas.order import OrderItemRead, OrderWithItemsRead
from app.schemas.payment import PaymentDetails
from app.schemas.setting import BusinessInfo
from app.services.receipt_service import build_receipt, format_currency

BUSINESS = BusinessInfo(
    app_name="Corner Cafe",
    app_address="1 Market St",
    app_phone="021-555",
)


def _order(method="cash", details=None):
    order_id = uuid.uuid4()
    return OrderWithItemsRead(
        id=order_id,
        user_id=uuid.uuid4(),
        subtotal=Decimal("25000"),
        tax=Decimal("0"),
        total=Decimal("25000"),
        payment_method=method,
        payment_details=details or PaymentDetails(),
        created_at=datetime(2026, 3, 1, 9, 30),
        items=[
            OrderItemRead(
                id=uuid.uuid4(),
                order_id=order_id,
                product_id=uuid.uuid4(),
                product_name="Product A",
                product_price=Decimal("10000"),
                quantity=2,
                total=Decimal("20000"),
            ),
            OrderItemRead(
                id=uuid.uuid4(),
                order_id=order_id,
                product_id=uuid.uuid4(),
                product_name="Product B",
                product_price=Decimal("5000"),
                quantity=1,
                total=Decimal("5000"),
            ),
        ],
    )


def test_format_currency_groups_thousands():
    assert format_currency(Decimal("25000")) == "Rp. 25.000"
    assert format_currency(Decimal("1250000.4")) == "Rp. 1.250.000"
    assert format_currency(Decimal("0"), prefix="") == "0"


def test_cash_receipt():
    order = _order(
        details=PaymentDetails(amount_tendered=Decimal("30000"), change_due=Decimal("5000"))
    )

    receipt = build_receipt(order, BUSINESS, "Bob")

    assert receipt.receipt_number == str(order.id)[:8]
    assert receipt.payment_label == "Cash"
    assert receipt.change_due == Decimal("5000")
    assert [line.total for line in receipt.items] == [Decimal("20000"), Decimal("5000")]

    text = receipt.text
    assert "Corner Cafe" in text
    assert f"Receipt #{receipt.receipt_number}" in text
    assert "Cashier: Bob" in text
    assert "01/03/2026 09:30" in text
    assert "2 x Rp. 10.000" in text
    assert "Rp. 25.000" in text
    assert "Amount Tendered" in text
    assert "Rp. 5.000" in text
    assert "Thank you for your purchase!" in text
    assert all(len(line) <= 40 for line in text.splitlines())


def test_bank_transfer_receipt_shows_reference_not_change():
    order = _order(
        method="bank_transfer",
        details=PaymentDetails(bank_reference="ORDER-1700000000000"),
    )

    receipt = build_receipt(order, BUSINESS)

    assert receipt.payment_label == "Bank Transfer"
    assert receipt.change_due is None
    assert "ORDER-1700000000000" in receipt.text
    assert "Change" not in receipt.text


def test_receipt_is_deterministic():
    order = _order()

    assert build_receipt(order, BUSINESS).text == build_receipt(order, BUSINESS).text
