# tests/test_checkout_service.py
import threading
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.schemas.cart import CartProduct
from app.schemas.order import OrderItemRead, OrderWithItemsRead
from app.schemas.payment import PaymentInput
from app.schemas.setting import BusinessInfo
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutRegistry, CheckoutSession
from app.services.payment_service import PaymentService

BUSINESS = BusinessInfo(app_name="Shop", app_address="Street 1", app_phone="123")


class FakeCatalog:
    def __init__(self, products=()):
        self.products = list(products)
        self.invalidated = 0

    def get(self, session):
        return self.products

    def invalidate(self):
        self.invalidated += 1


class FakeOrderService:
    """Records calls; optionally blocks until released or raises."""

    def __init__(self, block=False, error=None):
        self.calls = []
        self.error = error
        self.started = threading.Event()
        self.release = threading.Event()
        if not block:
            self.release.set()

    def create_order(self, session, cashier_id, payload, idempotency_key=None):
        self.calls.append((payload, idempotency_key))
        self.started.set()
        self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        order_id = uuid.uuid4()
        return OrderWithItemsRead(
            id=order_id,
            user_id=cashier_id,
            subtotal=payload.subtotal,
            tax=Decimal("0"),
            total=payload.total,
            payment_method=payload.payment_method,
            payment_details=payload.payment_details,
            created_at=datetime.now(timezone.utc),
            items=[
                OrderItemRead(
                    id=uuid.uuid4(),
                    order_id=order_id,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    product_price=line.product_price,
                    quantity=line.quantity,
                    total=line.product_price * line.quantity,
                )
                for line in payload.lines
            ],
        )


def _product(name="A", price="10000", stock=5):
    return CartProduct(
        id=uuid.uuid4(), name=name, price=Decimal(price), stock_quantity=stock
    )


def _checkout(order_service, catalog=None):
    return CheckoutSession(
        uuid.uuid4(),
        "Bob",
        CartService(),
        PaymentService(),
        order_service,
        catalog or FakeCatalog(),
    )


def test_submit_clears_cart_and_returns_receipt():
    orders = FakeOrderService()
    catalog = FakeCatalog()
    checkout = _checkout(orders, catalog)
    checkout.add_product(_product("A", "10000"), 2)
    checkout.add_product(_product("B", "5000"), 1)
    checkout.set_payment(PaymentInput(method="cash", amount_tendered=Decimal("30000")))

    receipt = checkout.submit(None, BUSINESS)

    assert receipt.total == Decimal("25000")
    assert receipt.change_due == Decimal("5000")
    assert receipt.cashier_name == "Bob"
    assert checkout.cart.is_empty()
    assert checkout.payment == PaymentInput()
    assert checkout.state().last_order_id == receipt.order_id
    assert catalog.invalidated == 1


def test_double_submit_creates_one_order():
    orders = FakeOrderService(block=True)
    checkout = _checkout(orders)
    checkout.add_product(_product(), 1)
    checkout.set_payment(PaymentInput(method="bank_transfer"))

    results = []
    worker = threading.Thread(
        target=lambda: results.append(checkout.submit(None, BUSINESS))
    )
    worker.start()
    assert orders.started.wait(timeout=5)
    assert checkout.processing

    with pytest.raises(HTTPException) as exc:
        checkout.submit(None, BUSINESS)
    assert exc.value.status_code == 409
    assert exc.value.detail == "Order submission already in progress"

    orders.release.set()
    worker.join(timeout=5)

    assert len(orders.calls) == 1
    assert len(results) == 1
    assert not checkout.processing


def test_cart_edits_are_refused_while_submitting():
    orders = FakeOrderService(block=True)
    checkout = _checkout(orders)
    first = _product("A")
    late = _product("B")
    checkout.add_product(first, 1)
    checkout.set_payment(PaymentInput(method="bank_transfer"))

    worker = threading.Thread(target=lambda: checkout.submit(None, BUSINESS))
    worker.start()
    assert orders.started.wait(timeout=5)

    update = checkout.add_product(late, 1)
    assert update.warning == "Order submission in progress"
    assert checkout.remove_item(first.id).warning == "Order submission in progress"
    assert [line.product.id for line in checkout.cart.items] == [first.id]

    orders.release.set()
    worker.join(timeout=5)

    payload, _ = orders.calls[0]
    assert [line.product_id for line in payload.lines] == [first.id]
    assert checkout.cart.is_empty()

    # Once the sale is done the register accepts items again
    assert checkout.add_product(late, 1).warning is None
    assert checkout.cart.find(late.id).quantity == 1


def test_failed_submit_keeps_cart_and_reports_error():
    error = HTTPException(status_code=503, detail="Order could not be saved, please retry")
    orders = FakeOrderService(error=error)
    checkout = _checkout(orders)
    item = _product()
    checkout.add_product(item, 2)
    checkout.set_payment(PaymentInput(method="cash", amount_tendered=Decimal("20000")))

    with pytest.raises(HTTPException):
        checkout.submit(None, BUSINESS)

    assert checkout.cart.find(item.id).quantity == 2
    assert checkout.state().last_error == "Order could not be saved, please retry"
    assert not checkout.processing


def test_retry_after_failure_reuses_idempotency_key():
    error = HTTPException(status_code=503, detail="retry")
    orders = FakeOrderService(error=error)
    checkout = _checkout(orders)
    checkout.add_product(_product(), 1)
    checkout.set_payment(PaymentInput(method="bank_transfer"))

    for _ in range(2):
        with pytest.raises(HTTPException):
            checkout.submit(None, BUSINESS)

    keys = [key for _, key in orders.calls]
    assert keys[0] == keys[1]


def test_cart_change_starts_a_new_submission_key():
    error = HTTPException(status_code=503, detail="retry")
    orders = FakeOrderService(error=error)
    checkout = _checkout(orders)
    item = _product()
    checkout.add_product(item, 1)
    checkout.set_payment(PaymentInput(method="bank_transfer"))

    with pytest.raises(HTTPException):
        checkout.submit(None, BUSINESS)
    checkout.update_quantity(item.id, 2)
    with pytest.raises(HTTPException):
        checkout.submit(None, BUSINESS)

    keys = [key for _, key in orders.calls]
    assert keys[0] != keys[1]


def test_stock_conflict_refreshes_cart_snapshots():
    item = _product(stock=5)
    fresher = item.model_copy(update={"stock_quantity": 1})
    catalog = FakeCatalog([fresher])
    error = HTTPException(status_code=409, detail={"message": "Insufficient stock", "items": []})
    checkout = _checkout(FakeOrderService(error=error), catalog)
    checkout.add_product(item, 3)
    checkout.set_payment(PaymentInput(method="bank_transfer"))

    with pytest.raises(HTTPException):
        checkout.submit(None, BUSINESS)

    line = checkout.cart.find(item.id)
    assert line.quantity == 3
    assert line.product.stock_quantity == 1
    assert catalog.invalidated == 1


def test_empty_cart_and_invalid_payment_are_refused_without_calling_backend():
    orders = FakeOrderService()
    checkout = _checkout(orders)

    with pytest.raises(HTTPException) as exc:
        checkout.submit(None, BUSINESS)
    assert exc.value.detail == "Cart is empty"

    checkout.add_product(_product(price="10000"), 1)
    checkout.set_payment(PaymentInput(method="cash", amount_tendered=Decimal("5000")))
    with pytest.raises(HTTPException) as exc:
        checkout.submit(None, BUSINESS)
    assert exc.value.detail == "Amount tendered is less than the total"

    assert orders.calls == []


def test_scan_adds_exact_match_and_keeps_free_text():
    item = CartProduct(
        id=uuid.uuid4(),
        name="Croissant",
        price=Decimal("15000"),
        sku="8991234567890",
        stock_quantity=3,
    )
    checkout = _checkout(FakeOrderService())

    result = checkout.scan([item], "8991234567890")
    assert result.status == "matched"
    assert checkout.cart.find(item.id).quantity == 1
    assert checkout.query == ""

    result = checkout.scan([item], "crois")
    assert result.status == "results"
    assert checkout.query == "crois"
    assert checkout.cart.find(item.id).quantity == 1


def test_registry_keeps_one_session_per_cashier():
    registry = CheckoutRegistry(CartService(), PaymentService(), FakeOrderService(), FakeCatalog())
    cashier_id = uuid.uuid4()

    first = registry.get(cashier_id, "Bob")
    assert registry.get(cashier_id) is first
    assert registry.get(uuid.uuid4()) is not first

    registry.discard(cashier_id)
    assert registry.get(cashier_id) is not first
