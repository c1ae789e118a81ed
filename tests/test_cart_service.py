# tests/test_cart_service.py
import uuid
from decimal import Decimal

from app.schemas.cart import Cart, CartProduct
from app.services.cart_service import CartService

service = CartService()


def product(name="Coffee", price="10000", stock=5, is_active=True, sku=None):
    return CartProduct(
        id=uuid.uuid4(),
        name=name,
        price=Decimal(price),
        sku=sku,
        stock_quantity=stock,
        is_active=is_active,
    )


def test_add_new_product_creates_line_and_leaves_input_untouched():
    cart = Cart()
    coffee = product()

    update = service.add_item(cart, coffee)

    assert update.warning is None
    assert len(update.cart.items) == 1
    assert update.cart.items[0].quantity == 1
    assert cart.items == []


def test_add_existing_product_increments_quantity():
    coffee = product()
    cart = service.add_item(Cart(), coffee).cart

    cart = service.add_item(cart, coffee, 2).cart

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 3


def test_add_inactive_product_is_rejected():
    cart = Cart()
    update = service.add_item(cart, product(is_active=False))

    assert update.cart.items == []
    assert update.warning == "Coffee is not available for purchase"


def test_add_out_of_stock_product_is_rejected():
    update = service.add_item(Cart(), product(stock=0))

    assert update.cart.items == []
    assert update.warning == "Coffee is out of stock"


def test_add_beyond_stock_is_rejected_with_remaining_count():
    coffee = product(stock=2)
    cart = service.add_item(Cart(), coffee, 2).cart

    update = service.add_item(cart, coffee)

    assert update.cart.items[0].quantity == 2
    assert update.warning == "Cannot add 1 more. Only 0 available."


def test_repeated_single_adds_stop_at_stock():
    coffee = product(stock=3)
    cart = Cart()
    warnings = []

    for _ in range(6):
        update = service.add_item(cart, coffee)
        cart = update.cart
        warnings.append(update.warning)

    assert cart.find(coffee.id).quantity == 3
    assert warnings[:3] == [None, None, None]
    assert warnings[3:] == ["Cannot add 1 more. Only 0 available."] * 3


def test_add_non_positive_quantity_is_rejected():
    update = service.add_item(Cart(), product(), 0)

    assert update.cart.items == []
    assert update.warning == "Quantity must be greater than zero"


def test_update_quantity_clamps_to_stock():
    coffee = product(stock=3)
    cart = service.add_item(Cart(), coffee).cart

    update = service.update_item_quantity(cart, coffee.id, 10)

    assert update.cart.items[0].quantity == 3
    assert update.warning == "Cannot set quantity to 10. Only 3 available."


def test_update_quantity_zero_removes_line():
    coffee = product()
    cart = service.add_item(Cart(), coffee).cart

    update = service.update_item_quantity(cart, coffee.id, 0)

    assert update.cart.is_empty()
    assert update.warning is None


def test_update_unknown_product_warns():
    update = service.update_item_quantity(Cart(), uuid.uuid4(), 2)

    assert update.cart.is_empty()
    assert update.warning == "Product not found in cart"


def test_update_within_stock_sets_quantity():
    coffee = product(stock=5)
    cart = service.add_item(Cart(), coffee).cart

    update = service.update_item_quantity(cart, coffee.id, 4)

    assert update.cart.items[0].quantity == 4
    assert update.warning is None


def test_remove_absent_product_is_noop():
    coffee = product()
    cart = service.add_item(Cart(), coffee).cart

    update = service.remove_item(cart, uuid.uuid4())

    assert [line.product.id for line in update.cart.items] == [coffee.id]


def test_clear_cart_empties():
    cart = service.add_item(Cart(), product()).cart
    assert service.clear_cart().cart.is_empty()
    assert not cart.is_empty()


def test_summary_totals():
    a = product(name="A", price="10000")
    b = product(name="B", price="5000")
    cart = service.add_item(Cart(), a, 2).cart
    cart = service.add_item(cart, b).cart

    summary = service.summarize(cart)

    assert summary.subtotal == Decimal("25000")
    assert summary.tax == Decimal("0")
    assert summary.total == Decimal("25000")
    assert summary.item_count == 3
    assert summary.unique_item_count == 2


def test_totals_follow_lines_through_mixed_edits():
    a = product(name="A", price="12500", stock=10)
    b = product(name="B", price="3750", stock=4)
    c = product(name="C", price="999.99", stock=2)
    cart = Cart()

    for step in [
        lambda cart: service.add_item(cart, a, 3),
        lambda cart: service.add_item(cart, b),
        lambda cart: service.add_item(cart, c, 2),
        lambda cart: service.update_item_quantity(cart, b.id, 9),
        lambda cart: service.add_item(cart, c),
        lambda cart: service.remove_item(cart, a.id),
        lambda cart: service.add_item(cart, a),
        lambda cart: service.update_item_quantity(cart, c.id, 1),
    ]:
        cart = step(cart).cart
        expected = sum(
            (line.product.price * line.quantity for line in cart.items), Decimal("0")
        )
        assert service.summarize(cart).total == expected

    assert {line.product.name: line.quantity for line in cart.items} == {
        "A": 1,
        "B": 4,
        "C": 1,
    }


def test_empty_cart_summary_is_zero():
    summary = service.summarize(Cart())

    assert summary.total == Decimal("0")
    assert summary.item_count == 0


def test_refresh_products_keeps_quantity_and_reports_shortage():
    coffee = product(stock=5)
    cart = service.add_item(Cart(), coffee, 4).cart
    fresher = coffee.model_copy(update={"stock_quantity": 2})

    refreshed = service.refresh_products(cart, [fresher])

    assert refreshed.items[0].quantity == 4
    assert refreshed.items[0].product.stock_quantity == 2
    assert [line.product.id for line in service.shortages(refreshed)] == [coffee.id]
