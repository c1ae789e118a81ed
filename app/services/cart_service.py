# app/services/cart_service.py
import uuid
from decimal import Decimal
from typing import Iterable

from app.models.product import Product
from app.schemas.cart import (
    Cart,
    CartLine,
    CartLineRead,
    CartProduct,
    CartSummary,
    CartUpdate,
)

# No tax is charged at the register
TAX_RATE = Decimal("0")


def snapshot_product(product: Product | CartProduct) -> CartProduct:
    """Copy the fields the cart needs out of a catalog row."""
    return CartProduct(
        id=product.id,
        name=product.name,
        price=Decimal(product.price),
        sku=product.sku,
        category=product.category,
        stock_quantity=max(product.stock_quantity, 0),
        is_active=product.is_active,
    )


class CartService:
    """
    Business rules for the checkout cart.

    Every operation takes a Cart and returns a CartUpdate holding a new
    Cart; the input is never modified. Rejections are not errors: the
    original cart comes back together with a warning for the cashier.

    Rules:
      - product must be active and in stock to be added
      - 1 <= quantity <= stock_quantity for every line
      - quantity <= 0 on update removes the line
    """

    # ---- internal helpers ----

    @staticmethod
    def _replace_line(cart: Cart, line: CartLine) -> Cart:
        items = [
            line if existing.product.id == line.product.id else existing
            for existing in cart.items
        ]
        return Cart(items=items)

    @staticmethod
    def _rejected(cart: Cart, warning: str) -> CartUpdate:
        return CartUpdate(cart=cart, warning=warning)

    # ---- public operations ----

    def add_item(
        self,
        cart: Cart,
        product: Product | CartProduct,
        quantity: int = 1,
    ) -> CartUpdate:
        """
        Add `quantity` units of a product, inserting or incrementing its line.

        No-op with a warning if the product is inactive, out of stock, or
        the resulting quantity would exceed stock_quantity.
        """
        if quantity <= 0:
            return self._rejected(cart, "Quantity must be greater than zero")

        if not product.is_active:
            return self._rejected(cart, f"{product.name} is not available for purchase")

        if product.stock_quantity <= 0:
            return self._rejected(cart, f"{product.name} is out of stock")

        existing = cart.find(product.id)
        current = existing.quantity if existing else 0
        if current + quantity > product.stock_quantity:
            remaining = max(product.stock_quantity - current, 0)
            return self._rejected(
                cart,
                f"Cannot add {quantity} more. Only {remaining} available.",
            )

        snapshot = snapshot_product(product)
        line = CartLine(product=snapshot, quantity=current + quantity)
        if existing:
            return CartUpdate(cart=self._replace_line(cart, line))
        return CartUpdate(cart=Cart(items=[*cart.items, line]))

    def update_item_quantity(
        self,
        cart: Cart,
        product_id: uuid.UUID,
        quantity: int,
    ) -> CartUpdate:
        """
        Set the quantity of a line, clamped to [1, stock_quantity].

        quantity <= 0 removes the line.
        """
        if quantity <= 0:
            return self.remove_item(cart, product_id)

        line = cart.find(product_id)
        if line is None:
            return self._rejected(cart, "Product not found in cart")

        stock = line.product.stock_quantity
        if stock < 1:
            updated = self.remove_item(cart, product_id)
            return CartUpdate(
                cart=updated.cart,
                warning=f"{line.product.name} is out of stock",
            )

        if quantity > stock:
            clamped = CartLine(product=line.product, quantity=stock)
            return CartUpdate(
                cart=self._replace_line(cart, clamped),
                warning=f"Cannot set quantity to {quantity}. Only {stock} available.",
            )

        return CartUpdate(
            cart=self._replace_line(cart, CartLine(product=line.product, quantity=quantity))
        )

    def remove_item(self, cart: Cart, product_id: uuid.UUID) -> CartUpdate:
        """Drop a line; removing an absent product is a silent no-op."""
        items = [line for line in cart.items if line.product.id != product_id]
        return CartUpdate(cart=Cart(items=items))

    def clear_cart(self) -> CartUpdate:
        return CartUpdate(cart=Cart())

    def refresh_products(
        self,
        cart: Cart,
        products: Iterable[Product | CartProduct],
    ) -> Cart:
        """
        Re-snapshot lines from a fresher catalog.

        Quantities are kept as they are even when they now exceed the
        live stock; the cashier has to adjust them explicitly.
        """
        by_id = {p.id: p for p in products}
        items = []
        for line in cart.items:
            fresh = by_id.get(line.product.id)
            product = snapshot_product(fresh) if fresh is not None else line.product
            items.append(CartLine(product=product, quantity=line.quantity))
        return Cart(items=items)

    # ---- derived values ----

    def summarize(self, cart: Cart) -> CartSummary:
        """
        Totals for the current cart.

        subtotal = sum(price * quantity); tax = 0; total = subtotal.
        """
        subtotal = sum((line.line_total for line in cart.items), Decimal("0"))
        tax = subtotal * TAX_RATE
        return CartSummary(
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
            item_count=sum(line.quantity for line in cart.items),
            unique_item_count=len(cart.items),
        )

    def shortages(self, cart: Cart) -> list[CartLine]:
        """Lines whose quantity exceeds the snapshotted stock."""
        return [
            line for line in cart.items if line.quantity > line.product.stock_quantity
        ]

    @staticmethod
    def to_read(cart: Cart) -> list[CartLineRead]:
        return [
            CartLineRead(
                product_id=line.product.id,
                name=line.product.name,
                sku=line.product.sku,
                price=line.product.price,
                quantity=line.quantity,
                stock_quantity=line.product.stock_quantity,
                line_total=line.line_total,
            )
            for line in cart.items
        ]
