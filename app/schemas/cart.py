# app/schemas/cart.py
import uuid
from decimal import Decimal

from sqlmodel import SQLModel, Field


class CartProduct(SQLModel):
    """
    Snapshot of the product fields the cart needs.

    Taken from the catalog when the item is added; refreshed from the
    catalog after a stock conflict.
    """

    id: uuid.UUID
    name: str
    price: Decimal
    sku: str | None = None
    category: str | None = None
    stock_quantity: int = Field(ge=0)
    is_active: bool = True


class CartLine(SQLModel):
    """
    One product in the cart. 1 <= quantity <= product.stock_quantity.
    """

    product: CartProduct
    quantity: int = Field(gt=0)

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


class Cart(SQLModel):
    """
    In-memory cart for the sale in progress. Never persisted.

    Treated as a value: cart operations build a new Cart instead of
    mutating this one.
    """

    items: list[CartLine] = Field(default_factory=list)

    def find(self, product_id: uuid.UUID) -> CartLine | None:
        for line in self.items:
            if line.product.id == product_id:
                return line
        return None

    def is_empty(self) -> bool:
        return not self.items


class CartUpdate(SQLModel):
    """
    Result of a cart operation: the new cart and an optional warning
    for the cashier (the operation was rejected or clamped).
    """

    cart: Cart
    warning: str | None = None


class CartSummary(SQLModel):
    """
    Derived totals. tax is always 0 at the register, so total == subtotal.
    """

    subtotal: Decimal
    tax: Decimal
    total: Decimal
    item_count: int
    unique_item_count: int


class CartLineRead(SQLModel):
    product_id: uuid.UUID
    name: str
    sku: str | None = None
    price: Decimal
    quantity: int
    stock_quantity: int
    line_total: Decimal


class CartItemCreate(SQLModel):
    """
    Payload for adding a product to the checkout cart.
    """

    product_id: uuid.UUID
    quantity: int = 1


class CartItemUpdate(SQLModel):
    """
    Payload for setting the quantity of a cart line. <= 0 removes the line.
    """

    quantity: int
