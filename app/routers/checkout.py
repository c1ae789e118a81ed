# app/routers/checkout.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_staff
from app.database import get_session
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.setting_repo import SettingRepository
from app.repositories.user_repo import UserRepository
from app.schemas.cart import CartItemCreate, CartItemUpdate, CartProduct
from app.schemas.checkout import CheckoutState, ScanInput
from app.schemas.payment import PaymentInput
from app.schemas.receipt import ReceiptRead
from app.services import product_matcher
from app.services.cart_service import CartService
from app.services.catalog_cache import catalog_cache
from app.services.checkout_service import CheckoutRegistry, CheckoutSession
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService
from app.services.product_service import ProductService
from app.services.setting_service import SettingService

router = APIRouter(prefix="/checkout", tags=["Checkout"])

product_repo = ProductRepository()
payment_service = PaymentService()
order_service = OrderService(
    OrderRepository(), product_repo, UserRepository(), payment_service
)
product_service = ProductService(product_repo)
setting_service = SettingService(SettingRepository())
registry = CheckoutRegistry(CartService(), payment_service, order_service, catalog_cache)


def get_checkout(current_user: User = Depends(require_staff)) -> CheckoutSession:
    """The signed-in cashier's checkout session (created on first use)."""
    return registry.get(current_user.id, current_user.name)


@router.get("", response_model=CheckoutState)
def read_checkout(checkout: CheckoutSession = Depends(get_checkout)):
    """
    Cart lines, totals, payment form and last outcome for the register.
    """
    return checkout.state()


@router.get("/products", response_model=list[CartProduct])
def search_products(
    session: Session = Depends(get_session),
    _: CheckoutSession = Depends(get_checkout),
    q: str = "",
    category: str | None = None,
):
    """
    Live filter over the cached catalog (name or SKU substring).
    """
    return product_matcher.search(catalog_cache.get(session), q, category)


# -------- Cart --------


@router.post("/items", response_model=CheckoutState)
def add_item(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    checkout: CheckoutSession = Depends(get_checkout),
):
    """
    Add a product to the cart.

    Rejections (inactive, out of stock, over stock) leave the cart
    unchanged and are reported in `warning`.
    """
    product = catalog_cache.get_product(session, payload.product_id)
    if product is None:
        # Not in the sellable catalog: load it so the warning names it
        product = product_service.get_product(session, payload.product_id)
    checkout.add_product(product, payload.quantity)
    return checkout.state()


@router.patch("/items/{product_id}", response_model=CheckoutState)
def update_item(
    product_id: uuid.UUID,
    payload: CartItemUpdate,
    checkout: CheckoutSession = Depends(get_checkout),
):
    """
    Set a line's quantity. Values above stock are clamped; 0 removes
    the line.
    """
    checkout.update_quantity(product_id, payload.quantity)
    return checkout.state()


@router.delete("/items/{product_id}", response_model=CheckoutState)
def remove_item(
    product_id: uuid.UUID,
    checkout: CheckoutSession = Depends(get_checkout),
):
    checkout.remove_item(product_id)
    return checkout.state()


@router.delete("/items", response_model=CheckoutState)
def clear_cart(checkout: CheckoutSession = Depends(get_checkout)):
    checkout.clear()
    return checkout.state()


@router.post("/scan", response_model=CheckoutState)
def scan(
    payload: ScanInput,
    session: Session = Depends(get_session),
    checkout: CheckoutSession = Depends(get_checkout),
):
    """
    Submit the search box (Enter or a scanner burst).

    An exact SKU or product id adds one unit; otherwise the text stays as
    the query and `last_match` lists the matches.
    """
    checkout.scan(catalog_cache.get(session), payload.text)
    return checkout.state()


# -------- Payment & submit --------


@router.put("/payment", response_model=CheckoutState)
def set_payment(
    payload: PaymentInput,
    checkout: CheckoutSession = Depends(get_checkout),
):
    """
    Update the payment form. Validation is reported in
    `payment_validation`; it never rejects the request.
    """
    checkout.set_payment(payload)
    return checkout.state()


@router.post(
    "/submit",
    response_model=ReceiptRead,
    status_code=status.HTTP_201_CREATED,
)
def submit(
    session: Session = Depends(get_session),
    checkout: CheckoutSession = Depends(get_checkout),
):
    """
    Complete the sale and return its receipt.

    Errors (the cart is kept on every one of them):
      - 400: empty cart or invalid payment
      - 409: another submit is in progress, or stock ran out
      - 503: database failure, retry
    """
    return checkout.submit(session, setting_service.get_business_info(session))
