# app/services/checkout_service.py
import logging
import threading
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.models.product import Product
from app.schemas.cart import Cart, CartProduct, CartUpdate
from app.schemas.checkout import CheckoutState
from app.schemas.order import OrderCreate, OrderLineCreate
from app.schemas.payment import PaymentInput, PaymentValidation
from app.schemas.receipt import ReceiptRead
from app.schemas.setting import BusinessInfo
from app.services import product_matcher
from app.services.cart_service import CartService
from app.services.catalog_cache import CatalogCache
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService
from app.services.product_matcher import MatchResult
from app.services.receipt_service import build_receipt

logger = logging.getLogger(__name__)

SUBMIT_IN_PROGRESS = "Order submission in progress"


class CheckoutSession:
    """
    One cashier's sale in progress.

    Owns the cart value, the search query and the payment form. Cart
    operations replace `self.cart` with the Cart returned by CartService.

    Only one submission may be in flight at a time: a second submit
    while the first is running is refused, so a double click produces
    exactly one order. The cart is cleared only after the order is
    confirmed; on failure it is left as it was. Cart edits are refused
    while a submission is in flight.
    """

    def __init__(
        self,
        cashier_id: uuid.UUID,
        cashier_name: str | None,
        cart_service: CartService,
        payment_service: PaymentService,
        order_service: OrderService,
        catalog: CatalogCache,
    ):
        self.cashier_id = cashier_id
        self.cashier_name = cashier_name
        self.cart_service = cart_service
        self.payment_service = payment_service
        self.order_service = order_service
        self.catalog = catalog

        self.cart = Cart()
        self.query = ""
        self.payment = PaymentInput()
        self.warning: str | None = None
        self.last_error = None
        self.last_match: MatchResult | None = None
        self.last_receipt: ReceiptRead | None = None

        self._state_lock = threading.RLock()
        self._submit_lock = threading.Lock()
        self._submission_key = uuid.uuid4().hex

    @property
    def processing(self) -> bool:
        return self._submit_lock.locked()

    # ---- cart ----

    def _apply(self, update: CartUpdate) -> CartUpdate:
        with self._state_lock:
            if update.cart.items != self.cart.items:
                # A different cart is a different sale
                self._submission_key = uuid.uuid4().hex
            self.cart = update.cart
            self.warning = update.warning
            return update

    def _refuse_while_processing(self) -> CartUpdate | None:
        # Submit replaces the cart once the order is confirmed
        if not self.processing:
            return None
        self.warning = SUBMIT_IN_PROGRESS
        return CartUpdate(cart=self.cart, warning=SUBMIT_IN_PROGRESS)

    def add_product(self, product: Product | CartProduct, quantity: int = 1) -> CartUpdate:
        with self._state_lock:
            refused = self._refuse_while_processing()
            if refused is not None:
                return refused
            return self._apply(self.cart_service.add_item(self.cart, product, quantity))

    def update_quantity(self, product_id: uuid.UUID, quantity: int) -> CartUpdate:
        with self._state_lock:
            refused = self._refuse_while_processing()
            if refused is not None:
                return refused
            return self._apply(
                self.cart_service.update_item_quantity(self.cart, product_id, quantity)
            )

    def remove_item(self, product_id: uuid.UUID) -> CartUpdate:
        with self._state_lock:
            refused = self._refuse_while_processing()
            if refused is not None:
                return refused
            return self._apply(self.cart_service.remove_item(self.cart, product_id))

    def clear(self) -> CartUpdate:
        with self._state_lock:
            refused = self._refuse_while_processing()
            if refused is not None:
                return refused
            return self._apply(self.cart_service.clear_cart())

    # ---- search / scan ----

    def scan(self, products: list[CartProduct], text: str) -> MatchResult:
        """
        Resolve submitted input. An exact SKU/id hit is added to the cart
        and the query is cleared; anything else is kept as the query.
        """
        result, product = product_matcher.resolve(products, text)
        with self._state_lock:
            self.last_match = result
            if product is not None:
                update = self.add_product(product)
                self.query = text.strip() if update.warning == SUBMIT_IN_PROGRESS else ""
            else:
                self.query = text.strip()
                self.warning = {
                    "barcode_not_found": f"Product not found: {result.query}",
                    "no_results": "No products match your search",
                }.get(result.status)
        return result

    # ---- payment ----

    def set_payment(self, payment: PaymentInput) -> PaymentValidation:
        with self._state_lock:
            self.payment = payment
            return self.validate_payment()

    def validate_payment(self) -> PaymentValidation:
        summary = self.cart_service.summarize(self.cart)
        return self.payment_service.validate(
            self.payment.method, summary.total, self.payment.amount_tendered
        )

    # ---- submission ----

    def _build_order(self, cart: Cart, payment: PaymentInput) -> OrderCreate:
        summary = self.cart_service.summarize(cart)
        details = self.payment_service.build_details(
            payment.method,
            summary.total,
            payment.amount_tendered,
            payment.customer_info,
        )
        return OrderCreate(
            lines=[
                OrderLineCreate(
                    product_id=line.product.id,
                    product_name=line.product.name,
                    product_price=line.product.price,
                    quantity=line.quantity,
                )
                for line in cart.items
            ],
            subtotal=summary.subtotal,
            total=summary.total,
            payment_method=payment.method,
            payment_details=details,
        )

    def submit(self, session: Session, business: BusinessInfo) -> ReceiptRead:
        """
        Turn the cart into an order.

        Raises:
            HTTPException(409): a submission is already in flight, or
                stock ran out (cart kept, snapshots refreshed).
            HTTPException(400): empty cart or invalid payment (cart kept).
            HTTPException(503): backend failure (cart kept; retry manually).
        """
        if not self._submit_lock.acquire(blocking=False):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Order submission already in progress",
            )
        try:
            with self._state_lock:
                cart = self.cart
                payment = self.payment
                key = self._submission_key

            if cart.is_empty():
                self._fail(
                    HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail="Cart is empty",
                    )
                )

            validation = self.validate_payment()
            if not validation.is_valid:
                self._fail(
                    HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=validation.error,
                    )
                )

            payload = self._build_order(cart, payment)
            try:
                order = self.order_service.create_order(
                    session, self.cashier_id, payload, idempotency_key=key
                )
            except HTTPException as exc:
                if exc.status_code == status.HTTP_409_CONFLICT:
                    self.catalog.invalidate()
                    fresh = self.catalog.get(session)
                    with self._state_lock:
                        self.cart = self.cart_service.refresh_products(self.cart, fresh)
                self._fail(exc)

            receipt = build_receipt(order, business, self.cashier_name)
            self.catalog.invalidate()
            with self._state_lock:
                self.last_receipt = receipt
                self.last_error = None
                self.warning = None
                self.cart = Cart()
                self.payment = PaymentInput()
                self.query = ""
                self._submission_key = uuid.uuid4().hex
            return receipt
        finally:
            self._submit_lock.release()

    def _fail(self, exc: HTTPException) -> None:
        with self._state_lock:
            self.last_error = exc.detail
        logger.info("Checkout for cashier %s failed: %s", self.cashier_id, exc.detail)
        raise exc

    # ---- view ----

    def state(self) -> CheckoutState:
        with self._state_lock:
            return CheckoutState(
                cashier_id=self.cashier_id,
                items=self.cart_service.to_read(self.cart),
                summary=self.cart_service.summarize(self.cart),
                query=self.query,
                payment=self.payment,
                payment_validation=self.validate_payment(),
                processing=self.processing,
                warning=self.warning,
                last_error=self.last_error,
                last_match=self.last_match,
                last_order_id=self.last_receipt.order_id if self.last_receipt else None,
            )


class CheckoutRegistry:
    """
    Active checkout sessions, one per cashier, held in process memory.
    """

    def __init__(
        self,
        cart_service: CartService,
        payment_service: PaymentService,
        order_service: OrderService,
        catalog: CatalogCache,
    ):
        self.cart_service = cart_service
        self.payment_service = payment_service
        self.order_service = order_service
        self.catalog = catalog
        self._sessions: dict[uuid.UUID, CheckoutSession] = {}
        self._lock = threading.Lock()

    def get(self, cashier_id: uuid.UUID, cashier_name: str | None = None) -> CheckoutSession:
        with self._lock:
            checkout = self._sessions.get(cashier_id)
            if checkout is None:
                checkout = CheckoutSession(
                    cashier_id,
                    cashier_name,
                    self.cart_service,
                    self.payment_service,
                    self.order_service,
                    self.catalog,
                )
                self._sessions[cashier_id] = checkout
            elif cashier_name:
                checkout.cashier_name = cashier_name
            return checkout

    def discard(self, cashier_id: uuid.UUID) -> None:
        with self._lock:
            self._sessions.pop(cashier_id, None)

    def reset(self) -> None:
        with self._lock:
            self._sessions.clear()
