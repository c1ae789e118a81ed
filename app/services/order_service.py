# app/services/order_service.py
import logging
import uuid
from collections import Counter
from datetime import datetime, timezone
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.models.order import Order, OrderItem
from app.models.product import InventoryLog
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.user_repo import UserRepository
from app.schemas.order import (
    OrderCreate,
    OrderItemRead,
    OrderRead,
    OrderWithItemsRead,
)
from app.schemas.payment import PaymentDetails
from app.schemas.receipt import ReceiptRead
from app.schemas.setting import BusinessInfo
from app.services.cart_service import TAX_RATE
from app.services.payment_service import PaymentService
from app.services.receipt_service import build_receipt, receipt_number

logger = logging.getLogger(__name__)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Validate a submitted sale (lines, totals, payment, products)
      - Persist order header + line items and decrement stock as ONE
        transaction; nothing is visible if any part fails
      - Refuse to let stock go negative when another sale got there first
      - Replay the original order for a repeated idempotency key
      - Read side: list / get / receipt
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        user_repo: UserRepository,
        payment_service: PaymentService,
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.user_repo = user_repo
        self.payment_service = payment_service

    # -------- Submission --------

    def create_order(
        self,
        session: Session,
        cashier_id: uuid.UUID,
        payload: OrderCreate,
        idempotency_key: str | None = None,
    ) -> OrderWithItemsRead:
        """
        Record a completed sale.

        Steps:
          1. Replay: a known idempotency key returns the stored order.
          2. Validate lines, totals and payment.
          3. Ensure every product exists and is active.
          4. In one transaction: insert order + items, take stock with a
             conditional UPDATE per product, write inventory logs.
          5. Any short product => rollback + 409; DB failure => rollback + 503.
        """
        # 1) Double submission with the same key
        if idempotency_key:
            existing = self.order_repo.get_by_idempotency_key(session, idempotency_key)
            if existing is not None:
                return self._replay(session, existing, cashier_id, idempotency_key)

        # 2) Lines, totals, payment
        if not payload.lines:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Order has no line items",
            )

        subtotal = sum(
            (line.product_price * line.quantity for line in payload.lines),
            Decimal("0"),
        )
        tax = subtotal * TAX_RATE
        total = subtotal + tax
        if payload.subtotal != subtotal or payload.total != total:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "Order totals do not match line items",
                    "expected_subtotal": str(subtotal),
                    "expected_total": str(total),
                },
            )

        details = payload.payment_details
        validation = self.payment_service.validate(
            payload.payment_method, total, details.amount_tendered
        )
        if not validation.is_valid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=validation.error,
            )
        details = self._normalize_details(payload.payment_method, total, details)

        # 3) Products must exist and be sellable
        requested: Counter[uuid.UUID] = Counter()
        for line in payload.lines:
            requested[line.product_id] += line.quantity

        products = {
            p.id: p
            for p in self.product_repo.list_by_ids(session, list(requested))
        }
        errors: list[dict[str, str]] = []
        for product_id in requested:
            product = products.get(product_id)
            if product is None:
                errors.append({"product_id": str(product_id), "reason": "Product not found"})
            elif not product.is_active:
                errors.append({"product_id": str(product_id), "reason": "Product is inactive"})
        if errors:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Order validation failed", "items": errors},
            )

        # 4) Single transaction
        shortages: list[dict] = []
        try:
            order = Order(
                user_id=cashier_id,
                subtotal=subtotal,
                tax=tax,
                total=total,
                payment_method=payload.payment_method,
                payment_details=details.model_dump(mode="json", exclude_none=True),
                idempotency_key=idempotency_key,
            )
            order = self.order_repo.create_order(session, order)

            items = self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order.id,
                        product_id=line.product_id,
                        product_name=line.product_name,
                        product_price=line.product_price,
                        quantity=line.quantity,
                        total=line.product_price * line.quantity,
                    )
                    for line in payload.lines
                ],
            )

            reason = f"Sale #{receipt_number(order.id)}"
            for product_id, quantity in requested.items():
                taken = self.product_repo.decrement_stock_if_available(
                    session, product_id, quantity
                )
                current = self.product_repo.current_stock(session, product_id) or 0
                if not taken:
                    shortages.append(
                        {
                            "product_id": str(product_id),
                            "product_name": products[product_id].name,
                            "requested": quantity,
                            "available": current,
                        }
                    )
                    continue
                self.product_repo.add_log(
                    session,
                    InventoryLog(
                        product_id=product_id,
                        quantity_change=-quantity,
                        previous_quantity=current + quantity,
                        new_quantity=current,
                        reason=reason,
                        created_by=cashier_id,
                    ),
                )

            if shortages:
                session.rollback()
            else:
                session.commit()
        except IntegrityError:
            session.rollback()
            # Same key submitted concurrently: the other request won
            if idempotency_key:
                existing = self.order_repo.get_by_idempotency_key(session, idempotency_key)
                if existing is not None:
                    return self._replay(session, existing, cashier_id, idempotency_key)
            logger.exception("Order insert violated a constraint")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Order could not be saved, please retry",
            )
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Order transaction failed for cashier %s", cashier_id)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Order could not be saved, please retry",
            )

        if shortages:
            logger.warning("Order rejected, insufficient stock: %s", shortages)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": "Insufficient stock", "items": shortages},
            )

        session.refresh(order)
        logger.info(
            "Order %s created by cashier %s, total %s (%s)",
            order.id,
            cashier_id,
            order.total,
            order.payment_method,
        )
        return self._build_order_with_items_dto(order, items)

    # -------- Read side --------

    def list_orders(
        self,
        session: Session,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        date_from = _as_utc(date_from)
        date_to = _as_utc(date_to)
        if date_from and date_to and date_from > date_to:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="date_from must be before date_to",
            )
        orders = self.order_repo.list_all(session, date_from, date_to, skip, limit)
        return [self._build_order_dto(o) for o in orders]

    def list_cashier_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        orders = self.order_repo.list_for_user(session, user_id, skip, limit)
        return [self._build_order_dto(o) for o in orders]

    def get_order(self, session: Session, order_id: uuid.UUID) -> OrderWithItemsRead:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return self._load_dto(session, order)

    def get_receipt(
        self,
        session: Session,
        order_id: uuid.UUID,
        business: BusinessInfo,
    ) -> ReceiptRead:
        order = self.get_order(session, order_id)
        cashier = self.user_repo.get_by_id(session, order.user_id)
        return build_receipt(order, business, cashier.name if cashier else None)

    # -------- Helpers --------

    def _replay(
        self,
        session: Session,
        existing: Order,
        cashier_id: uuid.UUID,
        idempotency_key: str,
    ) -> OrderWithItemsRead:
        """
        Return the stored order for a repeated key. Keys belong to the
        cashier who first used them.
        """
        if existing.user_id != cashier_id:
            logger.warning(
                "Cashier %s reused idempotency key %s of another cashier",
                cashier_id,
                idempotency_key,
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Idempotency key already used by another cashier",
            )
        logger.info("Replaying order %s for idempotency key %s", existing.id, idempotency_key)
        return self._load_dto(session, existing)

    def _normalize_details(
        self,
        method: str,
        total: Decimal,
        details: PaymentDetails,
    ) -> PaymentDetails:
        """
        Recompute what the server can derive (change due, transfer
        reference) instead of trusting the register.
        """
        built = self.payment_service.build_details(
            method, total, details.amount_tendered, details.customer_info
        )
        if method == "bank_transfer" and details.bank_reference:
            built.bank_reference = details.bank_reference
        return built

    def _load_dto(self, session: Session, order: Order) -> OrderWithItemsRead:
        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    def _build_order_dto(self, order: Order) -> OrderRead:
        return OrderRead(
            id=order.id,
            user_id=order.user_id,
            subtotal=order.subtotal,
            tax=order.tax,
            total=order.total,
            payment_method=order.payment_method,
            payment_details=PaymentDetails.model_validate(order.payment_details or {}),
            created_at=order.created_at,
        )

    def _build_order_with_items_dto(
        self,
        order: Order,
        items: list[OrderItem],
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models.
        """
        base = self._build_order_dto(order)
        return OrderWithItemsRead(
            **base.model_dump(),
            items=[
                OrderItemRead(
                    id=it.id,
                    order_id=it.order_id,
                    product_id=it.product_id,
                    product_name=it.product_name,
                    product_price=it.product_price,
                    quantity=it.quantity,
                    total=it.total,
                )
                for it in items
            ],
        )


def _as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes from query strings are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
