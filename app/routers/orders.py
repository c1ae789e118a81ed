# app/routers/orders.py
import uuid
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import PlainTextResponse
from sqlmodel import Session

from app.core.auth import require_admin, require_staff
from app.database import get_session
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.setting_repo import SettingRepository
from app.repositories.user_repo import UserRepository
from app.schemas.order import OrderCreate, OrderRead, OrderWithItemsRead
from app.schemas.receipt import ReceiptRead
from app.services.catalog_cache import catalog_cache
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService
from app.services.setting_service import SettingService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
product_repo = ProductRepository()
user_repo = UserRepository()
service = OrderService(order_repo, product_repo, user_repo, PaymentService())
setting_service = SettingService(SettingRepository())


# -------- Register endpoints --------


@router.post(
    "",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
    idempotency_key: str | None = Header(default=None, max_length=128),
):
    """
    Record a completed sale and take its stock.

    Send the same `Idempotency-Key` header when retrying a submission;
    the order created by the first attempt is returned instead of a
    duplicate.

    Errors:
      - 400: validation (empty, totals, payment, unknown/inactive product)
      - 409: insufficient stock (nothing is saved)
      - 503: database failure (nothing is saved; retry)
    """
    try:
        return service.create_order(session, current_user.id, payload, idempotency_key)
    finally:
        catalog_cache.invalidate()


@router.get("/me", response_model=list[OrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
    skip: int = 0,
    limit: int = 50,
):
    """
    Sales rung up by the authenticated cashier, newest first.
    """
    return service.list_cashier_orders(session, current_user.id, skip, limit)


@router.get(
    "/{order_id}",
    response_model=OrderWithItemsRead,
)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    """
    Order with items. Cashiers only see their own sales.
    """
    order = service.get_order(session, order_id)
    _ensure_can_view(order, current_user)
    return order


@router.get(
    "/{order_id}/receipt",
    response_model=ReceiptRead,
)
def get_receipt(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_staff),
    format: Literal["json", "text"] = "json",
):
    """
    Receipt for a stored order. `format=text` returns the printable
    fixed-width layout as text/plain.
    """
    order = service.get_order(session, order_id)
    _ensure_can_view(order, current_user)
    receipt = service.get_receipt(
        session, order_id, setting_service.get_business_info(session)
    )
    if format == "text":
        return PlainTextResponse(receipt.text)
    return receipt


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[OrderRead],
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List all orders (admin only), optionally within a date range.
    """
    return service.list_orders(session, date_from, date_to, skip, limit)


def _ensure_can_view(order: OrderWithItemsRead, user: User) -> None:
    if user.role != "admin" and order.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
