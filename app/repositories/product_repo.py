# app/repositories/product_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from app.models.order import OrderItem
from app.models.product import InventoryLog, Product


class ProductRepository:
    """
    Data access layer for Product & InventoryLog.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    - Stock/log helpers do not commit; they run inside the caller's
      transaction.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_by_sku(self, session: Session, sku: str) -> Product | None:
        stmt = select(Product).where(func.lower(Product.sku) == sku.lower())
        return session.exec(stmt).first()

    def list_by_ids(self, session: Session, product_ids: list[uuid.UUID]) -> list[Product]:
        if not product_ids:
            return []
        stmt = select(Product).where(Product.id.in_(product_ids))
        return list(session.exec(stmt).all())

    def list_active(self, session: Session) -> list[Product]:
        stmt = select(Product).where(Product.is_active == True).order_by(Product.name)  # noqa: E712
        return list(session.exec(stmt).all())

    def search(
        self,
        session: Session,
        *,
        search: str | None = None,
        category: str | None = None,
        is_active: bool | None = None,
        sort_by: str = "name",
        sort_direction: str = "asc",
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Product], int]:
        """
        Filtered, sorted, paginated product listing.

        Returns:
            (rows for the requested page, total number of matching rows)
        """
        conditions = []
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(Product.name).like(pattern),
                    func.lower(Product.sku).like(pattern),
                    func.lower(Product.description).like(pattern),
                )
            )
        if category:
            conditions.append(Product.category == category)
        if is_active is not None:
            conditions.append(Product.is_active == is_active)

        count_stmt = select(func.count()).select_from(Product).where(*conditions)
        total = int(session.exec(count_stmt).one() or 0)

        column = getattr(Product, sort_by)
        order = column.asc() if sort_direction == "asc" else column.desc()
        stmt = (
            select(Product)
            .where(*conditions)
            .order_by(order, Product.id)
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all()), total

    def list_categories(self, session: Session) -> list[str]:
        stmt = (
            select(Product.category)
            .where(Product.category.is_not(None))
            .distinct()
            .order_by(Product.category)
        )
        return [c for c in session.exec(stmt).all() if c]

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        product.updated_at = datetime.now(timezone.utc)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()

    def set_active_many(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
        is_active: bool,
    ) -> int:
        stmt = (
            update(Product)
            .where(Product.id.in_(product_ids))
            .values(is_active=is_active, updated_at=datetime.now(timezone.utc))
        )
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    # ----- Stock -----

    def decrement_stock_if_available(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """
        Atomically take `quantity` units if at least that many are in stock.

        The check and the write are a single UPDATE, so two concurrent
        sales cannot both pass the check on the last unit. Does not commit.

        Returns:
            True if the row was decremented, False if stock was short
            (or the product does not exist).
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(
                stock_quantity=Product.stock_quantity - quantity,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)
        return result.rowcount == 1

    def current_stock(self, session: Session, product_id: uuid.UUID) -> int | None:
        stmt = select(Product.stock_quantity).where(Product.id == product_id)
        return session.exec(stmt).first()

    # ----- Inventory logs -----

    def add_log(self, session: Session, log: InventoryLog) -> InventoryLog:
        """Stage an inventory log row without committing."""
        session.add(log)
        return log

    def list_logs_for_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[InventoryLog]:
        stmt = (
            select(InventoryLog)
            .where(InventoryLog.product_id == product_id)
            .order_by(InventoryLog.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def increment_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> None:
        """Add units to stock without committing."""
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(
                stock_quantity=Product.stock_quantity + quantity,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        session.exec(stmt)

    def list_low_stock(self, session: Session, default_threshold: int) -> list[Product]:
        """
        Products below their own threshold, or below `default_threshold`
        when none is set. Lowest stock first.
        """
        threshold = func.coalesce(Product.low_stock_threshold, default_threshold)
        stmt = (
            select(Product)
            .where(Product.stock_quantity < threshold)
            .order_by(Product.stock_quantity, Product.name)
        )
        return list(session.exec(stmt).all())

    def count_order_items(self, session: Session, product_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(OrderItem)
            .where(OrderItem.product_id == product_id)
        )
        return int(session.exec(stmt).one() or 0)
