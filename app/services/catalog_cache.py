# app/services/catalog_cache.py
"""
In-process cache of the sellable catalog used by the checkout matcher.

The register searches and scans against this list instead of querying
the database on every keystroke. Entries are detached snapshots
(CartProduct), so they are safe to hand out after the DB session closes.
"""
import logging
import threading
import time
import uuid
from typing import Callable

from sqlmodel import Session

from app.core.config import get_settings
from app.models.product import Product
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartProduct
from app.services.cart_service import snapshot_product
from app.services.product_service import ProductService

logger = logging.getLogger(__name__)


class CatalogCache:

    def __init__(
        self,
        repo: ProductRepository,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repo = repo
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else get_settings().CATALOG_CACHE_TTL_SECONDS
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._products: dict[uuid.UUID, CartProduct] | None = None
        self._loaded_at = 0.0

    def _is_fresh(self) -> bool:
        return (
            self._products is not None
            and self._clock() - self._loaded_at < self.ttl_seconds
        )

    def get(self, session: Session) -> list[CartProduct]:
        """Active products, reloaded from the database when stale."""
        with self._lock:
            if not self._is_fresh():
                rows = self.repo.list_active(session)
                self._products = {p.id: snapshot_product(p) for p in rows}
                self._loaded_at = self._clock()
                logger.debug("Catalog cache loaded %d products", len(rows))
            return list(self._products.values())

    def get_product(self, session: Session, product_id: uuid.UUID) -> CartProduct | None:
        for product in self.get(session):
            if product.id == product_id:
                return product
        return None

    def invalidate(self) -> None:
        with self._lock:
            self._products = None

    def _put(self, product: CartProduct | Product) -> None:
        if self._products is None:
            return
        if product.is_active:
            self._products[product.id] = snapshot_product(product)
        else:
            self._products.pop(product.id, None)

    def adjust_stock(
        self,
        session: Session,
        product_service: ProductService,
        product_id: uuid.UUID,
        quantity_change: int,
        reason: str,
        actor_id: uuid.UUID,
    ) -> Product:
        """
        Optimistic stock update.

        The cached entry changes first so the register sees the new level
        immediately; if the backend rejects the adjustment or fails, the
        previous entry is restored and the error re-raised.
        """
        with self._lock:
            previous = self._products.get(product_id) if self._products else None
            if previous is not None:
                optimistic = previous.model_copy(
                    update={"stock_quantity": max(previous.stock_quantity + quantity_change, 0)}
                )
                self._products[product_id] = optimistic

        try:
            product = product_service.adjust_stock(
                session, product_id, quantity_change, reason, actor_id
            )
        except Exception:
            with self._lock:
                if previous is not None and self._products is not None:
                    self._products[product_id] = previous
            raise

        with self._lock:
            self._put(product)
        return product


# Shared by the product and checkout routers so admin stock changes are
# visible at the register.
catalog_cache = CatalogCache(ProductRepository())
