# app/services/product_service.py
import logging
import math
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.config import get_settings
from app.core.storage_utils import (
    delete_public_url,
    generate_filename,
    upload_to_storage,
)
from app.models.product import InventoryLog, Product
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    ProductCreate,
    ProductPage,
    ProductRead,
    ProductUpdate,
)

logger = logging.getLogger(__name__)

# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ProductService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - filtered/paginated listing and code lookup
      - SKU uniqueness
      - logged stock adjustments that never go below zero
      - image upload/delete orchestration with Supabase
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Helpers -----

    def _ensure_unique_sku(
        self,
        session: Session,
        sku: str | None,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        if not sku:
            return
        existing = self.repo.get_by_sku(session, sku)
        if existing is not None and existing.id != exclude_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"SKU '{sku}' is already used by another product",
            )

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    # ----- Queries -----

    def list_products(
        self,
        session: Session,
        *,
        page: int = 1,
        page_size: int = 10,
        search: str | None = None,
        category: str | None = None,
        is_active: bool | None = None,
        sort_by: str = "name",
        sort_direction: str = "asc",
    ) -> ProductPage:
        rows, total = self.repo.search(
            session,
            search=search.strip() if search else None,
            category=category,
            is_active=is_active,
            sort_by=sort_by,
            sort_direction=sort_direction,
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        return ProductPage(
            items=[ProductRead.model_validate(p, from_attributes=True) for p in rows],
            total_count=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total else 0,
        )

    def list_categories(self, session: Session) -> list[str]:
        return self.repo.list_categories(session)

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def lookup(self, session: Session, code: str) -> Product:
        """
        Resolve a scanned code: SKU first, then product id.
        """
        code = code.strip()
        product = self.repo.get_by_sku(session, code) if code else None
        if product is None:
            try:
                product = self.repo.get_by_id(session, uuid.UUID(code))
            except ValueError:
                product = None
        if product is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Product not found: {code}",
            )
        return product

    def list_low_stock(self, session: Session) -> list[Product]:
        return self.repo.list_low_stock(
            session, get_settings().DEFAULT_LOW_STOCK_THRESHOLD
        )

    def list_inventory_logs(
        self,
        session: Session,
        product_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[InventoryLog]:
        self.get_product(session, product_id)
        return self.repo.list_logs_for_product(session, product_id, skip, limit)

    # ----- Writes -----

    def create_product(self, session: Session, payload: ProductCreate) -> Product:
        self._ensure_unique_sku(session, payload.sku)
        product = Product(**payload.model_dump())
        return self.repo.create(session, product)

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product.

        - If sku is changed, enforce uniqueness.
        """
        product = self.get_product(session, product_id)
        changes = payload.model_dump(exclude_unset=True)

        if "sku" in changes:
            self._ensure_unique_sku(session, changes["sku"], exclude_id=product.id)
        if "name" in changes and changes["name"] is None:
            changes.pop("name")

        for field, value in changes.items():
            setattr(product, field, value)

        return self.repo.update(session, product)

    def set_active_many(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
        is_active: bool,
    ) -> int:
        if not product_ids:
            return 0
        return self.repo.set_active_many(session, product_ids, is_active)

    def delete_product(self, session: Session, product_id: uuid.UUID) -> None:
        """
        Delete a product and its image.

        Products that appear on past orders are kept for history; they
        can only be deactivated.
        """
        product = self.get_product(session, product_id)
        if self.repo.count_order_items(session, product_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Product has sales history; deactivate it instead",
            )

        if product.image_url:
            delete_public_url(product.image_url)

        self.repo.delete(session, product)

    def adjust_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity_change: int,
        reason: str,
        actor_id: uuid.UUID,
    ) -> Product:
        """
        Apply a manual stock correction and log it.

        Raises:
            HTTPException(404): unknown product.
            HTTPException(400): the change would take stock below zero.
        """
        self.get_product(session, product_id)

        if quantity_change < 0:
            taken = self.repo.decrement_stock_if_available(
                session, product_id, -quantity_change
            )
            if not taken:
                session.rollback()
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Cannot reduce stock below zero",
                )
        else:
            self.repo.increment_stock(session, product_id, quantity_change)

        new_quantity = self.repo.current_stock(session, product_id) or 0
        self.repo.add_log(
            session,
            InventoryLog(
                product_id=product_id,
                quantity_change=quantity_change,
                previous_quantity=new_quantity - quantity_change,
                new_quantity=new_quantity,
                reason=reason,
                created_by=actor_id,
            ),
        )
        session.commit()

        product = self.get_product(session, product_id)
        session.refresh(product)
        logger.info(
            "Stock of %s adjusted by %+d to %d (%s)",
            product_id,
            quantity_change,
            new_quantity,
            reason,
        )
        return product

    # ----- Image -----

    def set_image(
        self,
        session: Session,
        product_id: uuid.UUID,
        content_type: str,
        file_bytes: bytes,
    ) -> Product:
        """
        Upload or replace the product image.

        - Validates content type + size.
        - Deletes old image from Storage if present.
        - Uploads new image to products/<product_id>/<uuid>.<ext>.
        """
        product = self.get_product(session, product_id)
        ext = self._validate_and_get_ext(content_type, file_bytes)

        if product.image_url:
            delete_public_url(product.image_url)

        path = f"products/{product.id}/{generate_filename(ext)}"
        product.image_url = upload_to_storage(path, file_bytes, content_type)
        return self.repo.update(session, product)
