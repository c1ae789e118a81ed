# app/routers/products.py
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from sqlmodel import Session

from app.core.auth import require_admin, require_staff
from app.database import get_session
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    InventoryLogRead,
    ProductBulkStatusUpdate,
    ProductCreate,
    ProductPage,
    ProductRead,
    ProductSortColumn,
    ProductUpdate,
    SortDirection,
    StockAdjustment,
)
from app.services.catalog_cache import catalog_cache
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo)


# -------- Staff endpoints --------


@router.get(
    "",
    response_model=ProductPage,
    dependencies=[Depends(require_staff)],
)
def list_products(
    session: Session = Depends(get_session),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    search: str | None = None,
    category: str | None = None,
    is_active: bool | None = None,
    sort_by: ProductSortColumn = "name",
    sort_direction: SortDirection = "asc",
):
    """
    Filtered, sorted and paginated product list.

    - `search` matches name or SKU (case-insensitive).
    - `is_active` omitted => active and inactive products.
    """
    return service.list_products(
        session,
        page=page,
        page_size=page_size,
        search=search,
        category=category,
        is_active=is_active,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )


@router.get(
    "/categories",
    response_model=list[str],
    dependencies=[Depends(require_staff)],
)
def list_categories(session: Session = Depends(get_session)):
    return service.list_categories(session)


@router.get(
    "/low-stock",
    response_model=list[ProductRead],
    dependencies=[Depends(require_staff)],
)
def list_low_stock(session: Session = Depends(get_session)):
    """
    Products below their low-stock threshold, lowest stock first.
    """
    return service.list_low_stock(session)


@router.get(
    "/lookup/{code}",
    response_model=ProductRead,
    dependencies=[Depends(require_staff)],
)
def lookup_product(
    code: str,
    session: Session = Depends(get_session),
):
    """
    Resolve a scanned code: SKU first, then product id.
    """
    return service.lookup(session, code)


@router.get(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_staff)],
)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_product(session, product_id)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    product = service.create_product(session, payload)
    catalog_cache.invalidate()
    return product


@router.patch(
    "/bulk-status",
    dependencies=[Depends(require_admin)],
)
def bulk_update_status(
    payload: ProductBulkStatusUpdate,
    session: Session = Depends(get_session),
) -> dict[str, int]:
    """
    Activate or deactivate many products at once (admin only).
    """
    updated = service.set_active_many(session, payload.product_ids, payload.is_active)
    catalog_cache.invalidate()
    return {"updated": updated}


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    product = service.update_product(session, product_id, payload)
    catalog_cache.invalidate()
    return product


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a product and its image (admin only).

    Products with sales history answer 409; deactivate them instead.
    """
    service.delete_product(session, product_id)
    catalog_cache.invalidate()
    return None


@router.post("/{product_id}/stock", response_model=ProductRead)
def adjust_stock(
    product_id: uuid.UUID,
    payload: StockAdjustment,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """
    Add or remove stock with a reason (admin only).

    The register's cached stock level is updated before the write and
    restored if the write is rejected.
    """
    return catalog_cache.adjust_stock(
        session,
        service,
        product_id,
        payload.quantity_change,
        payload.reason,
        admin.id,
    )


@router.get(
    "/{product_id}/stock/logs",
    response_model=list[InventoryLogRead],
    dependencies=[Depends(require_admin)],
)
def list_stock_logs(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """
    Stock movements for a product, newest first.
    """
    return service.list_inventory_logs(session, product_id, skip, limit)


@router.post(
    "/{product_id}/image",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
    summary="Upload or replace the product image",
)
def upload_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """
    Upload a new image for the product.

    - Accepts JPEG, PNG, WEBP.
    - Overwrites any previous image.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    return service.set_image(
        session=session,
        product_id=product_id,
        content_type=file.content_type,
        file_bytes=file_bytes,
    )
