# app/services/product_matcher.py
"""
Resolve what the cashier typed (or a barcode scanner sent) to catalog
products.

Scanners type the code very fast and finish with Enter. We cannot see
keystroke timing on the server, so a submitted input is treated as a
scan when it is long (>= SCAN_MIN_LENGTH) or purely numeric.

This is a local filter over the cached catalog: there is nothing to
retry when it finds no match.
"""
import uuid
from typing import Iterable, Literal, Protocol

from sqlmodel import SQLModel

from app.core.config import get_settings

MatchStatus = Literal["matched", "barcode_not_found", "no_results", "results"]


class Matchable(Protocol):
    id: uuid.UUID
    name: str
    sku: str | None
    category: str | None


class MatchResult(SQLModel):
    """
    Outcome of resolving an input.

      matched           -> `product_id` is set; caller adds it and clears the query
      barcode_not_found -> input looked like a barcode, no SKU matched
      no_results        -> free-text search matched nothing
      results           -> free-text search matched `result_ids`
    """

    status: MatchStatus
    query: str
    product_id: uuid.UUID | None = None
    result_ids: list[uuid.UUID] = []


def looks_like_barcode(text: str, min_length: int | None = None) -> bool:
    text = text.strip()
    if not text:
        return False
    if min_length is None:
        min_length = get_settings().SCAN_MIN_LENGTH
    return len(text) >= min_length or text.isdigit()


def search(
    products: Iterable[Matchable],
    query: str,
    category: str | None = None,
) -> list:
    """
    Case-insensitive substring match on name and SKU.

    An empty query returns every product (still filtered by category).
    """
    needle = query.strip().lower()
    matches = []
    for product in products:
        if category and product.category != category:
            continue
        if not needle:
            matches.append(product)
            continue
        if needle in product.name.lower() or (product.sku and needle in product.sku.lower()):
            matches.append(product)
    return matches


def find_exact(products: Iterable[Matchable], code: str):
    """
    Exact SKU match (case-insensitive), then exact product id match.
    """
    code = code.strip()
    if not code:
        return None

    candidates = list(products)
    lowered = code.lower()
    for product in candidates:
        if product.sku and product.sku.lower() == lowered:
            return product

    try:
        as_id = uuid.UUID(code)
    except ValueError:
        return None
    for product in candidates:
        if product.id == as_id:
            return product
    return None


def resolve(products: Iterable[Matchable], text: str) -> tuple[MatchResult, object | None]:
    """
    Resolve a submitted input (Enter pressed).

    Returns:
        (MatchResult, matched product or None)
    """
    candidates = list(products)
    query = text.strip()

    product = find_exact(candidates, query)
    if product is not None:
        return MatchResult(status="matched", query=query, product_id=product.id), product

    if looks_like_barcode(query):
        return MatchResult(status="barcode_not_found", query=query), None

    results = search(candidates, query)
    if not results:
        return MatchResult(status="no_results", query=query), None

    return (
        MatchResult(
            status="results",
            query=query,
            result_ids=[p.id for p in results],
        ),
        None,
    )
