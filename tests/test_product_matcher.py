# tests/test_product_matcher.py
import uuid
from decimal import Decimal

from app.schemas.cart import CartProduct
from app.services import product_matcher


def _catalog():
    return [
        CartProduct(
            id=uuid.uuid4(),
            name="Iced Coffee",
            price=Decimal("18000"),
            sku="BEV-001",
            category="Drinks",
            stock_quantity=10,
        ),
        CartProduct(
            id=uuid.uuid4(),
            name="Croissant",
            price=Decimal("15000"),
            sku="8991234567890",
            category="Bakery",
            stock_quantity=4,
        ),
    ]


def test_exact_sku_match_is_case_insensitive():
    catalog = _catalog()

    result, match = product_matcher.resolve(catalog, "  bev-001 ")

    assert result.status == "matched"
    assert match is catalog[0]
    assert result.product_id == catalog[0].id


def test_scanned_barcode_matches_sku():
    catalog = _catalog()

    result, match = product_matcher.resolve(catalog, "8991234567890")

    assert result.status == "matched"
    assert match is catalog[1]


def test_product_id_matches():
    catalog = _catalog()

    result, match = product_matcher.resolve(catalog, str(catalog[1].id))

    assert result.status == "matched"
    assert match is catalog[1]


def test_unknown_barcode_is_reported():
    result, match = product_matcher.resolve(_catalog(), "0000000000")

    assert result.status == "barcode_not_found"
    assert match is None


def test_free_text_returns_matches():
    catalog = _catalog()

    result, match = product_matcher.resolve(catalog, "coff")

    assert match is None
    assert result.status == "results"
    assert result.result_ids == [catalog[0].id]


def test_free_text_without_matches():
    result, _ = product_matcher.resolve(_catalog(), "tea")

    assert result.status == "no_results"


def test_search_filters_by_category():
    catalog = _catalog()

    assert product_matcher.search(catalog, "", "Bakery") == [catalog[1]]
    assert product_matcher.search(catalog, "croissant", "Drinks") == []


def test_looks_like_barcode():
    assert product_matcher.looks_like_barcode("12345", min_length=8)
    assert product_matcher.looks_like_barcode("ABCDEFGH", min_length=8)
    assert not product_matcher.looks_like_barcode("latte", min_length=8)
    assert not product_matcher.looks_like_barcode("   ")
