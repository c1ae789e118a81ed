# tests/test_payment_service.py
from decimal import Decimal

from app.schemas.payment import CustomerInfo
from app.services.payment_service import PaymentService

service = PaymentService()


def test_cash_with_enough_tendered_is_valid():
    result = service.validate("cash", Decimal("25000"), Decimal("30000"))

    assert result.is_valid
    assert result.change_due == Decimal("5000")
    assert result.error is None


def test_cash_exact_amount_has_no_change():
    result = service.validate("cash", Decimal("25000"), Decimal("25000"))

    assert result.is_valid
    assert result.change_due == Decimal("0")


def test_cash_short_is_invalid():
    result = service.validate("cash", Decimal("25000"), Decimal("20000"))

    assert not result.is_valid
    assert result.change_due == Decimal("0")
    assert result.error == "Amount tendered is less than the total"


def test_cash_without_amount_is_invalid():
    assert not service.validate("cash", Decimal("1"), None).is_valid


def test_bank_transfer_is_always_valid():
    result = service.validate("bank_transfer", Decimal("25000"))

    assert result.is_valid
    assert result.change_due == Decimal("0")


def test_methods_not_offered_are_rejected():
    for method in ("card", "mobile_payment", "gift_card"):
        result = service.validate(method, Decimal("25000"), Decimal("25000"))
        assert not result.is_valid
        assert result.error == "Payment method not available"


def test_cash_details_record_tender_and_change():
    details = service.build_details("cash", Decimal("25000"), Decimal("30000"))

    assert details.amount_tendered == Decimal("30000")
    assert details.change_due == Decimal("5000")
    assert details.bank_reference is None


def test_bank_transfer_details_carry_reference():
    details = service.build_details("bank_transfer", Decimal("25000"))

    assert details.bank_reference.startswith("ORDER-")
    assert details.amount_tendered is None


def test_empty_customer_info_is_dropped():
    details = service.build_details(
        "cash", Decimal("1"), Decimal("1"), CustomerInfo(name="  ", phone=None)
    )
    assert details.customer_info is None

    details = service.build_details(
        "cash", Decimal("1"), Decimal("1"), CustomerInfo(name="Dewi")
    )
    assert details.customer_info.name == "Dewi"
