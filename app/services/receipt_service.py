# app/services/receipt_service.py
from decimal import Decimal, ROUND_HALF_UP

from app.core.config import get_settings
from app.schemas.order import OrderWithItemsRead
from app.schemas.receipt import ReceiptLine, ReceiptRead
from app.schemas.setting import BusinessInfo

RECEIPT_WIDTH = 40

PAYMENT_LABELS: dict[str, str] = {
    "cash": "Cash",
    "bank_transfer": "Bank Transfer",
    "card": "Card",
    "mobile_payment": "Mobile Payment",
    "gift_card": "Gift Card",
}

FOOTER_LINES = ("Thank you for your purchase!", "Please come again")


def format_currency(amount: Decimal, prefix: str | None = None) -> str:
    """
    Whole currency units with '.' as thousands separator: Rp. 25.000
    """
    if prefix is None:
        prefix = get_settings().CURRENCY_PREFIX
    rounded = Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    grouped = f"{abs(int(rounded)):,}".replace(",", ".")
    return f"{sign}{prefix}{grouped}"


def receipt_number(order_id) -> str:
    return str(order_id)[:8]


def _row(left: str, right: str, width: int = RECEIPT_WIDTH) -> str:
    gap = max(width - len(left) - len(right), 1)
    return f"{left}{' ' * gap}{right}"


def build_receipt(
    order: OrderWithItemsRead,
    business: BusinessInfo,
    cashier_name: str | None = None,
) -> ReceiptRead:
    """
    Build the receipt for a stored order.

    Pure: the same order snapshot always produces the same receipt.
    """
    details = order.payment_details
    receipt = ReceiptRead(
        order_id=order.id,
        receipt_number=receipt_number(order.id),
        date=order.created_at,
        business=business,
        cashier_name=cashier_name,
        customer=details.customer_info,
        items=[
            ReceiptLine(
                name=item.product_name,
                price=item.product_price,
                quantity=item.quantity,
                total=item.total,
            )
            for item in order.items
        ],
        subtotal=order.subtotal,
        tax=order.tax,
        total=order.total,
        payment_method=order.payment_method,
        payment_label=PAYMENT_LABELS.get(order.payment_method, order.payment_method),
        amount_tendered=details.amount_tendered if order.payment_method == "cash" else None,
        change_due=details.change_due if order.payment_method == "cash" else None,
        bank_reference=details.bank_reference,
    )
    receipt.text = render_text(receipt)
    return receipt


def render_text(receipt: ReceiptRead, width: int = RECEIPT_WIDTH) -> str:
    """
    Fixed-width plain text layout for thermal printers and export.
    """
    rule = "-" * width
    lines: list[str] = []

    header = [
        receipt.business.app_name,
        receipt.business.app_address,
        f"Tel: {receipt.business.app_phone}",
    ]
    if receipt.business.app_email:
        header.append(f"Email: {receipt.business.app_email}")
    header.append(receipt.date.strftime("%d/%m/%Y %H:%M"))
    header.append(f"Receipt #{receipt.receipt_number}")
    if receipt.cashier_name:
        header.append(f"Cashier: {receipt.cashier_name}")
    if receipt.customer is not None:
        if receipt.customer.name:
            header.append(f"Customer: {receipt.customer.name}")
        if receipt.customer.phone:
            header.append(f"Phone: {receipt.customer.phone}")
    lines.extend(h.center(width).rstrip() for h in header)
    lines.append(rule)

    for item in receipt.items:
        lines.append(item.name)
        lines.append(
            _row(
                f"  {item.quantity} x {format_currency(item.price)}",
                format_currency(item.total),
                width,
            )
        )
    lines.append(rule)

    lines.append(_row("Total", format_currency(receipt.total), width))
    lines.append("")
    lines.append("Payment Method")
    lines.append(_row(receipt.payment_label, format_currency(receipt.total), width))
    if receipt.amount_tendered:
        lines.append(_row("Amount Tendered", format_currency(receipt.amount_tendered), width))
        lines.append(_row("Change", format_currency(receipt.change_due or 0), width))
    if receipt.bank_reference:
        lines.append(_row("Reference", receipt.bank_reference, width))
    lines.append(rule)

    lines.extend(f.center(width).rstrip() for f in FOOTER_LINES)
    return "\n".join(lines) + "\n"
