from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from cafeos.core.money import ZERO_MONEY, to_money
from cafeos.schemas.order import Order
from cafeos.schemas.product import Product
from cafeos.schemas.receipt import Receipt, ReceiptLine

RECEIPT_WIDTH = 40

_PAYMENT_LABELS = {"cash": "Cash", "card": "Card", "e-wallet": "E-Wallet"}
_DISCOUNT_LABELS = {"pwd": "PWD discount", "senior": "Senior discount"}


def build_receipt(order: Order, products: Iterable[Product], *, store_name: str) -> Receipt:
    names = {product.product_id: product.name for product in products if product.product_id}
    lines = [
        ReceiptLine(
            product_id=item.product_id,
            name=names.get(item.product_id, item.product_id),
            quantity=item.quantity,
            unit_price=item.price_at_sale,
            line_total=to_money(item.price_at_sale * item.quantity),
        )
        for item in order.items
    ]
    return Receipt(
        store_name=store_name,
        order_id=order.order_id,
        order_date=order.order_date,
        employee_id=order.employee_id,
        customer_id=order.customer_id,
        lines=lines,
        subtotal=order.subtotal,
        tax=order.tax if order.tax is not None else ZERO_MONEY,
        discount_type=order.discount_type,
        discount_amount=order.discount_amount,
        total_amount=order.total_amount,
        payment_method=order.payment_method,
        amount_tendered=order.amount_tendered,
        change=order.change,
        transaction_reference=order.transaction_reference,
    )


def _money(value: Decimal) -> str:
    return f"{to_money(value):.2f}"


def _row(label: str, value: str) -> str:
    gap = max(1, RECEIPT_WIDTH - len(label) - len(value))
    return f"{label}{' ' * gap}{value}"


def receipt_lines(receipt: Receipt) -> list[str]:
    rows = [
        receipt.store_name.center(RECEIPT_WIDTH).rstrip(),
        f"Order: {receipt.order_id}",
        f"Date: {receipt.order_date.strftime('%Y-%m-%d %H:%M')}",
        f"Cashier: {receipt.employee_id}",
        "-" * RECEIPT_WIDTH,
    ]
    for line in receipt.lines:
        rows.append(_row(f"{line.quantity} x {line.name}", _money(line.line_total)))
        rows.append(f"    @ {_money(line.unit_price)}")

    rows.append("-" * RECEIPT_WIDTH)
    rows.append(_row("Subtotal", _money(receipt.subtotal)))
    rows.append(_row("Tax", _money(receipt.tax)))
    if receipt.discount_type in _DISCOUNT_LABELS:
        rows.append(_row(_DISCOUNT_LABELS[receipt.discount_type], f"-{_money(receipt.discount_amount)}"))
    rows.append(_row("TOTAL", _money(receipt.total_amount)))
    rows.append("-" * RECEIPT_WIDTH)

    rows.append(_row("Payment", _PAYMENT_LABELS.get(receipt.payment_method, receipt.payment_method)))
    if receipt.payment_method == "cash":
        if receipt.amount_tendered is not None:
            rows.append(_row("Tendered", _money(receipt.amount_tendered)))
        if receipt.change is not None:
            rows.append(_row("Change", _money(receipt.change)))
    elif receipt.transaction_reference:
        rows.append(_row("Reference", receipt.transaction_reference))

    rows.append("")
    rows.append("Thank you!".center(RECEIPT_WIDTH).rstrip())
    return rows


def render_receipt_text(receipt: Receipt) -> str:
    return "\n".join(receipt_lines(receipt)) + "\n"


def _escape_pdf_text(value: str) -> str:
    escaped = value.replace("\\", "\\\\")
    escaped = escaped.replace("(", "\\(")
    escaped = escaped.replace(")", "\\)")
    return escaped


def build_receipt_pdf(receipt: Receipt, *, max_lines: int = 48) -> bytes:
    """Single-page PDF with the text receipt set in Courier."""
    content_lines = receipt_lines(receipt)
    if len(content_lines) > max_lines:
        content_lines = content_lines[: max_lines - 1] + ["... (truncated)"]

    stream_commands = ["BT", "/F1 10 Tf", "50 770 Td"]
    first = True
    for line in content_lines:
        if first:
            first = False
        else:
            stream_commands.append("0 -13 Td")
        stream_commands.append(f"({_escape_pdf_text(line)}) Tj")
    stream_commands.append("ET")

    stream = "\n".join(stream_commands).encode("latin-1", errors="replace")

    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        (
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>"
        ),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Courier >>",
        b"<< /Length %d >>\nstream\n%s\nendstream" % (len(stream), stream),
    ]

    pdf = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"
    offsets: list[int] = []
    for index, obj in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += f"{index} 0 obj\n".encode("ascii")
        pdf += obj + b"\nendobj\n"

    xref_offset = len(pdf)
    pdf += f"xref\n0 {len(objects) + 1}\n".encode("ascii")
    pdf += b"0000000000 65535 f \n"
    for offset in offsets:
        pdf += f"{offset:010d} 00000 n \n".encode("ascii")
    pdf += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF"
    ).encode("ascii")
    return pdf
