from datetime import datetime, timezone

from cafeos.schemas.order import Order, OrderItem
from cafeos.schemas.product import Product
from cafeos.services.receipt_service import build_receipt, build_receipt_pdf, render_receipt_text


def _order(**overrides) -> Order:
    fields = {
        "order_id": "ord_abc",
        "order_date": datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc),
        "employee_id": "user_1",
        "items": [
            OrderItem(product_id="prod_latte", quantity=2, price_at_sale=4.5),
            OrderItem(product_id="prod_gone", quantity=1, price_at_sale=3),
        ],
        "subtotal": 12,
        "tax": 0.96,
        "discount_type": "senior",
        "discount_amount": 2.59,
        "total_amount": 10.37,
        "payment_method": "cash",
        "amount_tendered": 20,
        "change": 9.63,
    }
    fields.update(overrides)
    return Order(**fields)


def _products() -> list[Product]:
    return [Product(product_id="prod_latte", name="Latte", price=4.5, category_id="cat_coffee")]


def test_build_receipt_names_lines_and_falls_back_to_product_id():
    receipt = build_receipt(_order(), _products(), store_name="CafeOS")

    assert [line.name for line in receipt.lines] == ["Latte", "prod_gone"]
    assert float(receipt.lines[0].line_total) == 9.0
    assert receipt.store_name == "CafeOS"


def test_text_receipt_for_cash_order():
    text = render_receipt_text(build_receipt(_order(), _products(), store_name="CafeOS"))

    assert "Order: ord_abc" in text
    assert "2 x Latte" in text
    assert "Senior discount" in text
    assert "-2.59" in text
    assert "TOTAL" in text and "10.37" in text
    assert "Change" in text and "9.63" in text


def test_text_receipt_for_card_order_shows_reference():
    order = _order(
        discount_type="none",
        discount_amount=0,
        total_amount=12.96,
        payment_method="card",
        amount_tendered=None,
        change=None,
        transaction_reference="TX-77",
    )
    text = render_receipt_text(build_receipt(order, _products(), store_name="CafeOS"))

    assert "Reference" in text and "TX-77" in text
    assert "discount" not in text
    assert "Change" not in text


def test_pdf_receipt_is_a_single_page_pdf():
    pdf = build_receipt_pdf(build_receipt(_order(), _products(), store_name="CafeOS (Main)"))

    assert pdf.startswith(b"%PDF-1.4")
    assert pdf.rstrip().endswith(b"%%EOF")
    assert b"/Count 1" in pdf
    assert b"CafeOS \\(Main\\)" in pdf
