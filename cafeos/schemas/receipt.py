from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from cafeos.core.money import Money


class ReceiptLine(BaseModel):
    product_id: str
    name: str
    quantity: int
    unit_price: Money
    line_total: Money


class Receipt(BaseModel):
    store_name: str
    order_id: str
    order_date: datetime
    employee_id: str
    customer_id: str
    lines: list[ReceiptLine]
    subtotal: Money
    tax: Money
    discount_type: str
    discount_amount: Money
    total_amount: Money
    payment_method: str
    amount_tendered: Optional[Money] = None
    change: Optional[Money] = None
    transaction_reference: Optional[str] = None
