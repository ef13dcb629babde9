from datetime import datetime
from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cafeos.core.money import Money
from cafeos.schemas.common import PaginationMeta, StoredModel

DiscountType = Literal["none", "pwd", "senior"]
PaymentMethod = Literal["cash", "card", "e-wallet"]
OrderStatus = Literal["pending", "completed", "cancelled"]


class OrderItem(BaseModel):
    product_id: str = Field(alias="productID", min_length=1)
    quantity: int = Field(gt=0)
    price_at_sale: Money = Field(ge=0, alias="priceAtSale")

    model_config = ConfigDict(populate_by_name=True)


class Order(StoredModel):
    id_field: ClassVar[str] = "orderID"

    order_id: str = Field(alias="orderID")
    order_date: datetime = Field(alias="orderDate")
    customer_id: str = Field(default="guest", alias="customerID")
    employee_id: str = Field(default="unknown", alias="employeeID")
    items: list[OrderItem]

    subtotal: Money
    tax: Optional[Money] = None
    discount_type: DiscountType = Field(default="none", alias="discountType")
    discount_amount: Money = Field(alias="discountAmount")
    total_amount: Money = Field(alias="totalAmount")

    payment_method: PaymentMethod = Field(alias="paymentMethod")
    transaction_reference: Optional[str] = Field(default=None, alias="transactionReference")
    amount_tendered: Optional[Money] = Field(default=None, alias="amountTendered")
    change: Optional[Money] = None

    status: OrderStatus = "completed"


class CheckoutRequest(BaseModel):
    items: list[OrderItem]
    discount_type: DiscountType = Field(default="none", alias="discountType")
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    transaction_reference: Optional[str] = Field(default=None, alias="transactionReference")
    amount_tendered: Optional[Money] = Field(default=None, alias="amountTendered")
    customer_id: Optional[str] = Field(default=None, alias="customerID")
    employee_id: Optional[str] = Field(default=None, alias="employeeID")

    @field_validator("transaction_reference", "customer_id", "employee_id")
    @classmethod
    def _normalize_optional_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "items": [{"productID": "prod_latte", "quantity": 2, "priceAtSale": 4.5}],
                "discountType": "none",
                "paymentMethod": "cash",
                "amountTendered": 20,
            }
        },
    )


class QuoteRequest(BaseModel):
    items: list[OrderItem]
    discount_type: DiscountType = Field(default="none", alias="discountType")

    model_config = ConfigDict(populate_by_name=True)


class OrderTotals(BaseModel):
    subtotal: Money
    tax: Money
    pre_discount_total: Money = Field(alias="preDiscountTotal")
    discount_amount: Money = Field(alias="discountAmount")
    total_amount: Money = Field(alias="totalAmount")

    model_config = ConfigDict(populate_by_name=True)


class OrderListOut(BaseModel):
    pagination: PaginationMeta
    items: list[Order]
