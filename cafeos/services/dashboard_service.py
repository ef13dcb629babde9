from collections.abc import Sequence
from datetime import date

from cafeos.core.money import ZERO_MONEY, to_money
from cafeos.schemas.dashboard import DashboardSummaryOut, RecentOrderOut
from cafeos.schemas.inventory import InventoryItem
from cafeos.schemas.order import Order

RECENT_ORDERS_LIMIT = 10


def get_summary(
    orders: Sequence[Order],
    inventory: Sequence[InventoryItem],
    *,
    low_stock_threshold: float,
    product_count: int = 0,
    start_date: date | None = None,
    end_date: date | None = None,
) -> DashboardSummaryOut:
    selected = [
        order
        for order in orders
        if (start_date is None or order.order_date.date() >= start_date)
        and (end_date is None or order.order_date.date() <= end_date)
    ]
    selected.sort(key=lambda order: order.order_date, reverse=True)

    revenue = ZERO_MONEY
    for order in selected:
        revenue += order.total_amount
    revenue = to_money(revenue)
    order_count = len(selected)
    average = to_money(revenue / order_count) if order_count else ZERO_MONEY

    low_stock_count = sum(
        1
        for item in inventory
        if item.quantity
        < (item.reorder_point if item.reorder_point is not None else low_stock_threshold)
    )

    return DashboardSummaryOut(
        total_revenue=float(revenue),
        order_count=order_count,
        average_order_value=float(average),
        product_count=product_count,
        low_stock_count=low_stock_count,
        recent_orders=[
            RecentOrderOut(
                order_id=order.order_id,
                total_amount=float(order.total_amount),
                order_date=order.order_date,
            )
            for order in selected[:RECENT_ORDERS_LIMIT]
        ],
        start_date=start_date,
        end_date=end_date,
    )
