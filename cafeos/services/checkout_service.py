import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from cafeos.core.config import Settings
from cafeos.core.errors import IncompatibleUnitsError, InsufficientStockError, OrderValidationError
from cafeos.core.id_utils import generate_prefixed_id
from cafeos.core.money import CONSUMPTION_QUANT, ZERO_MONEY, round_quantity, to_money
from cafeos.core.units import DEFAULT_UNIT, convert_to_inventory_unit, get_inventory_unit
from cafeos.schemas.order import CheckoutRequest, DiscountType, Order, OrderItem, OrderTotals
from cafeos.services.audit_service import log_audit_event
from cafeos.services.catalog_service import Catalog
from cafeos.services.document_store import DocumentStore
from cafeos.services.inventory_service import InventoryLedger

ORDERS_COLLECTION = "orders"

logger = logging.getLogger("cafeos.checkout")


def compute_totals(
    items: Iterable[OrderItem],
    discount_type: DiscountType,
    *,
    tax_rate: float,
    discount_rate: float,
) -> OrderTotals:
    """
    Subtotal, tax on the subtotal, then the PWD/senior discount on the taxed
    amount. Each step is rounded half-up to cents.
    """
    subtotal = ZERO_MONEY
    for item in items:
        subtotal += to_money(item.price_at_sale * item.quantity)

    tax = to_money(subtotal * Decimal(str(tax_rate)))
    pre_discount_total = to_money(subtotal + tax)
    if discount_type == "none":
        discount_amount = ZERO_MONEY
    else:
        discount_amount = to_money(pre_discount_total * Decimal(str(discount_rate)))

    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        pre_discount_total=pre_discount_total,
        discount_amount=discount_amount,
        total_amount=to_money(pre_discount_total - discount_amount),
    )


@dataclass(frozen=True)
class PlannedConsumption:
    inventory_id: str
    product_id: str
    amount: float
    unit: str


class CheckoutService:
    def __init__(
        self,
        store: DocumentStore,
        catalog: Catalog,
        ledger: InventoryLedger,
        settings: Settings,
    ):
        self._store = store
        self._catalog = catalog
        self._ledger = ledger
        self._settings = settings

    def compute_totals(self, items: Iterable[OrderItem], discount_type: DiscountType = "none") -> OrderTotals:
        return compute_totals(
            items,
            discount_type,
            tax_rate=self._settings.tax_rate,
            discount_rate=self._settings.discount_rate,
        )

    def _validate(self, request: CheckoutRequest, totals: OrderTotals) -> Decimal | None:
        if not request.items:
            raise OrderValidationError("Cart is empty")
        for item in request.items:
            if item.quantity <= 0:
                raise OrderValidationError(f"Quantity for {item.product_id} must be positive")

        if request.payment_method == "cash":
            if request.amount_tendered is None or request.amount_tendered < totals.total_amount:
                raise OrderValidationError("Amount tendered is less than the total amount")
            return to_money(request.amount_tendered - totals.total_amount)

        if not request.transaction_reference:
            raise OrderValidationError(
                f"A transaction reference is required for {request.payment_method} payments"
            )
        return None

    def plan_consumption(self, items: Iterable[OrderItem]) -> list[PlannedConsumption]:
        """
        Work out every stock decrement an order needs, without writing anything.

        Products without a recipe and ingredients that no longer exist are
        skipped. A unit that cannot be converted raises IncompatibleUnitsError.
        """
        plan: list[PlannedConsumption] = []
        for line in items:
            product = self._catalog.get_product(line.product_id)
            if product is None:
                logger.warning(
                    json.dumps(
                        {
                            "event": "consumption_skipped",
                            "reason": "product_missing",
                            "product_id": line.product_id,
                        }
                    )
                )
                continue
            if not product.recipe:
                continue

            for recipe_item in product.recipe:
                inventory_item = self._ledger.refresh(recipe_item.inventory_id)
                if inventory_item is None:
                    logger.warning(
                        json.dumps(
                            {
                                "event": "consumption_skipped",
                                "reason": "inventory_item_missing",
                                "product_id": product.product_id,
                                "inventory_id": recipe_item.inventory_id,
                            }
                        )
                    )
                    continue

                per_unit = convert_to_inventory_unit(recipe_item.quantity, recipe_item.unit, inventory_item)
                if per_unit is None:
                    raise IncompatibleUnitsError(
                        recipe_item.unit or DEFAULT_UNIT,
                        get_inventory_unit(inventory_item),
                        inventory_item.inventory_id,
                    )

                plan.append(
                    PlannedConsumption(
                        inventory_id=inventory_item.inventory_id,
                        product_id=product.product_id,
                        amount=round_quantity(per_unit * line.quantity, CONSUMPTION_QUANT),
                        unit=get_inventory_unit(inventory_item),
                    )
                )
        return plan

    def _check_stock(self, plan: list[PlannedConsumption]) -> None:
        needed: dict[str, float] = {}
        for step in plan:
            needed[step.inventory_id] = needed.get(step.inventory_id, 0.0) + step.amount

        for inventory_id, amount in needed.items():
            item = self._ledger.get(inventory_id)
            if item is None:
                continue
            if item.quantity < round_quantity(amount, CONSUMPTION_QUANT):
                raise InsufficientStockError(
                    inventory_id=inventory_id,
                    name=item.name,
                    available=item.quantity,
                    needed=round_quantity(amount, CONSUMPTION_QUANT),
                    unit=get_inventory_unit(item),
                )

    def create_order(self, request: CheckoutRequest, *, actor_id: str | None = None) -> Order:
        """
        Record a sale and consume its ingredients.

        Nothing is written until validation and consumption planning have
        both succeeded, so a rejected checkout leaves no order and no stock
        change behind.
        """
        totals = self.compute_totals(request.items, request.discount_type)
        change = self._validate(request, totals)

        plan = self.plan_consumption(request.items)
        if self._settings.reject_insufficient_stock:
            self._check_stock(plan)

        cash = request.payment_method == "cash"
        order = Order(
            order_id=generate_prefixed_id("ord"),
            order_date=datetime.now(timezone.utc),
            customer_id=request.customer_id or "guest",
            employee_id=actor_id or request.employee_id or "unknown",
            items=request.items,
            subtotal=totals.subtotal,
            tax=totals.tax,
            discount_type=request.discount_type,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
            payment_method=request.payment_method,
            transaction_reference=None if cash else request.transaction_reference,
            amount_tendered=request.amount_tendered if cash else None,
            change=change,
            status="completed",
        )
        self._store.write_one(ORDERS_COLLECTION, order.order_id, order.to_record())
        log_audit_event(
            self._store,
            action="order.created",
            target_type="order",
            target_id=order.order_id,
            actor_id=actor_id,
            metadata={"total_amount": str(order.total_amount), "items": len(order.items)},
        )

        for step in plan:
            self._ledger.adjust(step.inventory_id, -step.amount)

        logger.info(
            json.dumps(
                {
                    "event": "order_created",
                    "order_id": order.order_id,
                    "total_amount": str(order.total_amount),
                    "consumptions": len(plan),
                }
            )
        )
        return order

    def fetch_orders(self) -> list[Order]:
        records = self._store.read_all(ORDERS_COLLECTION)
        orders = [Order.from_record(data, key) for key, data in records.items()]
        return sorted(orders, key=lambda order: order.order_date, reverse=True)

    def get_order(self, order_id: str) -> Order | None:
        data = self._store.read_one(ORDERS_COLLECTION, order_id)
        if data is None:
            return None
        return Order.from_record(data, order_id)
