from decimal import Decimal

import pytest

from cafeos.core.deps import build_services
from cafeos.core.errors import IncompatibleUnitsError, InsufficientStockError, OrderValidationError
from cafeos.schemas.inventory import InventoryItem
from cafeos.schemas.order import CheckoutRequest, OrderItem
from cafeos.schemas.product import Product, RecipeItem
from cafeos.services.audit_service import list_audit_events
from cafeos.services.checkout_service import compute_totals


def _stock(services, **fields) -> InventoryItem:
    fields.setdefault("supplier_id", "sup_1")
    return services.ledger.add_item(InventoryItem(**fields))


def _menu_item(services, name: str, price: float, recipe=None) -> Product:
    return services.catalog.add_product(
        Product(name=name, price=price, category_id="cat_coffee", recipe=recipe)
    )


def _cash_request(product: Product, quantity: int = 1, tendered: float = 100, **extra) -> CheckoutRequest:
    return CheckoutRequest(
        items=[OrderItem(product_id=product.product_id, quantity=quantity, price_at_sale=product.price)],
        payment_method="cash",
        amount_tendered=tendered,
        **extra,
    )


def test_totals_without_discount():
    items = [
        OrderItem(product_id="p1", quantity=2, price_at_sale=4.5),
        OrderItem(product_id="p2", quantity=1, price_at_sale=3.25),
    ]
    totals = compute_totals(items, "none", tax_rate=0.08, discount_rate=0.2)
    assert totals.subtotal == Decimal("12.25")
    assert totals.tax == Decimal("0.98")
    assert totals.pre_discount_total == Decimal("13.23")
    assert totals.discount_amount == Decimal("0.00")
    assert totals.total_amount == Decimal("13.23")


def test_senior_discount_applies_to_taxed_total():
    items = [OrderItem(product_id="p1", quantity=1, price_at_sale=100)]
    totals = compute_totals(items, "senior", tax_rate=0.08, discount_rate=0.2)
    assert totals.tax == Decimal("8.00")
    assert totals.pre_discount_total == Decimal("108.00")
    assert totals.discount_amount == Decimal("21.60")
    assert totals.total_amount == Decimal("86.40")


def test_latte_checkout_consumes_milk(services):
    milk = _stock(services, name="Milk", quantity=1000, unit="ml")
    latte = _menu_item(
        services, "Latte", 4.5, recipe=[RecipeItem(inventory_id=milk.inventory_id, quantity=200, unit="ml")]
    )

    order = services.checkout.create_order(_cash_request(latte, quantity=2, tendered=20), actor_id="user_1")

    assert order.status == "completed"
    assert order.customer_id == "guest"
    assert order.employee_id == "user_1"
    assert services.ledger.stock_level(milk.inventory_id) == 600
    assert services.checkout.get_order(order.order_id).total_amount == order.total_amount


def test_pieces_recipe_consumes_fraction_of_bag(services):
    cups = _stock(services, name="Cups", quantity=2, unit="bags", base_unit="pieces", pieces_per_unit=100)
    coffee = _menu_item(
        services, "Drip", 2.0, recipe=[RecipeItem(inventory_id=cups.inventory_id, quantity=1, unit="pieces")]
    )

    services.checkout.create_order(_cash_request(coffee, quantity=3))

    assert services.ledger.stock_level(cups.inventory_id) == 1.97


def test_cash_payment_requires_enough_tender(services):
    product = _menu_item(services, "Big Order", 50)
    with pytest.raises(OrderValidationError):
        services.checkout.create_order(_cash_request(product, tendered=40))
    assert services.checkout.fetch_orders() == []


def test_cash_payment_records_change(services):
    product = _menu_item(services, "Big Order", 50)
    order = services.checkout.create_order(_cash_request(product, tendered=60))
    assert order.total_amount == Decimal("54.00")
    assert order.amount_tendered == Decimal("60.00")
    assert order.change == Decimal("6.00")


def test_tendering_sixty_on_a_fifty_total_gives_ten_change(services):
    product = _menu_item(services, "Catering Tray", 46.30)
    order = services.checkout.create_order(_cash_request(product, tendered=60))
    assert order.subtotal == Decimal("46.30")
    assert order.tax == Decimal("3.70")
    assert order.total_amount == Decimal("50.00")
    assert order.change == Decimal("10.00")


def test_card_payment_requires_reference(services):
    product = _menu_item(services, "Mocha", 5)
    request = CheckoutRequest(
        items=[OrderItem(product_id=product.product_id, quantity=1, price_at_sale=5)],
        payment_method="card",
        transaction_reference="   ",
    )
    with pytest.raises(OrderValidationError):
        services.checkout.create_order(request)

    paid = services.checkout.create_order(request.model_copy(update={"transaction_reference": "TX-123"}))
    assert paid.transaction_reference == "TX-123"
    assert paid.change is None
    assert paid.amount_tendered is None


def test_empty_cart_is_rejected(services):
    request = CheckoutRequest(items=[], payment_method="cash", amount_tendered=10)
    with pytest.raises(OrderValidationError):
        services.checkout.create_order(request)


def test_stock_is_clamped_at_zero(services):
    beans = _stock(services, name="Beans", quantity=0.02, unit="kg")
    espresso = _menu_item(
        services, "Espresso", 3, recipe=[RecipeItem(inventory_id=beans.inventory_id, quantity=18, unit="g")]
    )

    services.checkout.create_order(_cash_request(espresso, quantity=2))

    assert services.ledger.stock_level(beans.inventory_id) == 0


def test_incompatible_units_abort_before_anything_is_written(services):
    milk = _stock(services, name="Milk", quantity=1000, unit="ml")
    beans = _stock(services, name="Beans", quantity=1, unit="kg")
    broken = _menu_item(
        services,
        "Broken Latte",
        4,
        recipe=[
            RecipeItem(inventory_id=milk.inventory_id, quantity=200, unit="ml"),
            RecipeItem(inventory_id=beans.inventory_id, quantity=2, unit="pieces"),
        ],
    )

    with pytest.raises(IncompatibleUnitsError) as exc_info:
        services.checkout.create_order(_cash_request(broken))

    assert exc_info.value.recipe_unit == "pieces"
    assert exc_info.value.inventory_unit == "kg"
    assert services.checkout.fetch_orders() == []
    assert services.ledger.stock_level(milk.inventory_id) == 1000
    assert services.ledger.stock_level(beans.inventory_id) == 1


def test_missing_product_and_ingredient_are_skipped(services):
    milk = _stock(services, name="Milk", quantity=500, unit="ml")
    latte = _menu_item(
        services,
        "Latte",
        4.5,
        recipe=[
            RecipeItem(inventory_id="inv_deleted", quantity=1),
            RecipeItem(inventory_id=milk.inventory_id, quantity=100, unit="ml"),
        ],
    )
    request = CheckoutRequest(
        items=[
            OrderItem(product_id="prod_retired", quantity=1, price_at_sale=3),
            OrderItem(product_id=latte.product_id, quantity=1, price_at_sale=4.5),
        ],
        payment_method="e-wallet",
        transaction_reference="EW-1",
    )

    order = services.checkout.create_order(request)

    assert len(order.items) == 2
    assert services.ledger.stock_level(milk.inventory_id) == 400


def test_strict_mode_rejects_insufficient_stock(store, test_settings):
    strict = build_services(store, test_settings.model_copy(update={"reject_insufficient_stock": True}))
    milk = _stock(strict, name="Milk", quantity=300, unit="ml")
    latte = _menu_item(
        strict, "Latte", 4.5, recipe=[RecipeItem(inventory_id=milk.inventory_id, quantity=200, unit="ml")]
    )

    with pytest.raises(InsufficientStockError) as exc_info:
        strict.checkout.create_order(_cash_request(latte, quantity=2))

    assert exc_info.value.needed == 400
    assert strict.checkout.fetch_orders() == []
    assert strict.ledger.stock_level(milk.inventory_id) == 300


def test_orders_are_listed_newest_first_and_audited(services):
    product = _menu_item(services, "Tea", 2)
    first = services.checkout.create_order(_cash_request(product))
    second = services.checkout.create_order(_cash_request(product))

    orders = services.checkout.fetch_orders()
    assert {o.order_id for o in orders} == {first.order_id, second.order_id}
    assert orders[0].order_date >= orders[1].order_date
    assert len(list_audit_events(services.store, action="order.created")) == 2


def test_stored_order_uses_camel_case_fields(services):
    product = _menu_item(services, "Tea", 2)
    order = services.checkout.create_order(_cash_request(product, customer_id="cust_9"))

    stored = services.store.read_one("orders", order.order_id)
    assert stored["customerID"] == "cust_9"
    assert stored["items"][0]["priceAtSale"] == 2.0
    assert stored["totalAmount"] == 2.16
    assert "transactionReference" not in stored
