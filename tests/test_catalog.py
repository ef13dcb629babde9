import pytest

from cafeos.core.deps import build_services
from cafeos.core.errors import NotFoundError
from cafeos.schemas.inventory import InventoryItem
from cafeos.schemas.product import Category, Product, RecipeItem


def _stock(services, **fields) -> InventoryItem:
    fields.setdefault("supplier_id", "sup_1")
    return services.ledger.add_item(InventoryItem(**fields))


def _product(name: str = "Latte", recipe=None, **overrides) -> Product:
    fields = {"name": name, "price": 4.5, "category_id": "cat_coffee", "recipe": recipe}
    fields.update(overrides)
    return Product(**fields)


def test_product_without_recipe_is_always_available(services):
    product = services.catalog.add_product(_product("Bottled Water"))
    assert services.catalog.is_available(product)

    empty = services.catalog.add_product(_product("Tap Water"), recipe=[])
    assert services.catalog.is_available(empty)


def test_available_when_stock_covers_one_unit(services):
    milk = _stock(services, name="Milk", quantity=1, unit="l")
    latte = services.catalog.add_product(
        _product(recipe=[RecipeItem(inventory_id=milk.inventory_id, quantity=200, unit="ml")])
    )
    assert services.catalog.is_available(latte)

    services.ledger.set_absolute(milk.inventory_id, 0.1)
    assert not services.catalog.is_available(latte)


def test_pieces_recipe_against_bags_stock(services):
    cups = _stock(
        services,
        name="Cups",
        quantity=0.01,
        unit="bags",
        base_unit="pieces",
        pieces_per_unit=100,
    )
    coffee = services.catalog.add_product(
        _product("Drip", recipe=[RecipeItem(inventory_id=cups.inventory_id, quantity=1, unit="pieces")])
    )
    assert services.catalog.is_available(coffee)

    services.ledger.set_absolute(cups.inventory_id, 0)
    assert not services.catalog.is_available(coffee)


def test_missing_ingredient_makes_product_unavailable(services):
    product = services.catalog.add_product(
        _product(recipe=[RecipeItem(inventory_id="inv_gone", quantity=1)])
    )
    assert not services.catalog.is_available(product)


def test_incompatible_units_make_product_unavailable(services):
    syrup = _stock(services, name="Vanilla Syrup", quantity=5000, unit="ml")
    product = services.catalog.add_product(
        _product("Vanilla Latte", recipe=[RecipeItem(inventory_id=syrup.inventory_id, quantity=2, unit="g")])
    )
    assert not services.catalog.is_available(product)


def test_add_product_keeps_explicit_recipe(services):
    recipe = [RecipeItem(inventory_id="inv_beans", quantity=18, unit="g")]
    product = services.catalog.add_product(_product("Espresso"), recipe=recipe)

    stored = services.store.read_one("products", product.product_id)
    assert product.product_id.startswith("prod_")
    assert stored["recipe"] == [{"inventoryID": "inv_beans", "quantity": 18.0, "unit": "g"}]
    assert stored["price"] == 4.5


def test_update_product_replaces_recipe_wholesale(services):
    product = services.catalog.add_product(
        _product(
            recipe=[
                RecipeItem(inventory_id="inv_milk", quantity=200, unit="ml"),
                RecipeItem(inventory_id="inv_beans", quantity=18, unit="g"),
            ]
        )
    )
    updated = services.catalog.update_product(
        product, recipe=[RecipeItem(inventory_id="inv_oat", quantity=180, unit="ml")]
    )

    assert [item.inventory_id for item in updated.recipe] == ["inv_oat"]
    reloaded = services.catalog.get_product(product.product_id)
    assert [item.inventory_id for item in reloaded.recipe] == ["inv_oat"]


def test_update_unknown_product_raises(services):
    with pytest.raises(NotFoundError):
        services.catalog.update_product(_product(product_id="prod_missing"))


def test_delete_product(services):
    product = services.catalog.add_product(_product())
    services.catalog.delete_product(product.product_id)
    assert services.catalog.get_product(product.product_id) is None
    with pytest.raises(NotFoundError):
        services.catalog.delete_product(product.product_id)


def test_categories(services):
    category = services.catalog.add_category(Category(name="  Pastries "))
    assert category.category_id.startswith("cat_")
    assert [c.name for c in services.catalog.fetch_categories()] == ["Pastries"]


def test_available_products_filters_and_flags(services):
    beans = _stock(services, name="Beans", quantity=0, unit="kg")
    services.catalog.add_product(
        _product("Espresso", recipe=[RecipeItem(inventory_id=beans.inventory_id, quantity=18, unit="g")])
    )
    services.catalog.add_product(_product("Croissant", category_id="cat_pastry"))

    listing = services.catalog.available_products()
    assert {entry.product.name: entry.available for entry in listing} == {
        "Espresso": False,
        "Croissant": True,
    }
    assert [e.product.name for e in services.catalog.available_products(category_id="cat_pastry")] == [
        "Croissant"
    ]
    assert [e.product.name for e in services.catalog.available_products(search="ESP")] == ["Espresso"]


def test_availability_sees_stock_changed_by_another_terminal(store, test_settings):
    counter = build_services(store, test_settings)
    back_office = build_services(store, test_settings)
    milk = _stock(counter, name="Milk", quantity=1000, unit="ml")
    latte = counter.catalog.add_product(
        _product(recipe=[RecipeItem(inventory_id=milk.inventory_id, quantity=200, unit="ml")])
    )
    assert counter.catalog.is_available(latte)

    back_office.ledger.set_absolute(milk.inventory_id, 50)
    assert counter.catalog.is_available(latte) is False

    back_office.ledger.delete(milk.inventory_id)
    assert counter.catalog.is_available(latte) is False
