"""
Unit conversion for recipes and stock.

Recipes are written in whatever unit suits the bar (tbsp, shots, pieces) while
stock is counted in whatever unit suits purchasing (bags, liters, kg). Every
known unit belongs to exactly one category and carries a factor to that
category's base unit: pieces (count), ml (volume), g (weight).

Count units all have factor 1. Container sizes ("100 pieces per bag") are a
per-item fact and come from `InventoryItem.pieces_per_unit`, never from this
table.

Expected failures (unknown or incompatible units) return None. Non-numeric
quantities raise TypeError.
"""

from dataclasses import dataclass
from enum import Enum
from numbers import Real

from cafeos.core.money import round_quantity
from cafeos.schemas.inventory import InventoryItem

DEFAULT_UNIT = "units"


class UnitCategory(str, Enum):
    COUNT = "count"
    VOLUME = "volume"
    WEIGHT = "weight"


BASE_UNITS: dict[UnitCategory, str] = {
    UnitCategory.COUNT: "pieces",
    UnitCategory.VOLUME: "ml",
    UnitCategory.WEIGHT: "g",
}


@dataclass(frozen=True)
class UnitDefinition:
    category: UnitCategory
    to_base: float


UNITS: dict[str, UnitDefinition] = {
    # count
    "pieces": UnitDefinition(UnitCategory.COUNT, 1),
    "units": UnitDefinition(UnitCategory.COUNT, 1),
    "boxes": UnitDefinition(UnitCategory.COUNT, 1),
    "bags": UnitDefinition(UnitCategory.COUNT, 1),
    "scoops": UnitDefinition(UnitCategory.COUNT, 1),
    "shots": UnitDefinition(UnitCategory.COUNT, 1),
    # volume
    "ml": UnitDefinition(UnitCategory.VOLUME, 1),
    "l": UnitDefinition(UnitCategory.VOLUME, 1000),
    "liters": UnitDefinition(UnitCategory.VOLUME, 1000),
    "cups": UnitDefinition(UnitCategory.VOLUME, 236.588),
    "fl oz": UnitDefinition(UnitCategory.VOLUME, 29.5735),
    "tbsp": UnitDefinition(UnitCategory.VOLUME, 14.7868),
    "tsp": UnitDefinition(UnitCategory.VOLUME, 4.92892),
    "oz": UnitDefinition(UnitCategory.VOLUME, 29.5735),  # fluid ounces
    # weight
    "g": UnitDefinition(UnitCategory.WEIGHT, 1),
    "kg": UnitDefinition(UnitCategory.WEIGHT, 1000),
    "lbs": UnitDefinition(UnitCategory.WEIGHT, 453.592),
    "pounds": UnitDefinition(UnitCategory.WEIGHT, 453.592),
}


def _normalize(unit: str | None) -> str:
    return (unit or "").strip().lower()


def _require_number(value) -> None:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"quantity must be a real number, got {type(value).__name__}")


def get_unit_definition(unit: str | None) -> UnitDefinition | None:
    return UNITS.get(_normalize(unit))


def get_unit_category(unit: str | None) -> UnitCategory | None:
    definition = get_unit_definition(unit)
    return definition.category if definition else None


def are_units_compatible(unit_a: str | None, unit_b: str | None) -> bool:
    category_a = get_unit_category(unit_a)
    return category_a is not None and category_a == get_unit_category(unit_b)


def convert_unit(value: float, from_unit: str | None, to_unit: str | None) -> float | None:
    """Convert between two units of one category; None if that is impossible."""
    _require_number(value)
    source = _normalize(from_unit)
    target = _normalize(to_unit)
    if not source or not target:
        return None
    if source == target:
        return value
    if not are_units_compatible(source, target):
        return None
    return value * UNITS[source].to_base / UNITS[target].to_base


def get_inventory_unit(item: InventoryItem) -> str:
    return item.unit or DEFAULT_UNIT


def get_base_unit(item: InventoryItem) -> str:
    return item.base_unit or item.unit or DEFAULT_UNIT


def convert_to_inventory_unit(
    recipe_quantity: float,
    recipe_unit: str | None,
    item: InventoryItem,
) -> float | None:
    """
    Express a recipe requirement in the item's stocking unit.

    Count units are bridged through `pieces_per_unit` when the item declares
    one: pieces of a bag become a fraction of a bag and vice versa.
    """
    _require_number(recipe_quantity)
    recipe = _normalize(recipe_unit) or DEFAULT_UNIT
    stocking = _normalize(get_inventory_unit(item))

    if recipe == stocking:
        return recipe_quantity
    if not are_units_compatible(recipe, stocking):
        return None

    if get_unit_category(recipe) is UnitCategory.COUNT and item.pieces_per_unit:
        base = _normalize(get_base_unit(item))
        per_container = item.pieces_per_unit
        if recipe == base and stocking != base:
            return recipe_quantity / per_container
        if recipe != base and stocking == base:
            return recipe_quantity * per_container
        recipe_in_base = recipe_quantity if recipe == base else recipe_quantity * per_container
        stocking_in_base = 1 if stocking == base else per_container
        return recipe_in_base / stocking_in_base

    return convert_unit(recipe_quantity, recipe, stocking)


def get_total_base_quantity(item: InventoryItem) -> float:
    quantity = item.quantity or 0
    unit = get_inventory_unit(item)
    base = get_base_unit(item)

    if _normalize(unit) == _normalize(base):
        base_quantity = quantity
    elif get_unit_category(unit) is UnitCategory.COUNT and item.pieces_per_unit:
        base_quantity = quantity * item.pieces_per_unit
    else:
        converted = convert_unit(quantity, unit, base)
        base_quantity = converted if converted is not None else quantity

    return round_quantity(base_quantity)


def _format_number(value: float) -> str:
    return f"{round_quantity(value):g}"


def format_inventory_quantity(item: InventoryItem) -> str:
    """Human readable stock, e.g. "2 bags (200 pieces)"."""
    quantity = _format_number(item.quantity or 0)
    unit = get_inventory_unit(item)
    base = get_base_unit(item)

    if not item.base_unit or not item.pieces_per_unit:
        return f"{quantity} {unit}"
    if _normalize(unit) == _normalize(base):
        return f"{quantity} {base}"
    return f"{quantity} {unit} ({_format_number(get_total_base_quantity(item))} {base})"
