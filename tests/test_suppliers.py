import pytest

from cafeos.core.errors import NotFoundError, SupplierInUseError
from cafeos.schemas.inventory import InventoryItem
from cafeos.schemas.product import Product
from cafeos.schemas.supplier import Supplier
from cafeos.services.supplier_service import (
    add_supplier,
    delete_supplier,
    fetch_suppliers,
    get_supplier,
    update_supplier,
)


def test_add_and_update_supplier(store):
    supplier = add_supplier(store, Supplier(name="Bean Co", contact_info="hello@beanco.test"))
    assert supplier.supplier_id.startswith("sup_")

    update_supplier(store, supplier.model_copy(update={"contact_info": "+63 900 000 0000"}))
    assert get_supplier(store, supplier.supplier_id).contact_info == "+63 900 000 0000"
    assert [s.name for s in fetch_suppliers(store)] == ["Bean Co"]


def test_update_unknown_supplier_raises(store):
    with pytest.raises(NotFoundError):
        update_supplier(store, Supplier(supplier_id="sup_missing", name="Ghost"))


def test_delete_unreferenced_supplier(store):
    supplier = add_supplier(store, Supplier(name="Dairy Farm"))
    delete_supplier(store, supplier.supplier_id)
    assert get_supplier(store, supplier.supplier_id) is None


def test_delete_blocked_while_referenced(services):
    supplier = add_supplier(services.store, Supplier(name="Dairy Farm"))
    services.ledger.add_item(InventoryItem(name="Milk", supplier_id=supplier.supplier_id, unit="l"))
    services.catalog.add_product(
        Product(name="Bottled Milk", price=2, category_id="cat_drinks", supplier_id=supplier.supplier_id)
    )

    with pytest.raises(SupplierInUseError) as exc_info:
        delete_supplier(services.store, supplier.supplier_id)

    assert exc_info.value.reference_count == 2
    assert get_supplier(services.store, supplier.supplier_id) is not None


def test_delete_unknown_supplier_raises(store):
    with pytest.raises(NotFoundError):
        delete_supplier(store, "sup_missing")
