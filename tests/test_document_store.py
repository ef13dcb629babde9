import pytest

from cafeos.services.document_store import InMemoryDocumentStore, SqlDocumentStore


@pytest.fixture(params=["memory", "sql"])
def any_store(request, session_local):
    if request.param == "memory":
        return InMemoryDocumentStore()
    return SqlDocumentStore(session_local)


def test_write_read_and_delete(any_store):
    any_store.write_one("suppliers", "sup_1", {"supplierID": "sup_1", "name": "Bean Co", "contactInfo": None})

    assert any_store.read_one("suppliers", "sup_1") == {"supplierID": "sup_1", "name": "Bean Co"}
    assert any_store.read_all("suppliers") == {"sup_1": {"supplierID": "sup_1", "name": "Bean Co"}}
    assert any_store.read_all("products") == {}

    any_store.delete_one("suppliers", "sup_1")
    assert any_store.read_one("suppliers", "sup_1") is None


def test_patch_merges_and_skips_none(any_store):
    any_store.write_one("inventory", "inv_1", {"name": "Milk", "quantity": 5, "unit": "l"})
    any_store.patch_one("inventory", "inv_1", {"quantity": 4, "unit": None})

    assert any_store.read_one("inventory", "inv_1") == {"name": "Milk", "quantity": 4, "unit": "l"}


def test_every_write_bumps_version(any_store):
    any_store.write_one("inventory", "inv_1", {"quantity": 1})
    assert any_store.read_versioned("inventory", "inv_1").version == 1
    any_store.patch_one("inventory", "inv_1", {"quantity": 2})
    assert any_store.read_versioned("inventory", "inv_1").version == 2


def test_patch_if_version_is_compare_and_swap(any_store):
    any_store.write_one("inventory", "inv_1", {"name": "Milk", "quantity": 5})
    current = any_store.read_versioned("inventory", "inv_1")

    assert any_store.patch_if_version("inventory", "inv_1", current.version, {"quantity": 3})
    assert not any_store.patch_if_version("inventory", "inv_1", current.version, {"quantity": 1})
    assert any_store.read_one("inventory", "inv_1") == {"name": "Milk", "quantity": 3}
    assert not any_store.patch_if_version("inventory", "inv_missing", 1, {"quantity": 1})


def test_write_if_version_replaces_whole_record(any_store):
    any_store.write_one("inventory", "inv_1", {"name": "Milk", "quantity": 5, "reorderPoint": 2})
    current = any_store.read_versioned("inventory", "inv_1")

    assert any_store.write_if_version("inventory", "inv_1", current.version, {"name": "Oat Milk", "quantity": 5})
    assert any_store.read_one("inventory", "inv_1") == {"name": "Oat Milk", "quantity": 5}
    assert not any_store.write_if_version("inventory", "inv_1", current.version, {"name": "Stale"})


def test_subscribe_emits_current_value_then_changes(any_store):
    any_store.write_one("orders", "ord_1", {"status": "completed"})
    seen = []

    unsubscribe = any_store.subscribe("orders", "ord_1", seen.append)
    any_store.patch_one("orders", "ord_1", {"totalAmount": 5})
    any_store.delete_one("orders", "ord_1")
    unsubscribe()
    any_store.write_one("orders", "ord_1", {"status": "completed"})

    assert seen == [
        {"status": "completed"},
        {"status": "completed", "totalAmount": 5},
        None,
    ]


def test_failing_subscriber_does_not_break_writes(any_store):
    def explode(_record):
        if _record is not None:
            raise RuntimeError("listener bug")

    any_store.subscribe("inventory", "inv_1", explode)
    any_store.write_one("inventory", "inv_1", {"quantity": 1})
    assert any_store.read_one("inventory", "inv_1") == {"quantity": 1}


def test_reads_return_copies(any_store):
    any_store.write_one("products", "prod_1", {"recipe": [{"inventoryID": "inv_1", "quantity": 1}]})
    record = any_store.read_one("products", "prod_1")
    record["recipe"].append({"inventoryID": "inv_2", "quantity": 2})

    assert len(any_store.read_one("products", "prod_1")["recipe"]) == 1
