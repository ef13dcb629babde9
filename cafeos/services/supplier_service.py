import json
import logging

from cafeos.core.errors import NotFoundError, SupplierInUseError
from cafeos.core.id_utils import generate_prefixed_id
from cafeos.schemas.supplier import Supplier
from cafeos.services.document_store import DocumentStore

SUPPLIERS_COLLECTION = "suppliers"

logger = logging.getLogger("cafeos.suppliers")


def fetch_suppliers(store: DocumentStore) -> list[Supplier]:
    records = store.read_all(SUPPLIERS_COLLECTION)
    return [Supplier.from_record(data, key) for key, data in records.items()]


def get_supplier(store: DocumentStore, supplier_id: str) -> Supplier | None:
    data = store.read_one(SUPPLIERS_COLLECTION, supplier_id)
    if data is None:
        return None
    return Supplier.from_record(data, supplier_id)


def add_supplier(store: DocumentStore, supplier: Supplier) -> Supplier:
    created = supplier.model_copy(
        update={"supplier_id": supplier.supplier_id or generate_prefixed_id("sup")}
    )
    store.write_one(SUPPLIERS_COLLECTION, created.supplier_id, created.to_record())
    return created


def update_supplier(store: DocumentStore, supplier: Supplier) -> Supplier:
    if not supplier.supplier_id or get_supplier(store, supplier.supplier_id) is None:
        raise NotFoundError("supplier", supplier.supplier_id or "")
    store.write_one(SUPPLIERS_COLLECTION, supplier.supplier_id, supplier.to_record())
    return supplier


def count_supplier_references(store: DocumentStore, supplier_id: str) -> int:
    references = 0
    for collection in ("products", "inventory"):
        references += sum(
            1 for data in store.read_all(collection).values() if data.get("supplierID") == supplier_id
        )
    return references


def delete_supplier(store: DocumentStore, supplier_id: str) -> None:
    if get_supplier(store, supplier_id) is None:
        raise NotFoundError("supplier", supplier_id)

    references = count_supplier_references(store, supplier_id)
    if references:
        raise SupplierInUseError(supplier_id, references)

    store.delete_one(SUPPLIERS_COLLECTION, supplier_id)
    logger.info(json.dumps({"event": "supplier_deleted", "supplier_id": supplier_id}))
