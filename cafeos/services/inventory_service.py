import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from cafeos.core.config import Settings
from cafeos.core.errors import ConcurrentUpdateError, NotFoundError
from cafeos.core.id_utils import generate_prefixed_id
from cafeos.core.money import round_quantity
from cafeos.core.units import convert_to_inventory_unit
from cafeos.schemas.inventory import InventoryItem
from cafeos.schemas.product import RecipeItem
from cafeos.services.audit_service import log_audit_event
from cafeos.services.document_store import DocumentStore

INVENTORY_COLLECTION = "inventory"

logger = logging.getLogger("cafeos.inventory")


def _log_event(event: str, **fields: Any) -> None:
    logger.info(json.dumps({"event": event, **fields}, default=str))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryLedger:
    """
    Owner of inventory quantities.

    Every quantity change is a versioned conditional write: the ledger reads
    the record, computes the new value and writes it only if nobody else wrote
    in between, retrying on conflict. Stored quantities never go below zero.
    """

    def __init__(self, store: DocumentStore, settings: Settings):
        self._store = store
        self._settings = settings
        self._lock = Lock()
        self._cache: dict[str, InventoryItem] = {}

    def _remember(self, item: InventoryItem) -> None:
        with self._lock:
            self._cache[item.inventory_id] = item

    def _forget(self, inventory_id: str) -> None:
        with self._lock:
            self._cache.pop(inventory_id, None)

    def fetch_all(self) -> list[InventoryItem]:
        records = self._store.read_all(INVENTORY_COLLECTION)
        items = [InventoryItem.from_record(data, key) for key, data in records.items()]
        with self._lock:
            self._cache = {item.inventory_id: item for item in items}
        return items

    def add_item(self, item: InventoryItem) -> InventoryItem:
        created = item.model_copy(
            update={
                "inventory_id": item.inventory_id or generate_prefixed_id("inv"),
                "quantity": round_quantity(max(0.0, item.quantity)),
                "last_updated": _utcnow(),
            }
        )
        self._store.write_one(INVENTORY_COLLECTION, created.inventory_id, created.to_record())
        self._remember(created)
        _log_event("inventory_item_added", inventory_id=created.inventory_id, quantity=created.quantity)
        return created

    def update_item(self, item: InventoryItem) -> InventoryItem:
        """Overwrite an item's metadata. The stored quantity is kept as is."""
        if not item.inventory_id:
            raise NotFoundError("inventory item", "")

        def rebuild(current: InventoryItem) -> dict[str, Any]:
            return item.model_copy(
                update={"quantity": current.quantity, "last_updated": _utcnow()}
            ).to_record()

        outcome = self._apply(item.inventory_id, rebuild, replace=True)
        if outcome is None:
            raise NotFoundError("inventory item", item.inventory_id)
        _, updated = outcome
        _log_event("inventory_item_updated", inventory_id=updated.inventory_id)
        return updated

    def _apply(
        self,
        inventory_id: str,
        compute: Callable[[InventoryItem], dict[str, Any]],
        *,
        replace: bool = False,
    ) -> tuple[InventoryItem, InventoryItem] | None:
        max_attempts = self._settings.stock_update_max_retries
        for attempt in range(1, max_attempts + 1):
            current = self._store.read_versioned(INVENTORY_COLLECTION, inventory_id)
            if current is None:
                self._forget(inventory_id)
                return None

            before = InventoryItem.from_record(current.data, inventory_id)
            fields = compute(before)
            if replace:
                swapped = self._store.write_if_version(
                    INVENTORY_COLLECTION, inventory_id, current.version, fields
                )
                merged = fields
            else:
                swapped = self._store.patch_if_version(
                    INVENTORY_COLLECTION, inventory_id, current.version, fields
                )
                merged = {**current.data, **{k: v for k, v in fields.items() if v is not None}}

            if swapped:
                after = InventoryItem.from_record(merged, inventory_id)
                self._remember(after)
                return before, after

            _log_event(
                "stock_write_conflict",
                inventory_id=inventory_id,
                attempt=attempt,
                expected_version=current.version,
            )

        raise ConcurrentUpdateError(INVENTORY_COLLECTION, inventory_id, max_attempts)

    def adjust(self, inventory_id: str, delta: float) -> InventoryItem | None:
        """
        Add `delta` (negative to consume) to the stored quantity.

        The result is clamped at zero and rounded to 2 decimals. Unknown items
        are logged and ignored.
        """
        if isinstance(delta, bool) or not isinstance(delta, (int, float)):
            raise TypeError("delta must be a number")

        def compute(current: InventoryItem) -> dict[str, Any]:
            return {
                "quantity": round_quantity(max(0.0, current.quantity + delta)),
                "lastUpdated": _utcnow().isoformat(),
            }

        outcome = self._apply(inventory_id, compute)
        if outcome is None:
            _log_event("inventory_item_missing", inventory_id=inventory_id, delta=delta)
            return None

        before, after = outcome
        _log_event(
            "stock_adjusted",
            inventory_id=inventory_id,
            delta=delta,
            previous=before.quantity,
            quantity=after.quantity,
            clamped=before.quantity + delta < 0,
        )
        return after

    def set_absolute(
        self,
        inventory_id: str,
        quantity: float,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> InventoryItem:
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
            raise TypeError("quantity must be a number")
        target = round_quantity(max(0.0, quantity))

        outcome = self._apply(
            inventory_id,
            lambda _current: {"quantity": target, "lastUpdated": _utcnow().isoformat()},
        )
        if outcome is None:
            raise NotFoundError("inventory item", inventory_id)

        before, after = outcome
        _log_event(
            "stock_set",
            inventory_id=inventory_id,
            previous=before.quantity,
            quantity=after.quantity,
            reason=reason,
        )
        log_audit_event(
            self._store,
            action="inventory.stock_set",
            target_type="inventory",
            target_id=inventory_id,
            actor_id=actor_id,
            metadata={"previous": before.quantity, "quantity": after.quantity, "reason": reason},
        )
        return after

    def delete(self, inventory_id: str) -> None:
        self._store.delete_one(INVENTORY_COLLECTION, inventory_id)
        self._forget(inventory_id)
        _log_event("inventory_item_deleted", inventory_id=inventory_id)

    def get(self, inventory_id: str) -> InventoryItem | None:
        with self._lock:
            cached = self._cache.get(inventory_id)
        if cached is not None:
            return cached

        data = self._store.read_one(INVENTORY_COLLECTION, inventory_id)
        if data is None:
            return None
        item = InventoryItem.from_record(data, inventory_id)
        self._remember(item)
        return item

    def refresh(self, inventory_id: str) -> InventoryItem | None:
        """Re-read one item from the store, bypassing the cache."""
        data = self._store.read_one(INVENTORY_COLLECTION, inventory_id)
        if data is None:
            self._forget(inventory_id)
            return None
        item = InventoryItem.from_record(data, inventory_id)
        self._remember(item)
        return item

    def get_by_name(self, name: str) -> InventoryItem | None:
        wanted = (name or "").strip().lower()
        if not wanted:
            return None
        for item in self.fetch_all():
            if item.name.lower() == wanted:
                return item
        return None

    def stock_level(self, inventory_id: str) -> float:
        item = self.get(inventory_id)
        return item.quantity if item else 0.0

    def convert_recipe_item(self, recipe_item: RecipeItem) -> float | None:
        item = self.get(recipe_item.inventory_id)
        if item is None:
            return None
        return convert_to_inventory_unit(recipe_item.quantity, recipe_item.unit, item)

    def reorder_point(self, item: InventoryItem) -> float:
        if item.reorder_point is not None:
            return item.reorder_point
        return self._settings.low_stock_default_threshold

    def low_stock_items(self) -> list[InventoryItem]:
        return [item for item in self.fetch_all() if item.quantity < self.reorder_point(item)]
