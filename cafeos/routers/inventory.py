from fastapi import APIRouter, Depends, Query

from cafeos.core.api_docs import error_responses
from cafeos.core.deps import Services, get_services
from cafeos.core.errors import NotFoundError
from cafeos.core.permissions import require_manager, require_staff
from cafeos.core.security import Identity
from cafeos.core.units import format_inventory_quantity, get_inventory_unit, get_total_base_quantity
from cafeos.schemas.common import OkOut
from cafeos.schemas.inventory import (
    InventoryItem,
    LowStockItemOut,
    StockAdjustIn,
    StockLevelOut,
    StockSetIn,
)

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _get_item_or_404(services: Services, inventory_id: str) -> InventoryItem:
    item = services.ledger.refresh(inventory_id)
    if item is None:
        raise NotFoundError("inventory item", inventory_id)
    return item


@router.get(
    "",
    response_model=list[InventoryItem],
    response_model_exclude_none=True,
    summary="List inventory items",
    responses=error_responses(401, 403, 500),
)
def list_inventory(
    search: str | None = Query(default=None, description="Case-insensitive name filter"),
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    items = services.ledger.fetch_all()
    if search and search.strip():
        needle = search.strip().lower()
        items = [item for item in items if needle in item.name.lower()]
    return items


@router.post(
    "",
    response_model=InventoryItem,
    response_model_exclude_none=True,
    status_code=201,
    summary="Create an inventory item",
    responses=error_responses(400, 401, 403, 422, 500),
)
def create_inventory_item(
    payload: InventoryItem,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    return services.ledger.add_item(payload)


@router.get(
    "/low-stock",
    response_model=list[LowStockItemOut],
    summary="List items below their reorder point",
    responses=error_responses(401, 403, 500),
)
def list_low_stock(
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    return [
        LowStockItemOut(
            inventory_id=item.inventory_id,
            name=item.name,
            quantity=item.quantity,
            unit=get_inventory_unit(item),
            reorder_point=services.ledger.reorder_point(item),
        )
        for item in services.ledger.low_stock_items()
    ]


@router.get(
    "/{inventory_id}",
    response_model=InventoryItem,
    response_model_exclude_none=True,
    summary="Get an inventory item",
    responses=error_responses(401, 403, 404, 500),
)
def get_inventory_item(
    inventory_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    return _get_item_or_404(services, inventory_id)


@router.put(
    "/{inventory_id}",
    response_model=InventoryItem,
    response_model_exclude_none=True,
    summary="Update inventory item details",
    description="Replaces name, units and thresholds. Quantity changes go through the stock endpoints.",
    responses=error_responses(400, 401, 403, 404, 409, 422, 500),
)
def update_inventory_item(
    inventory_id: str,
    payload: InventoryItem,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    return services.ledger.update_item(payload.model_copy(update={"inventory_id": inventory_id}))


@router.delete(
    "/{inventory_id}",
    response_model=OkOut,
    summary="Delete an inventory item",
    responses=error_responses(401, 403, 404, 500),
)
def delete_inventory_item(
    inventory_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    _get_item_or_404(services, inventory_id)
    services.ledger.delete(inventory_id)
    return OkOut()


@router.get(
    "/{inventory_id}/stock",
    response_model=StockLevelOut,
    summary="Get stock level for an item",
    responses=error_responses(401, 403, 404, 500),
)
def get_stock(
    inventory_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    item = _get_item_or_404(services, inventory_id)
    return StockLevelOut(
        inventory_id=inventory_id,
        quantity=item.quantity,
        unit=get_inventory_unit(item),
        display=format_inventory_quantity(item),
        base_quantity=get_total_base_quantity(item),
    )


@router.post(
    "/{inventory_id}/adjust",
    response_model=InventoryItem,
    response_model_exclude_none=True,
    summary="Add or remove stock",
    description="The resulting quantity is clamped at zero.",
    responses=error_responses(400, 401, 403, 404, 409, 422, 500),
)
def adjust_stock(
    inventory_id: str,
    payload: StockAdjustIn,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    item = services.ledger.adjust(inventory_id, payload.delta)
    if item is None:
        raise NotFoundError("inventory item", inventory_id)
    return item


@router.put(
    "/{inventory_id}/stock",
    response_model=InventoryItem,
    response_model_exclude_none=True,
    summary="Set stock after a count",
    responses=error_responses(400, 401, 403, 404, 409, 422, 500),
)
def set_stock(
    inventory_id: str,
    payload: StockSetIn,
    services: Services = Depends(get_services),
    identity: Identity = Depends(require_manager),
):
    return services.ledger.set_absolute(
        inventory_id,
        payload.quantity,
        reason=payload.reason,
        actor_id=identity.user_id,
    )
