from fastapi import APIRouter, Depends

from cafeos.core.api_docs import error_responses
from cafeos.core.deps import Services, get_services
from cafeos.core.errors import NotFoundError
from cafeos.core.permissions import require_manager, require_staff
from cafeos.core.security import Identity
from cafeos.schemas.common import OkOut
from cafeos.schemas.supplier import Supplier
from cafeos.services.audit_service import log_audit_event
from cafeos.services.supplier_service import (
    add_supplier,
    delete_supplier,
    fetch_suppliers,
    get_supplier,
    update_supplier,
)

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


@router.get(
    "",
    response_model=list[Supplier],
    response_model_exclude_none=True,
    summary="List suppliers",
    responses=error_responses(401, 403, 500),
)
def list_suppliers(
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    return fetch_suppliers(services.store)


@router.post(
    "",
    response_model=Supplier,
    response_model_exclude_none=True,
    status_code=201,
    summary="Create a supplier",
    responses=error_responses(400, 401, 403, 422, 500),
)
def create_supplier(
    payload: Supplier,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    return add_supplier(services.store, payload)


@router.get(
    "/{supplier_id}",
    response_model=Supplier,
    response_model_exclude_none=True,
    summary="Get a supplier",
    responses=error_responses(401, 403, 404, 500),
)
def get_supplier_by_id(
    supplier_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    supplier = get_supplier(services.store, supplier_id)
    if supplier is None:
        raise NotFoundError("supplier", supplier_id)
    return supplier


@router.put(
    "/{supplier_id}",
    response_model=Supplier,
    response_model_exclude_none=True,
    summary="Replace a supplier",
    responses=error_responses(400, 401, 403, 404, 422, 500),
)
def replace_supplier(
    supplier_id: str,
    payload: Supplier,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    return update_supplier(services.store, payload.model_copy(update={"supplier_id": supplier_id}))


@router.delete(
    "/{supplier_id}",
    response_model=OkOut,
    summary="Delete a supplier",
    description="Refused with 409 while any product or inventory item references the supplier.",
    responses=error_responses(401, 403, 404, 409, 500),
)
def remove_supplier(
    supplier_id: str,
    services: Services = Depends(get_services),
    identity: Identity = Depends(require_manager),
):
    delete_supplier(services.store, supplier_id)
    log_audit_event(
        services.store,
        action="supplier.deleted",
        target_type="supplier",
        target_id=supplier_id,
        actor_id=identity.user_id,
    )
    return OkOut()
