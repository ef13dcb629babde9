from fastapi import APIRouter, Depends, Query

from cafeos.core.api_docs import error_responses
from cafeos.core.deps import Services, get_services
from cafeos.core.errors import NotFoundError
from cafeos.core.permissions import require_manager, require_staff
from cafeos.core.security import Identity
from cafeos.schemas.common import OkOut
from cafeos.schemas.product import Category, Product, ProductAvailabilityOut
from cafeos.services.audit_service import log_audit_event

router = APIRouter(prefix="/products", tags=["products"])
categories_router = APIRouter(prefix="/categories", tags=["products"])


@router.get(
    "",
    response_model=list[ProductAvailabilityOut],
    response_model_exclude_none=True,
    summary="List products with availability",
    description="Availability is advisory: it reflects current stock for one unit and reserves nothing.",
    responses=error_responses(401, 403, 500),
)
def list_products(
    category_id: str | None = Query(default=None, alias="categoryID", description="Filter by category"),
    search: str | None = Query(default=None, description="Case-insensitive name filter"),
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    return services.catalog.available_products(category_id=category_id, search=search)


@router.post(
    "",
    response_model=Product,
    response_model_exclude_none=True,
    status_code=201,
    summary="Create a product",
    responses=error_responses(400, 401, 403, 422, 500),
)
def create_product(
    payload: Product,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    return services.catalog.add_product(payload)


@router.get(
    "/{product_id}",
    response_model=ProductAvailabilityOut,
    response_model_exclude_none=True,
    summary="Get a product",
    responses=error_responses(401, 403, 404, 500),
)
def get_product(
    product_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    product = services.catalog.get_product(product_id)
    if product is None:
        raise NotFoundError("product", product_id)
    return ProductAvailabilityOut(product=product, available=services.catalog.is_available(product))


@router.put(
    "/{product_id}",
    response_model=Product,
    response_model_exclude_none=True,
    summary="Replace a product",
    description="The recipe is replaced wholesale; omit it to remove the recipe.",
    responses=error_responses(400, 401, 403, 404, 422, 500),
)
def update_product(
    product_id: str,
    payload: Product,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    return services.catalog.update_product(payload.model_copy(update={"product_id": product_id}))


@router.delete(
    "/{product_id}",
    response_model=OkOut,
    summary="Delete a product",
    responses=error_responses(401, 403, 404, 500),
)
def delete_product(
    product_id: str,
    services: Services = Depends(get_services),
    identity: Identity = Depends(require_manager),
):
    services.catalog.delete_product(product_id)
    log_audit_event(
        services.store,
        action="product.deleted",
        target_type="product",
        target_id=product_id,
        actor_id=identity.user_id,
    )
    return OkOut()


@categories_router.get(
    "",
    response_model=list[Category],
    response_model_exclude_none=True,
    summary="List categories",
    responses=error_responses(401, 403, 500),
)
def list_categories(
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    return services.catalog.fetch_categories()


@categories_router.post(
    "",
    response_model=Category,
    response_model_exclude_none=True,
    status_code=201,
    summary="Create a category",
    responses=error_responses(400, 401, 403, 422, 500),
)
def create_category(
    payload: Category,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_manager),
):
    return services.catalog.add_category(payload)
