from fastapi import APIRouter, Depends, Query, Response

from cafeos.core.api_docs import error_responses
from cafeos.core.deps import Services, get_services
from cafeos.core.errors import NotFoundError
from cafeos.core.permissions import require_staff
from cafeos.core.security import Identity
from cafeos.schemas.common import PaginationMeta
from cafeos.schemas.order import CheckoutRequest, Order, OrderListOut, OrderTotals, QuoteRequest
from cafeos.schemas.receipt import Receipt
from cafeos.services.receipt_service import build_receipt, build_receipt_pdf, render_receipt_text

router = APIRouter(prefix="/orders", tags=["orders"])


def _get_order_or_404(services: Services, order_id: str) -> Order:
    order = services.checkout.get_order(order_id)
    if order is None:
        raise NotFoundError("order", order_id)
    return order


def _receipt_for(services: Services, order_id: str) -> Receipt:
    order = _get_order_or_404(services, order_id)
    return build_receipt(
        order,
        services.catalog.fetch_products(),
        store_name=services.settings.store_name,
    )


@router.post(
    "/quote",
    response_model=OrderTotals,
    summary="Price a cart without placing the order",
    responses=error_responses(401, 403, 422, 500),
)
def quote_order(
    payload: QuoteRequest,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    return services.checkout.compute_totals(payload.items, payload.discount_type)


@router.post(
    "",
    response_model=Order,
    response_model_exclude_none=True,
    status_code=201,
    summary="Check out a cart",
    description=(
        "Validates payment, records the order and consumes recipe ingredients from stock. "
        "Nothing is recorded when a recipe unit cannot be converted to its stock unit."
    ),
    responses=error_responses(400, 401, 403, 409, 422, 500),
)
def create_order(
    payload: CheckoutRequest,
    services: Services = Depends(get_services),
    identity: Identity = Depends(require_staff),
):
    return services.checkout.create_order(payload, actor_id=identity.user_id)


@router.get(
    "",
    response_model=OrderListOut,
    response_model_exclude_none=True,
    summary="List orders, newest first",
    responses=error_responses(401, 403, 422, 500),
)
def list_orders(
    limit: int = Query(default=50, ge=1, le=200, description="Page size"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    orders = services.checkout.fetch_orders()
    total = len(orders)
    items = orders[offset : offset + limit]
    count = len(items)
    return OrderListOut(
        items=items,
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            count=count,
            has_next=(offset + count) < total,
        ),
    )


@router.get(
    "/{order_id}",
    response_model=Order,
    response_model_exclude_none=True,
    summary="Get an order",
    responses=error_responses(401, 403, 404, 500),
)
def get_order(
    order_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    return _get_order_or_404(services, order_id)


@router.get(
    "/{order_id}/receipt",
    response_model=Receipt,
    response_model_exclude_none=True,
    summary="Get receipt data for an order",
    responses=error_responses(401, 403, 404, 500),
)
def get_receipt(
    order_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    return _receipt_for(services, order_id)


@router.get(
    "/{order_id}/receipt.txt",
    summary="Get a printable text receipt",
    response_class=Response,
    responses={
        200: {"content": {"text/plain": {}}, "description": "Plain text receipt"},
        **error_responses(401, 403, 404, 500),
    },
)
def get_receipt_text(
    order_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    receipt = _receipt_for(services, order_id)
    return Response(content=render_receipt_text(receipt), media_type="text/plain; charset=utf-8")


@router.get(
    "/{order_id}/receipt.pdf",
    summary="Download a PDF receipt",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "PDF receipt"},
        **error_responses(401, 403, 404, 500),
    },
)
def get_receipt_pdf(
    order_id: str,
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    receipt = _receipt_for(services, order_id)
    return Response(
        content=build_receipt_pdf(receipt),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="receipt-{order_id}.pdf"'},
    )
