from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from cafeos.core.api_docs import error_responses
from cafeos.core.deps import Services, get_services
from cafeos.core.permissions import require_staff
from cafeos.core.security import Identity
from cafeos.schemas.dashboard import DashboardSummaryOut
from cafeos.services.dashboard_service import get_summary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/summary",
    response_model=DashboardSummaryOut,
    summary="Get KPI summary",
    responses={
        200: {
            "description": "Dashboard summary",
            "content": {
                "application/json": {
                    "example": {
                        "total_revenue": 1250.4,
                        "order_count": 42,
                        "average_order_value": 29.77,
                        "product_count": 18,
                        "low_stock_count": 3,
                        "recent_orders": [
                            {
                                "order_id": "ord_8kZ2qLmN",
                                "total_amount": 86.4,
                                "order_date": "2026-10-18T09:30:00Z",
                            }
                        ],
                        "start_date": None,
                        "end_date": None,
                    }
                }
            },
        },
        **error_responses(400, 401, 403, 422, 500),
    },
)
def summary(
    start_date: date | None = Query(default=None, description="Filter from date (YYYY-MM-DD)"),
    end_date: date | None = Query(default=None, description="Filter to date (YYYY-MM-DD)"),
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_staff),
):
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")
    return get_summary(
        services.checkout.fetch_orders(),
        services.ledger.fetch_all(),
        low_stock_threshold=services.settings.low_stock_default_threshold,
        product_count=len(services.catalog.fetch_products()),
        start_date=start_date,
        end_date=end_date,
    )
