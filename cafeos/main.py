from sqlalchemy import text

from cafeos.core.observability import (
    cafe_error_handler,
    http_exception_handler,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from cafeos.core.config import settings
from cafeos.core.deps import build_services
from cafeos.core.errors import CafeError
from cafeos.db.session import SessionLocal, engine
from cafeos.routers import audit, dashboard, inventory, orders, products, suppliers
from cafeos.services.document_store import SqlDocumentStore

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description=(
        "Back office API for a cafe point of sale.\n\n"
        "Tokens are issued by the identity provider; send them as `Authorization: Bearer <token>`.\n"
        "Checkout (`POST /orders`) records the sale and consumes recipe ingredients from stock."
    ),
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "products", "description": "Menu products, recipes, categories and availability."},
        {"name": "inventory", "description": "Raw material stock, adjustments and low-stock alerts."},
        {"name": "suppliers", "description": "Supplier directory."},
        {"name": "orders", "description": "Checkout, order history and receipts."},
        {"name": "dashboard", "description": "Revenue and stock KPIs."},
        {"name": "audit", "description": "Audit trail for stock counts, deletions and sales."},
    ],
)

app.state.services = build_services(SqlDocumentStore(SessionLocal), settings)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(CafeError, cafe_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:3000"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Local POS terminals and dev servers run on dynamic localhost ports.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products.router)
app.include_router(products.categories_router)
app.include_router(inventory.router)
app.include_router(suppliers.router)
app.include_router(orders.router)
app.include_router(dashboard.router)
app.include_router(audit.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        return {"ok": False}
    return {"ok": True}
