import json
import logging
import time
import traceback
from contextvars import ContextVar
from uuid import uuid4

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cafeos.core.errors import (
    USER_MESSAGES,
    AuthenticationError,
    CafeError,
    ConcurrentUpdateError,
    ErrorCategory,
    IncompatibleUnitsError,
    InsufficientStockError,
    NotFoundError,
    OrderValidationError,
    PermissionDeniedError,
    SupplierInUseError,
    sanitize_error,
)

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")
logger = logging.getLogger("cafeos.api")


def setup_observability() -> None:
    # Service loggers (cafeos.inventory, cafeos.checkout, ...) share this handler.
    package_logger = logging.getLogger("cafeos")
    if package_logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.INFO)
    package_logger.propagate = False


def get_request_id() -> str:
    return request_id_ctx.get()


def _error_response(
    *,
    status_code: int,
    request: Request,
    code: str,
    message: str,
    details: list[dict] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = (
        getattr(request.state, "request_id", None)
        or request.headers.get("x-request-id")
        or get_request_id()
    )
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content={
            "error": {
                "code": code,
                "message": message,
                "request_id": request_id,
                "path": request.url.path,
                "details": details,
            }
        },
    )


async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid4())
    request.state.request_id = request_id
    token = request_id_ctx.set(request_id)
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
    finally:
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            json.dumps(
                {
                    "event": "request",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                }
            )
        )
        request_id_ctx.reset(token)

    response.headers["X-Request-ID"] = request_id
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = (
        getattr(request.state, "request_id", None)
        or request.headers.get("x-request-id")
        or get_request_id()
    )
    logger.error(
        json.dumps(
            {
                "event": "unhandled_exception",
                "request_id": request_id,
                "path": request.url.path,
                "error": str(exc),
                "traceback": traceback.format_exc(limit=10),
            }
        )
    )
    return _error_response(
        status_code=500,
        request=request,
        code="internal_error",
        message=sanitize_error(exc),
    )


_STATUS_CODE_MAP = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "validation_error",
    429: "rate_limited",
}


async def http_exception_handler(request: Request, exc: HTTPException):
    code = _STATUS_CODE_MAP.get(exc.status_code, "http_error")
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    details = None if isinstance(exc.detail, str) else exc.detail
    return _error_response(
        status_code=exc.status_code,
        request=request,
        code=code,
        message=message,
        details=details,
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", []) if part != "body"]
        details.append(
            {
                "field": ".".join(location) if location else "body",
                "message": err.get("msg", "Invalid value"),
                "type": err.get("type"),
            }
        )

    return _error_response(
        status_code=422,
        request=request,
        code="validation_error",
        message=USER_MESSAGES[ErrorCategory.VALIDATION],
        details=details,
    )


_DOMAIN_ERRORS: tuple[tuple[type[CafeError], int, str], ...] = (
    (NotFoundError, 404, "not_found"),
    (SupplierInUseError, 409, "supplier_in_use"),
    (InsufficientStockError, 409, "insufficient_stock"),
    (ConcurrentUpdateError, 409, "conflict"),
    (IncompatibleUnitsError, 422, "incompatible_units"),
    (OrderValidationError, 400, "bad_request"),
    (PermissionDeniedError, 403, "forbidden"),
    (AuthenticationError, 401, "unauthorized"),
)


async def cafe_error_handler(request: Request, exc: CafeError):
    status_code, code = 400, "bad_request"
    for error_type, mapped_status, mapped_code in _DOMAIN_ERRORS:
        if isinstance(exc, error_type):
            status_code, code = mapped_status, mapped_code
            break

    details = None
    if isinstance(exc, InsufficientStockError):
        details = [
            {
                "field": exc.inventory_id,
                "message": f"need {exc.needed} {exc.unit}, have {exc.available} {exc.unit}",
                "type": "insufficient_stock",
            }
        ]

    logger.warning(
        json.dumps(
            {
                "event": "domain_error",
                "request_id": get_request_id(),
                "path": request.url.path,
                "code": code,
                "error": str(exc),
            }
        )
    )
    if isinstance(exc, (PermissionDeniedError, AuthenticationError, ConcurrentUpdateError)):
        message = sanitize_error(exc)
    else:
        message = str(exc)
    return _error_response(
        status_code=status_code,
        request=request,
        code=code,
        message=message,
        details=details,
    )
