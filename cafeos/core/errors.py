from enum import Enum


class CafeError(Exception):
    """Base class for domain errors raised by the services."""


class NotFoundError(CafeError, LookupError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class IncompatibleUnitsError(CafeError):
    """A recipe unit cannot be expressed in its inventory item's stocking unit."""

    def __init__(self, recipe_unit: str, inventory_unit: str, inventory_id: str | None = None):
        self.recipe_unit = recipe_unit
        self.inventory_unit = inventory_unit
        self.inventory_id = inventory_id
        super().__init__(
            f'Cannot convert units: recipe uses "{recipe_unit}" but inventory uses '
            f'"{inventory_unit}". Units must be compatible (same category: count, volume, or weight).'
        )


class OrderValidationError(CafeError, ValueError):
    pass


class InsufficientStockError(CafeError):
    def __init__(self, inventory_id: str, name: str, available: float, needed: float, unit: str):
        self.inventory_id = inventory_id
        self.name = name
        self.available = available
        self.needed = needed
        self.unit = unit
        super().__init__(f"Insufficient stock for '{name}': need {needed} {unit}, have {available} {unit}")


class SupplierInUseError(CafeError):
    def __init__(self, supplier_id: str, reference_count: int):
        self.supplier_id = supplier_id
        self.reference_count = reference_count
        super().__init__(
            f"Supplier {supplier_id} is referenced by {reference_count} product(s) or inventory item(s)"
        )


class ConcurrentUpdateError(CafeError):
    def __init__(self, collection: str, key: str, attempts: int):
        self.collection = collection
        self.key = key
        self.attempts = attempts
        super().__init__(f"Gave up updating {collection}/{key} after {attempts} conflicting attempts")


class PermissionDeniedError(CafeError):
    pass


class AuthenticationError(CafeError):
    pass


class ErrorCategory(str, Enum):
    NETWORK = "network"
    VALIDATION = "validation"
    PERMISSION = "permission"
    AUTHENTICATION = "authentication"
    UNKNOWN = "unknown"


USER_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.NETWORK: "Network error. Please check your connection and try again.",
    ErrorCategory.VALIDATION: "Some of the information provided is invalid. Please review it and try again.",
    ErrorCategory.PERMISSION: "Unable to access data. Please check your permissions.",
    ErrorCategory.AUTHENTICATION: "Authentication error. Please sign in again.",
    ErrorCategory.UNKNOWN: "An error occurred. Please try again.",
}

_NETWORK_HINTS = ("network", "connection", "timeout", "timed out", "unreachable")


def classify_error(error: BaseException | str | None) -> ErrorCategory:
    if isinstance(error, AuthenticationError):
        return ErrorCategory.AUTHENTICATION
    if isinstance(error, PermissionDeniedError):
        return ErrorCategory.PERMISSION
    if isinstance(
        error,
        (OrderValidationError, IncompatibleUnitsError, InsufficientStockError, SupplierInUseError),
    ):
        return ErrorCategory.VALIDATION
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.NETWORK

    message = str(error or "").lower()
    if "permission" in message or "forbidden" in message:
        return ErrorCategory.PERMISSION
    if any(hint in message for hint in _NETWORK_HINTS):
        return ErrorCategory.NETWORK
    return ErrorCategory.UNKNOWN


def sanitize_error(error: BaseException | str | None) -> str:
    """Generic, user-safe message for any error; never echoes backend details."""
    return USER_MESSAGES[classify_error(error)]
