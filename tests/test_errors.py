from cafeos.core.errors import (
    USER_MESSAGES,
    AuthenticationError,
    ErrorCategory,
    IncompatibleUnitsError,
    OrderValidationError,
    PermissionDeniedError,
    classify_error,
    sanitize_error,
)


def test_incompatible_units_message_names_both_units():
    error = IncompatibleUnitsError("pieces", "ml", "inv_milk")
    assert '"pieces"' in str(error)
    assert '"ml"' in str(error)
    assert error.inventory_id == "inv_milk"


def test_classify_domain_errors():
    assert classify_error(OrderValidationError("Cart is empty")) is ErrorCategory.VALIDATION
    assert classify_error(PermissionDeniedError()) is ErrorCategory.PERMISSION
    assert classify_error(AuthenticationError()) is ErrorCategory.AUTHENTICATION
    assert classify_error(ConnectionError("reset by peer")) is ErrorCategory.NETWORK


def test_classify_by_message():
    assert classify_error("PERMISSION_DENIED: client is offline") is ErrorCategory.PERMISSION
    assert classify_error(RuntimeError("request timed out")) is ErrorCategory.NETWORK
    assert classify_error(None) is ErrorCategory.UNKNOWN


def test_sanitized_messages_never_echo_backend_details():
    message = sanitize_error(RuntimeError("psycopg.OperationalError at db-prod-3.internal:5432"))
    assert message == USER_MESSAGES[ErrorCategory.UNKNOWN]
    assert "db-prod" not in message
    assert "psycopg" not in message
