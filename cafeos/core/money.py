from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated

from pydantic import BeforeValidator, PlainSerializer

MONEY_QUANT = Decimal("0.01")
ZERO_MONEY = Decimal("0.00")

STOCK_QUANT = Decimal("0.01")
CONSUMPTION_QUANT = Decimal("0.000001")


def to_money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def round_quantity(value: float | int | Decimal, quant: Decimal = STOCK_QUANT) -> float:
    # Half-up on the decimal text, so 0.125 rounds to 0.13 rather than binary-float 0.12.
    return float(Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP))


def _parse_money(value):
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    try:
        return to_money(value)
    except InvalidOperation as exc:
        raise ValueError("amount must be a number") from exc


Money = Annotated[
    Decimal,
    BeforeValidator(_parse_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]
