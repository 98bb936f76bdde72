"""
Money helpers shared by the finance, stock and order modules.

Amounts are Decimal end to end; the 0.01 tolerance absorbs rounding when
comparing totals coming from different sources (installments, payment
sources, journal sums).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Any, Iterable

from pydantic import PlainSerializer

MONEY_TOLERANCE = Decimal("0.01")
TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert DB/JSON values to Decimal without going through binary float repr."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Any]) -> Decimal:
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def amounts_match(left: Any, right: Any) -> bool:
    """True when both amounts are equal within the 0.01 tolerance."""
    return abs(to_decimal(left) - to_decimal(right)) <= MONEY_TOLERANCE


def exceeds(total: Any, limit: Any) -> bool:
    """True when total goes over limit by more than the tolerance."""
    return to_decimal(total) > to_decimal(limit) + MONEY_TOLERANCE


def format_money(value: Any) -> str:
    return f"{quantize_money(value):.2f}"


def _as_number(value: Decimal) -> float:
    return float(value)


# Decimal inside the app, plain JSON number at the boundary
Amount = Annotated[Decimal, PlainSerializer(_as_number, return_type=float, when_used="json")]
Quantity = Annotated[Decimal, PlainSerializer(_as_number, return_type=float, when_used="json")]


def format_quantity(value: Any) -> str:
    """Quantity with up to three decimals, trailing zeros dropped (10.000 -> 10)."""
    text = f"{to_decimal(value):.3f}"
    return text.rstrip("0").rstrip(".")
