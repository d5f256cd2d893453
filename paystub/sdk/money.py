"""Decimal money helpers.

All monetary arithmetic in the SDK runs on decimal.Decimal. Floats coming in
from YAML, JSON or callers are converted through str() so that 0.1 becomes
Decimal('0.1') rather than its binary approximation.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, Any, Iterable

from pydantic import BeforeValidator

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert a number-like value to Decimal.

    Accepts Decimal, int, float, and numeric strings (commas, '$' and
    surrounding whitespace are stripped). None converts to zero.

    Raises:
        ValueError: If the value is not numeric or is not finite
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("$", "")
        if not cleaned:
            return ZERO
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}") from None
    else:
        raise ValueError(f"not a number: {value!r}")

    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def round_cents(amount: Decimal) -> Decimal:
    """Round to cents, half up (display and stub precision).

    Example: 61.005 -> 61.01, 61.004 -> 61.00
    """
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_amounts(values: Iterable[Decimal]) -> Decimal:
    """Sum Decimals starting from Decimal zero (sum() would start from int 0)."""
    total = ZERO
    for value in values:
        total += value
    return total


# Pydantic field type: money-like inputs validated through to_decimal
Money = Annotated[Decimal, BeforeValidator(to_decimal)]
