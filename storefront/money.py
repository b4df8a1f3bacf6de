"""
Money Utilities - Decimal handling for cart price snapshots.

Avoids float precision issues by using Decimal throughout.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

MONEY_PRECISION = Decimal("0.01")

Number = Union[str, int, float, Decimal]


def to_decimal(value: Number) -> Decimal:
    """
    Convert a price to Decimal.

    Floats go through str() so 19.99 stays 19.99 rather than
    19.989999999999998436805981327779591083526611328125.

    Raises:
        ValueError: value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
        except (InvalidOperation, ValueError, TypeError) as e:
            raise ValueError(f"Not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def round_money(value: Number) -> Decimal:
    """Round monetary value to cents."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def multiply(a: Number, b: Number) -> Decimal:
    """Multiply two values safely."""
    return to_decimal(a) * to_decimal(b)
