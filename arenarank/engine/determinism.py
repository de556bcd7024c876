"""Decimal utilities for reproducible risk and prediction scores.

Monetary values and ratios never pass through binary floating point:
1. Inputs are converted to Decimal via their string form
2. Stored values are quantized with ROUND_HALF_EVEN
3. Ratios cross the storage boundary as fixed 8-digit strings
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any

from .types import DECIMAL_PLACES, ValidationError


ZERO = Decimal("0")
ONE = Decimal("1")


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Convert a value to Decimal with validation.

    Args:
        value: Value to convert (int, float, str, Decimal)
        name: Name for error messages

    Returns:
        Decimal representation

    Raises:
        ValidationError: If value cannot be converted or is invalid
    """
    if value is None:
        raise ValidationError(f"{name} is None")

    try:
        if isinstance(value, Decimal):
            d = value
        else:
            d = Decimal(str(value))

        if d.is_nan():
            raise ValidationError(f"{name} is NaN")
        if d.is_infinite():
            raise ValidationError(f"{name} is infinite")

        return d

    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValidationError(f"Cannot convert {name}={value!r} to Decimal: {e}")


def round_decimal(value: Decimal, places: int = DECIMAL_PLACES) -> Decimal:
    """Round a Decimal to specified places using ROUND_HALF_EVEN."""
    quantize_str = "0." + "0" * places
    return value.quantize(Decimal(quantize_str), rounding=ROUND_HALF_EVEN)


def format_ratio(value: Any, places: int = DECIMAL_PLACES) -> str:
    """Render a ratio as a fixed-point string with `places` digits.

    >>> format_ratio(Decimal("500"))
    '500.00000000'
    """
    rounded = round_decimal(to_decimal(value, "ratio"), places)
    if rounded.is_zero():
        # Avoid "-0.00000000"
        rounded = abs(rounded)
    return f"{rounded:f}"


def safe_divide(
    numerator: Decimal,
    denominator: Decimal,
    default: Decimal = ZERO,
) -> Decimal:
    """Safely divide two Decimals, returning default on zero/invalid.

    Args:
        numerator: Dividend
        denominator: Divisor
        default: Value to return if division is invalid

    Returns:
        numerator / denominator, or default if invalid
    """
    if denominator == ZERO:
        return default
    if denominator.is_nan() or numerator.is_nan():
        return default

    result = numerator / denominator
    if result.is_nan() or result.is_infinite():
        return default

    return result


__all__ = [
    "ZERO",
    "ONE",
    "to_decimal",
    "round_decimal",
    "format_ratio",
    "safe_divide",
]
