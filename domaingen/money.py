"""Fixed-point money helpers.  Binary floats are never accepted."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from domaingen.config import MINOR_UNIT, ROUNDING


def to_decimal(value: Any, name: str = "amount", *, allow_negative: bool = False) -> Decimal:
    """Coerce an int, str or Decimal to Decimal.

    Raises TypeError for floats and other types, ValueError for malformed
    or (unless allowed) negative values.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"{name} must be a Decimal, int or str, not {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation:
            raise ValueError(f"{name} is not a number: {value!r}") from None
    else:
        raise TypeError(f"{name} must be a Decimal, int or str, not {type(value).__name__}")
    if not result.is_finite():
        raise ValueError(f"{name} must be finite")
    if result < 0 and not allow_negative:
        raise ValueError(f"{name} must not be negative")
    return result


def round_money(amount: Decimal) -> Decimal:
    """Quantize to the currency minor unit.  Apply once, at the end."""
    return amount.quantize(MINOR_UNIT, rounding=ROUNDING)
