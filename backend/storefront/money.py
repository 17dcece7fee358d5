# Overview: Decimal helpers for prices and order totals.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")

# Numeric(12, 2) upper bound
MAX_PRICE = Decimal("9999999999.99")


def to_decimal(value) -> Decimal:
    """
    Coerce a JSON/form value into a two-place Decimal.

    Floats go through str() so 0.1 stays 0.10 instead of its binary expansion.
    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError("not a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str) and value.strip():
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError("not a number")
    else:
        raise ValueError("not a number")
    if not result.is_finite():
        raise ValueError("not a number")
    return result.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value) -> str | None:
    if value is None:
        return None
    return str(to_decimal(value))
