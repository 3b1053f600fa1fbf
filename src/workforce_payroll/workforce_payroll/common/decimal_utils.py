from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

_CENT = Decimal("0.01")


def to_decimal(value: Any, *, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
    """Coerce DB/JSON values (Decimal, int, float, str, None) into Decimal.

    Floats go through ``str`` so 0.1 stays 0.1 instead of its binary expansion.
    """

    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid decimal value: {value!r}")


def round2(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def to_number(value: Optional[Decimal]) -> Optional[float]:
    """Boundary conversion: Decimal -> float for JSON payloads."""
    if value is None:
        return None
    return float(value)
