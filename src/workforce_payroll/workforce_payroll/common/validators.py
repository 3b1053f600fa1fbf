from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from ..core.constants import MAX_YEAR, MIN_YEAR
from ..core.exceptions import ValidationError
from .decimal_utils import to_decimal

# Matches the DECIMAL(5, 2) column the percentage is stored in.
_TAX_STEP = Decimal("0.01")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_int(value: Any, field_name: str) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, Decimal) and value != value.to_integral_value():
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} must be an integer")


def validate_period(month: Any, year: Any) -> tuple[int, int]:
    month = require_int(month, "month")
    year = require_int(year, "year")
    if month < 1 or month > 12:
        raise ValidationError("Invalid month. Must be 1-12")
    if year < MIN_YEAR or year > MAX_YEAR:
        raise ValidationError(f"Invalid year. Must be {MIN_YEAR}-{MAX_YEAR}")
    return month, year


def validate_tax_percentage(value: Any) -> Optional[Decimal]:
    """None means "use the configured default".

    The result is rounded half-up to two places so the figures computed from
    it match what is stored and read back.
    """
    if value is None or value == "":
        return None
    try:
        pct = to_decimal(value)
    except ValueError:
        raise ValidationError("Invalid tax_percentage. Must be between 0 and 100")
    if not pct.is_finite() or pct < 0 or pct > 100:
        raise ValidationError("Invalid tax_percentage. Must be between 0 and 100")
    return pct.quantize(_TAX_STEP, rounding=ROUND_HALF_UP)
