from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_int(value: Any, field_name: str, *, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if min_value is not None and result < min_value:
        raise ValidationError(f"{field_name} must be >= {min_value}")
    if max_value is not None and result > max_value:
        raise ValidationError(f"{field_name} must be <= {max_value}")
    return result


def require_amount(value: Any, field_name: str, *, default: Optional[str] = None, positive: bool = False) -> Decimal:
    """Parse a money amount into Decimal (2 dp); negative amounts are rejected."""
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{field_name} is required")
        value = default
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if amount < 0 or (positive and amount == 0):
        raise ValidationError(f"{field_name} must be {'> 0' if positive else '>= 0'}")
    return amount.quantize(Decimal("0.01"))
