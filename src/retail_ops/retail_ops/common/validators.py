from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from ..core.exceptions import ValidationError

Number = Union[int, float, str, Decimal]


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    """Trim text; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def to_decimal(value: Number, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field_name} must be a finite number")
    try:
        result = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be a finite number")
    return result


def to_scale(value: Decimal, field_name: str, step: Decimal, maximum: Decimal) -> Decimal:
    """Round half-up to the column scale ``step`` and check it fits under ``maximum``."""
    try:
        result = value.quantize(step, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field_name} is too large")
    if abs(result) > maximum:
        raise ValidationError(f"{field_name} is too large")
    return result
