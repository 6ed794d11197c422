from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from splitshare.errors import ValidationError


CENT = Decimal("0.01")
ZERO = Decimal("0")
# Sums may drift from their target by at most one cent.
TOLERANCE = Decimal("0.01")
# Balances at or below this magnitude take no part in settlement.
SETTLE_EPSILON = Decimal("0.009")
# Cap on any single amount; cents of much larger values overflow the default decimal context.
MAX_AMOUNT = Decimal("1000000000000")


def round2(value: Decimal | int) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def snap(value: Decimal) -> Decimal:
    value = round2(value)
    return ZERO.quantize(CENT) if abs(value) < TOLERANCE else value


def too_large(value: Decimal) -> bool:
    return value.is_finite() and abs(value) > MAX_AMOUNT


def to_money(value: Any, field: str) -> Decimal:
    amount = _parse_money(value, field)
    if too_large(amount):
        raise ValidationError(field, f"Amount must be at most {MAX_AMOUNT}")
    return amount


def _parse_money(value: Any, field: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise ValidationError(field, "Must be a number")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 stays 0.1 instead of its binary expansion
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValidationError(field, "Must be a number") from exc
    raise ValidationError(field, "Must be a number")


def to_quantity(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(field, "Quantity must be an integer >= 1")
    if isinstance(value, int):
        quantity = value
    else:
        number = to_money(value, field)
        if not number.is_finite() or number != number.to_integral_value():
            raise ValidationError(field, "Quantity must be an integer >= 1")
        quantity = int(number)
    if quantity < 1:
        raise ValidationError(field, "Quantity must be an integer >= 1")
    return quantity
