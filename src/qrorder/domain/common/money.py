from __future__ import annotations

from decimal import Decimal, InvalidOperation


def to_price(value: object) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("price must be a number")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"price is not a number: {value!r}") from exc
    if not price.is_finite():
        raise ValueError("price must be finite")
    if price < 0:
        raise ValueError("price must be >= 0")
    return price


def as_json_number(amount: Decimal) -> int | float:
    """Render a decimal the way the storefront stores amounts: whole numbers stay integral."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)
