from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENTS = Decimal("0.01")


def parse_amount(value: Any, allow_zero: bool = False) -> Optional[Decimal]:
    """
    Parse a stored setting or wire value into a usable amount.

    Returns ``None`` for missing, non-numeric, non-finite and negative values,
    and for zero unless ``allow_zero`` is set. Both the cart's exchange rate and
    the backend's conversions go through here so they agree on what counts as
    a usable rate.
    """
    if value is None or str(value).strip() == "":
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    if amount == 0 and not allow_zero:
        return None
    return amount


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
