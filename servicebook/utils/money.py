"""Money helpers."""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0.00")
_CENT = Decimal("0.01")


def to_money(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce to a Decimal rounded half-up to two places. ``None`` is zero."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() first so floats like 0.1 don't drag binary noise along
        value = Decimal(str(value))
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)
