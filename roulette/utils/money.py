"""Fixed-point currency helpers."""
from decimal import Decimal, ROUND_HALF_UP

from roulette.config import MONEY_QUANTUM


def to_money(value) -> Decimal:
    """Quantize a numeric value to two decimal places (half up).

    Floats go through ``str`` first so ``0.1`` becomes ``Decimal("0.10")``
    rather than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def has_cent_precision(value: Decimal) -> bool:
    """Return True when the value needs no more than two decimal places."""
    return value == value.quantize(MONEY_QUANTUM)
