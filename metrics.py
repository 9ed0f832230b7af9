from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional

CENT = Decimal("0.01")
RATIO_PLACES = Decimal("0.0001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_money(value: Optional[object]) -> Decimal:
    """Normalize a stored or aggregated amount to a two-place Decimal.

    SQL ``SUM`` yields NULL for no rows and SQLite may hand back floats, so
    both are accepted here.
    """
    if value is None:
        return ZERO.quantize(CENT)
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    ratio = (part / whole).quantize(RATIO_PLACES, rounding=ROUND_HALF_UP)
    return float(ratio * HUNDRED)


def usage_percentage(spent: Decimal, budgeted: Decimal) -> float:
    return percentage(spent, budgeted)


def is_over_budget(spent: Decimal, budgeted: Decimal) -> bool:
    return spent > budgeted


def percentage_breakdown(amounts: Mapping[str, Decimal]) -> dict[str, float]:
    total = sum(amounts.values(), ZERO)
    if total <= 0:
        return {}
    return {key: percentage(amount, total) for key, amount in amounts.items()}


def average(amounts: list[Decimal]) -> Decimal:
    if not amounts:
        return to_money(ZERO)
    total = sum(amounts, ZERO)
    return (total / Decimal(len(amounts))).quantize(CENT, rounding=ROUND_HALF_UP)
