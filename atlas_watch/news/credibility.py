"""
Heuristic credibility score for a newly ingested article.

score = source prior adjusted by category:
  scientific_discovery  ×1.10, capped at 1.00
  speculation           ×0.70, floored at 0.10
  debunking             ×1.05, capped at 1.00
  anything else         unchanged

Arithmetic runs in Decimal so that the 2-place ROUND_HALF_UP rounding is
exact at the .005 boundary (0.125 → 0.13), which binary floats are not.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..schemas import Category

UNKNOWN_SOURCE_PRIOR = 0.5

_TWO_PLACES = Decimal("0.01")
_ZERO = Decimal("0")
_ONE = Decimal("1")

# category -> (multiplier, floor, cap)
CATEGORY_ADJUSTMENTS = {
    Category.SCIENTIFIC_DISCOVERY: (Decimal("1.10"), None, _ONE),
    Category.SPECULATION: (Decimal("0.70"), Decimal("0.10"), None),
    Category.DEBUNKING: (Decimal("1.05"), None, _ONE),
}


def score(source_prior: Optional[float], category: Category) -> float:
    """Credibility in [0, 1], rounded half-up to 2 decimals."""
    base = Decimal(str(UNKNOWN_SOURCE_PRIOR if source_prior is None else source_prior))
    base = min(max(base, _ZERO), _ONE)

    value = base
    adjustment = CATEGORY_ADJUSTMENTS.get(Category(category))
    if adjustment:
        multiplier, floor, cap = adjustment
        value = base * multiplier
        if cap is not None:
            value = min(value, cap)
        if floor is not None:
            value = max(value, floor)

    value = min(max(value, _ZERO), _ONE)
    return float(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))
