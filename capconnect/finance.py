"""
Derived numbers shown on dashboards: funding progress, ownership percentages,
portfolio performance and engagement scores.

All money and share quantities are handled as `Decimal`. Percentages are
quantized to two places with ROUND_HALF_UP; the "whole percent" figures
(performance, capped SPV progress, average score) round half up to an int.
"""

from __future__ import annotations

import datetime
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence, Union

Number = Union[Decimal, int, float, str, None]

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

ENGAGEMENT_POINTS_PER_ACTION = 4
MAX_ENGAGEMENT_SCORE = 100


def to_decimal(value: Number) -> Decimal:
    """Coerce DB / JSON values to Decimal; None and '' become 0."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # go through str() so 0.1 stays 0.1
        return Decimal(str(value))
    return Decimal(value)


def _round_int(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: Number, whole: Number) -> Decimal:
    whole_d = to_decimal(whole)
    if whole_d <= 0:
        return ZERO.quantize(TWO_PLACES)
    return (to_decimal(part) / whole_d * HUNDRED).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def funding_progress(raised: Number, target: Number) -> Decimal:
    """raised / target as a percentage. Not capped: over-subscription shows > 100."""
    return percentage(raised, target)


def capped_progress(raised: Number, target: Number) -> int:
    target_d = to_decimal(target)
    if target_d <= 0:
        return 0
    return min(100, _round_int(to_decimal(raised) / target_d * HUNDRED))


def performance(current: Number, initial: Number) -> int:
    """Whole-percent change from `initial` to `current`; 0 if either is unknown."""
    if current is None or initial is None:
        return 0
    initial_d = to_decimal(initial)
    if initial_d <= 0:
        return 0
    return _round_int((to_decimal(current) - initial_d) / initial_d * HUNDRED)


def equity_value(valuation: Number, ownership_pct: Number) -> Decimal:
    return (to_decimal(valuation) * to_decimal(ownership_pct) / HUNDRED).quantize(
        TWO_PLACES, rounding=ROUND_HALF_UP
    )


def portfolio_summary(positions: Iterable[dict]) -> dict:
    """
    Aggregate a list of positions, each a mapping with `amount`,
    `current_valuation` and `percentage` keys.
    """
    total_invested = ZERO
    total_current_value = ZERO
    for pos in positions:
        total_invested += to_decimal(pos.get("amount"))
        total_current_value += equity_value(pos.get("current_valuation"), pos.get("percentage"))

    overall = 0
    if total_invested > 0:
        overall = _round_int((total_current_value - total_invested) / total_invested * HUNDRED)

    return {
        "total_invested": total_invested.quantize(TWO_PLACES),
        "total_current_value": total_current_value.quantize(TWO_PLACES),
        "overall_performance": overall,
    }


def days_left(expiry: Optional[datetime.date], today: Optional[datetime.date] = None) -> Optional[int]:
    if expiry is None:
        return None
    today = today or datetime.date.today()
    return math.ceil((expiry - today).total_seconds() / 86400)


def average_score(scores: Sequence[Number]) -> int:
    if not scores:
        return 0
    total = sum((to_decimal(s) for s in scores), ZERO)
    return _round_int(total / len(scores))


def engagement_score(action_count: int) -> int:
    return min(MAX_ENGAGEMENT_SCORE, max(0, action_count) * ENGAGEMENT_POINTS_PER_ACTION)


def annual_from_monthly(mrr: Number) -> Decimal:
    return (to_decimal(mrr) * 12).quantize(TWO_PLACES)


def runway_months(cash_on_hand: Number, burn_rate: Number) -> Optional[int]:
    """Whole months of runway; None when the company is not burning cash."""
    burn = to_decimal(burn_rate)
    if burn <= 0:
        return None
    return int(to_decimal(cash_on_hand) // burn)


def analytics_summary(views: Sequence[dict], document_views: Sequence[dict], engagement: Sequence[dict]) -> dict:
    """Headline totals for an analytics page: daily series plus engagement rows."""
    return {
        "total_views": sum(int(r["count"]) for r in views),
        "total_document_views": sum(int(r["count"]) for r in document_views),
        "average_score": average_score([r["score"] for r in engagement]),
        "total_actions": sum(int(r["actions"]) for r in engagement),
    }
