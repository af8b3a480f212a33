"""
Report Trend & Ranking Utilities

Shared primitives for the monthly report sections:
- frequency counting and stable top-N ranking of free-text tags
- two-half trend classification of a chronological score series
- two-point trend and deltas against the previous period
- nutrition engagement score

All helpers are null-safe: an empty input yields None, never NaN or a
division error.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from core.config import settings


class Trend(str, Enum):
    """Direction of a scored series."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    INSUFFICIENT = "insufficient_data"


# trend_from_halves needs this many points before it will call a direction
MIN_TREND_POINTS = 3

# Engagement score weights (sum to 1.0)
STREAK_WEIGHT = 0.3
TIPS_WEIGHT = 0.4
BADGES_WEIGHT = 0.3
STREAK_TARGET_DAYS = 30
BADGES_TARGET = 5


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round half away from zero for positives (2.5 -> 3), unlike round()'s banker's rounding.

    Returns an int when ndigits == 0.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if ndigits == 0:
        return int(rounded)
    return float(rounded)


def mean_or_none(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def rounded_mean(values: Sequence[float]) -> Optional[int]:
    """Mean rounded half-up to an integer score, or None for no values."""
    avg = mean_or_none(values)
    return round_half_up(avg) if avg is not None else None


def frequency_count(items: Iterable) -> Dict[str, int]:
    """
    Count occurrences of each tag.

    Grouping is by exact string (surrounding whitespace stripped). Blank
    entries and non-strings are skipped. The returned dict preserves
    first-seen order, which rank_descending relies on for tie-breaks.
    """
    counts: Dict[str, int] = {}
    for item in items:
        if not isinstance(item, str):
            continue
        key = item.strip()
        if not key:
            continue
        counts[key] = counts.get(key, 0) + 1
    return counts


def rank_descending(counts: Dict, top_n: int) -> List[Dict]:
    """
    Top-N entries by count, highest first.

    sorted() is stable, so equal counts keep first-insertion order.
    """
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [{"label": label, "count": count} for label, count in ranked[:top_n]]


def top_tags(items: Iterable, top_n: int) -> List[Dict]:
    return rank_descending(frequency_count(items), top_n)


def trend_from_halves(series: Sequence[float], threshold: Optional[float] = None) -> Trend:
    """
    Classify a chronological series by comparing the means of its halves.

    The first half is series[:n // 2]; with an odd length the extra point
    goes to the second half. Fewer than MIN_TREND_POINTS points is STABLE.
    """
    if threshold is None:
        threshold = settings.REPORT_TREND_THRESHOLD
    if len(series) < MIN_TREND_POINTS:
        return Trend.STABLE

    mid = len(series) // 2
    first_avg = mean_or_none(series[:mid])
    second_avg = mean_or_none(series[mid:])

    if second_avg > first_avg + threshold:
        return Trend.IMPROVING
    if second_avg < first_avg - threshold:
        return Trend.DECLINING
    return Trend.STABLE


def trend_vs_previous(
    current: Optional[float],
    previous: Optional[float],
    threshold: Optional[float] = None,
) -> Trend:
    """Two-point trend: this period's average against the previous period's."""
    if threshold is None:
        threshold = settings.REPORT_TREND_THRESHOLD
    if current is None or previous is None:
        return Trend.INSUFFICIENT
    if current > previous + threshold:
        return Trend.IMPROVING
    if current < previous - threshold:
        return Trend.DECLINING
    return Trend.STABLE


def delta_vs_previous(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    if current is None or previous is None:
        return None
    return current - previous


def engagement_score(
    current_streak: int,
    views_this_period: int,
    days_in_period: int,
    badges_earned: int = 0,
) -> int:
    """
    Nutrition engagement on a 0-100 scale.

    30% streak (only days inside the period count, capped at 30),
    40% tip views (target NUTRITION_TIPS_TARGET_PER_DAY over a standard cycle),
    30% badges (capped at 5). Non-decreasing in every argument.
    """
    credited_streak = max(0, min(current_streak or 0, days_in_period or 0))
    views_target = settings.NUTRITION_TIPS_TARGET_PER_DAY * settings.REPORT_CYCLE_DAYS

    streak_score = min(credited_streak / STREAK_TARGET_DAYS, 1) * 100
    tips_score = min(max(views_this_period or 0, 0) / views_target, 1) * 100 if views_target > 0 else 0
    badges_score = min(max(badges_earned or 0, 0) / BADGES_TARGET, 1) * 100

    score = round_half_up(
        streak_score * STREAK_WEIGHT
        + tips_score * TIPS_WEIGHT
        + badges_score * BADGES_WEIGHT
    )
    return max(0, min(100, score))
