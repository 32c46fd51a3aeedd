"""Pure calculators behind the dashboard gauges and badges.

No I/O, no state: every function maps raw numbers to a derived value.
"""

import math
from dataclasses import dataclass
from typing import Literal

TrendDirection = Literal["up", "down", "stable"]
BadgeVariant = Literal["destructive", "warning", "success"]


def _round_half_up(value: float) -> int:
    """Round .5 towards +infinity (Python's round() rounds half to even)."""
    return math.floor(value + 0.5)


# ── Stock score ──────────────────────────────────────────────────────


def calculate_stock_score(current: float, minimum: float, maximum: float) -> int:
    """Score a product's stock level from 0 to 100.

    - invalid thresholds or negative stock → 0
    - stock ≤ min → 0 (critically low)
    - min < stock ≤ max → linear from 0 to 100
    - max < stock < 2×max → back down linearly from 100
    - stock ≥ 2×max → 0 (critical overstock)

    The branches are evaluated in that order, so ``min == max == current``
    scores 0 while ``current == max + 1`` scores through the overstock
    branch (e.g. 90 for max 10). Callers rely on both values.
    """
    if maximum <= 0 or minimum < 0 or current < 0:
        return 0

    if current <= minimum:
        return 0

    if current <= maximum:
        spread = maximum - minimum
        if spread == 0:
            return 100
        return _round_half_up((current - minimum) / spread * 100)

    if current >= maximum * 2:
        return 0

    overstock_ratio = (current - maximum) / maximum
    return _round_half_up(max(0.0, 100 - overstock_ratio * 100))


def get_stock_score_color(score: float) -> str:
    if score < 30:
        return "text-red-500"
    if score < 60:
        return "text-orange-500"
    return "text-green-500"


def get_stock_score_bg_color(score: float) -> str:
    if score < 30:
        return "bg-red-500"
    if score < 60:
        return "bg-orange-500"
    return "bg-green-500"


def get_stock_status(score: float) -> str:
    """French status label for a stock score."""
    if score == 0:
        return "Critique"
    if score < 30:
        return "Bas"
    if score < 60:
        return "Attention"
    if score < 90:
        return "Bon"
    return "Optimal"


def get_stock_badge_variant(score: float) -> BadgeVariant:
    if score < 30:
        return "destructive"
    if score < 60:
        return "warning"
    return "success"


# ── Trends ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TrendResult:
    direction: TrendDirection
    percentage: float


def compute_trend(current: float, previous: float) -> TrendResult:
    """Direction and absolute percentage change from ``previous`` to ``current``.

    Changes under half a percent are reported as stable; the percentage is
    rounded to one decimal.
    """
    if previous == 0:
        if current == 0:
            return TrendResult("stable", 0)
        return TrendResult("up", 100)

    change = (current - previous) / abs(previous) * 100
    rounded = _round_half_up(abs(change) * 10) / 10

    if abs(change) < 0.5:
        return TrendResult("stable", 0)

    return TrendResult("up" if change > 0 else "down", rounded)


# ── Technician inventory ─────────────────────────────────────────────


def calculate_inventory_percentage(quantity: float, stock_max: float) -> int:
    """Share of a product's max stock held by a technician, capped at 100."""
    if stock_max <= 0:
        return 0
    return min(100, _round_half_up(quantity / stock_max * 100))
