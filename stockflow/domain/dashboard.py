"""Pure aggregations behind the dashboard reads.

The gateways fetch raw rows; these functions turn them into read models.
Dates are passed in so results do not depend on the wall clock.
"""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from stockflow.domain.entities import (
    DailyMovementStats,
    DashboardTask,
    MovementType,
    StockEvolutionPoint,
    TaskPriority,
    TaskType,
    TechnicianNeedingRestock,
)
from stockflow.domain.stock_metrics import _round_half_up, calculate_stock_score

LOW_STOCK_SCORE = 30
RESTOCK_DAYS_THRESHOLD = 7
GOOD_TECHNICIAN_STOCK = 50
DEFAULT_STOCK_MAX = 100

_PRIORITY_ORDER = {
    TaskPriority.CRITICAL: 0,
    TaskPriority.IMPORTANT: 1,
    TaskPriority.INFORMATIONAL: 2,
}


# ── Months ───────────────────────────────────────────────────────────


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def shift_month(value: date, months: int) -> date:
    """First day of the month ``months`` away from ``value`` (negative goes back)."""
    index = value.year * 12 + value.month - 1 + months
    return date(index // 12, index % 12 + 1, 1)


def evolution_start(today: date, months: int) -> date:
    """First day of the oldest month whose movements feed an evolution."""
    return shift_month(today, -months)


# ── Stock evolution ──────────────────────────────────────────────────


@dataclass(frozen=True)
class MovementSample:
    created_at: str
    movement_type: MovementType
    quantity: int


def build_stock_evolution(
    movements: Iterable[MovementSample],
    current_stock: int,
    months: int,
    today: date,
) -> list[StockEvolutionPoint]:
    """Monthly stock levels, oldest first, ending with the current month.

    The current month holds ``current_stock``; each earlier month is
    rebuilt by undoing the movements of the month after it.
    """
    totals: dict[str, list[int]] = {}
    for movement in movements:
        bucket = totals.setdefault(movement.created_at[:7], [0, 0])
        if movement.movement_type is MovementType.ENTRY:
            bucket[0] += movement.quantity
        else:
            bucket[1] += movement.quantity

    points: list[StockEvolutionPoint] = []
    stock = current_stock
    for offset in range(months):
        key = month_key(shift_month(today, -offset))
        entries, exits = totals.get(key, (0, 0))
        points.append(StockEvolutionPoint(date=key, total_stock=stock, entries=entries, exits=exits))
        stock = stock - entries + exits

    points.reverse()
    return points


# ── Daily movement stats ──────────────────────────────────────────


def months_ago(now: datetime, months: int) -> datetime:
    """Same day and time ``months`` months earlier, clamped to the month's last day."""
    first = shift_month(now.date(), -months)
    day = min(now.day, calendar.monthrange(first.year, first.month)[1])
    return now.replace(year=first.year, month=first.month, day=day)


def build_daily_movement_stats(movements: Iterable[MovementSample]) -> list[DailyMovementStats]:
    """Group movements by calendar day, oldest day first."""
    days: dict[str, DailyMovementStats] = {}
    for movement in movements:
        key = movement.created_at[:10]
        stats = days.setdefault(key, DailyMovementStats(date=key))
        if movement.movement_type is MovementType.ENTRY:
            stats.entries += movement.quantity
        else:
            stats.exits += movement.quantity
    return [days[key] for key in sorted(days)]


# ── Technicians ──────────────────────────────────────────────────────


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def days_since(timestamp: str, now: datetime) -> int:
    return (now - _parse_timestamp(timestamp)).days


def select_technicians_needing_restock(
    technicians: Iterable[tuple[str, str, str, int]],
    last_restocks: dict[str, str],
    now: datetime,
    days_threshold: int = RESTOCK_DAYS_THRESHOLD,
) -> list[TechnicianNeedingRestock]:
    """Technicians never restocked, or last restocked over ``days_threshold`` days ago.

    ``technicians`` yields ``(id, first_name, last_name, inventory_count)``.
    A technician never restocked counts as ``days_threshold + 1`` days.
    Most overdue first.
    """
    selected: list[TechnicianNeedingRestock] = []
    for technician_id, first_name, last_name, inventory_count in technicians:
        last = last_restocks.get(technician_id)
        days = days_since(last, now) if last else days_threshold + 1
        if last and days <= days_threshold:
            continue
        selected.append(
            TechnicianNeedingRestock(
                id=technician_id,
                first_name=first_name,
                last_name=last_name,
                last_restock=last,
                days_since_restock=days,
                inventory_count=inventory_count,
            )
        )
    selected.sort(key=lambda t: t.days_since_restock, reverse=True)
    return selected


def has_good_stock(lines: Iterable[tuple[int, int | None]]) -> bool:
    """Whether a technician's ``(quantity, stock_max)`` lines average at least half full.

    An empty inventory is never good; a missing max counts as 100.
    """
    percentages = [
        _round_half_up(quantity / (stock_max or DEFAULT_STOCK_MAX) * 100)
        for quantity, stock_max in lines
    ]
    if not percentages:
        return False
    return sum(percentages) / len(percentages) >= GOOD_TECHNICIAN_STOCK


# ── Tasks ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProductLevel:
    id: str
    name: str
    stock_current: int
    stock_min: int
    stock_max: int


def build_dashboard_tasks(
    products: Iterable[ProductLevel],
    technicians: Iterable[TechnicianNeedingRestock],
    active_product_ids: set[str] | None = None,
) -> list[DashboardTask]:
    """One task per product or technician needing attention, most urgent first.

    Products get at most one stock task. When ``active_product_ids`` is
    given, stocked products absent from it are reported as dormant.
    """
    tasks: list[DashboardTask] = []

    for product in products:
        task = _product_task(product)
        if task is None and active_product_ids is not None:
            if product.stock_current > 0 and product.id not in active_product_ids:
                task = DashboardTask(
                    type=TaskType.PRODUCT_DORMANT,
                    priority=TaskPriority.INFORMATIONAL,
                    title=f"Produit dormant : {product.name}",
                    entity_ids=[product.id],
                )
        if task is not None:
            tasks.append(task)

    for technician in technicians:
        if technician.last_restock is None:
            tasks.append(
                DashboardTask(
                    type=TaskType.TECHNICIAN_NEVER_RESTOCKED,
                    priority=TaskPriority.CRITICAL,
                    title=f"Jamais restocké : {technician.full_name}",
                    entity_ids=[technician.id],
                )
            )
        else:
            tasks.append(
                DashboardTask(
                    type=TaskType.TECHNICIAN_LATE_RESTOCK,
                    priority=TaskPriority.IMPORTANT,
                    title=f"Restock en retard : {technician.full_name}",
                    description=f"Dernier restock il y a {technician.days_since_restock} jours",
                    entity_ids=[technician.id],
                )
            )

    tasks.sort(key=lambda t: _PRIORITY_ORDER[t.priority])
    return tasks


def _product_task(product: ProductLevel) -> DashboardTask | None:
    if product.stock_current <= 0:
        return DashboardTask(
            type=TaskType.PRODUCT_OUT_OF_STOCK,
            priority=TaskPriority.CRITICAL,
            title=f"Rupture de stock : {product.name}",
            entity_ids=[product.id],
        )
    if product.stock_current <= product.stock_min:
        return DashboardTask(
            type=TaskType.PRODUCT_BELOW_MIN,
            priority=TaskPriority.IMPORTANT,
            title=f"Stock sous le minimum : {product.name}",
            description=f"{product.stock_current} / min {product.stock_min}",
            entity_ids=[product.id],
        )
    if product.stock_max > 0 and product.stock_current > product.stock_max:
        return DashboardTask(
            type=TaskType.PRODUCT_OVERSTOCKED,
            priority=TaskPriority.IMPORTANT,
            title=f"Surstockage : {product.name}",
            description=f"{product.stock_current} / max {product.stock_max}",
            entity_ids=[product.id],
        )
    return None


def is_low_stock(stock_current: int, stock_min: int, stock_max: int, threshold: int = LOW_STOCK_SCORE) -> bool:
    return calculate_stock_score(stock_current, stock_min, stock_max) < threshold
