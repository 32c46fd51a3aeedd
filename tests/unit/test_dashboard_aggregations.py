"""Unit tests for the dashboard aggregations (evolution, restock ageing, tasks)."""

from datetime import date, datetime, timezone

import pytest

from stockflow.domain.dashboard import (
    MovementSample,
    ProductLevel,
    build_daily_movement_stats,
    build_dashboard_tasks,
    build_stock_evolution,
    evolution_start,
    has_good_stock,
    is_low_stock,
    months_ago,
    select_technicians_needing_restock,
    shift_month,
)
from stockflow.domain.entities import MovementType, TaskType, TechnicianNeedingRestock


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _sample(created_at: str, movement_type: MovementType, quantity: int) -> MovementSample:
    return MovementSample(created_at=created_at, movement_type=movement_type, quantity=quantity)


# ── Months ──


def test_shift_month_crosses_year_boundaries():
    assert shift_month(date(2026, 1, 31), -1) == date(2025, 12, 1)
    assert shift_month(date(2025, 11, 5), 3) == date(2026, 2, 1)
    assert evolution_start(date(2026, 10, 18), 6) == date(2026, 4, 1)


def test_months_ago_clamps_to_month_end():
    assert months_ago(datetime(2026, 3, 31, 9, tzinfo=timezone.utc), 1) == datetime(
        2026, 2, 28, 9, tzinfo=timezone.utc
    )


# ── Stock evolution ──


def test_evolution_walks_back_from_current_stock():
    movements = [
        _sample("2026-08-03T10:00:00+00:00", MovementType.EXIT_LOSS, 4),
        _sample("2026-09-12T10:00:00+00:00", MovementType.ENTRY, 10),
        _sample("2026-10-01T08:00:00+00:00", MovementType.ENTRY, 20),
        _sample("2026-10-02T08:00:00+00:00", MovementType.EXIT_TECHNICIAN, 5),
    ]

    points = build_stock_evolution(movements, current_stock=100, months=3, today=date(2026, 10, 18))

    assert [(p.date, p.total_stock, p.entries, p.exits) for p in points] == [
        ("2026-08", 75, 0, 4),
        ("2026-09", 85, 10, 0),
        ("2026-10", 100, 20, 5),
    ]


def test_evolution_without_movements_is_flat_across_years():
    points = build_stock_evolution([], current_stock=12, months=3, today=date(2026, 1, 5))

    assert [p.date for p in points] == ["2025-11", "2025-12", "2026-01"]
    assert {p.total_stock for p in points} == {12}


def test_daily_stats_group_by_day_in_order():
    stats = build_daily_movement_stats([
        _sample("2026-10-02T09:00:00Z", MovementType.ENTRY, 3),
        _sample("2026-10-01T09:00:00Z", MovementType.EXIT_ANONYMOUS, 2),
        _sample("2026-10-02T17:00:00Z", MovementType.EXIT_LOSS, 1),
    ])

    assert [(s.date, s.entries, s.exits, s.balance) for s in stats] == [
        ("2026-10-01", 0, 2, -2),
        ("2026-10-02", 3, 1, 2),
    ]


# ── Technicians ──


def test_technicians_needing_restock_most_overdue_first():
    technicians = [
        ("t1", "Ana", "Roux", 1),
        ("t2", "Ben", "Morel", 2),
        ("t3", "Chloé", "Petit", 0),
        ("t4", "Dan", "Leroy", 3),
    ]
    last_restocks = {
        "t1": "2026-10-15T12:00:00Z",
        "t2": "2026-10-01T12:00:00+00:00",
        "t4": "2026-10-11T12:00:00+00:00",
    }

    selected = select_technicians_needing_restock(technicians, last_restocks, NOW, days_threshold=7)

    assert [(t.id, t.days_since_restock, t.last_restock) for t in selected] == [
        ("t2", 17, "2026-10-01T12:00:00+00:00"),
        ("t3", 8, None),
    ]
    assert selected[0].inventory_count == 2


@pytest.mark.parametrize(
    "lines, expected",
    [
        ([], False),
        ([(5, 10), (10, None)], False),
        ([(8, 10), (3, 10)], True),
        ([(50, 0)], True),
    ],
)
def test_has_good_stock(lines, expected):
    assert has_good_stock(lines) is expected


def test_low_stock_uses_the_stock_score():
    assert is_low_stock(3, 5, 20)
    assert not is_low_stock(15, 5, 20)
    assert is_low_stock(15, 5, 20, threshold=70)


# ── Tasks ──


def test_tasks_are_ordered_by_priority():
    products = [
        ProductLevel(id="p0", name="Vis", stock_current=0, stock_min=5, stock_max=20),
        ProductLevel(id="p1", name="Écrou", stock_current=3, stock_min=5, stock_max=20),
        ProductLevel(id="p2", name="Rondelle", stock_current=30, stock_min=5, stock_max=20),
        ProductLevel(id="p3", name="Cheville", stock_current=10, stock_min=5, stock_max=20),
        ProductLevel(id="p4", name="Joint", stock_current=10, stock_min=5, stock_max=20),
    ]
    technicians = [
        TechnicianNeedingRestock(id="t2", first_name="Ben", last_name="Morel",
                                 last_restock="2026-10-01T12:00:00Z", days_since_restock=17),
        TechnicianNeedingRestock(id="t3", first_name="Chloé", last_name="Petit", days_since_restock=8),
    ]

    tasks = build_dashboard_tasks(products, technicians, active_product_ids={"p3"})

    assert [(t.type, t.entity_ids) for t in tasks] == [
        (TaskType.PRODUCT_OUT_OF_STOCK, ["p0"]),
        (TaskType.TECHNICIAN_NEVER_RESTOCKED, ["t3"]),
        (TaskType.PRODUCT_BELOW_MIN, ["p1"]),
        (TaskType.PRODUCT_OVERSTOCKED, ["p2"]),
        (TaskType.TECHNICIAN_LATE_RESTOCK, ["t2"]),
        (TaskType.PRODUCT_DORMANT, ["p4"]),
    ]
    assert tasks[4].description == "Dernier restock il y a 17 jours"


def test_dormant_products_need_activity_data():
    products = [ProductLevel(id="p4", name="Joint", stock_current=10, stock_min=5, stock_max=20)]

    assert build_dashboard_tasks(products, []) == []
