"""Unit tests for InventoryQueries — cached reads over the gateway ports."""

from unittest.mock import MagicMock

import pytest

from stockflow.application.interfaces import (
    CategoryGateway,
    InventoryGateway,
    OrganizationGateway,
    ProductGateway,
    StockMovementGateway,
    TechnicianActivityGateway,
    TechnicianGateway,
)
from stockflow.application.query_keys import query_keys
from stockflow.application.schemas import ProductFilters, StockMovementFilters
from stockflow.application.services import InventoryQueries, QueryCache, StaleTimes
from stockflow.domain.entities import (
    Category,
    DailyMovementStats,
    MovementsSummary,
    Product,
    ProductsResult,
    ProductStats,
    TechnicianInventoryItem,
    TechniciansStats,
)


# ── Helpers ──


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _make_queries():
    clock = FakeClock()
    cache = QueryCache(retry=0, clock=clock)
    gateways = {
        "products": MagicMock(spec=ProductGateway),
        "movements": MagicMock(spec=StockMovementGateway),
        "categories": MagicMock(spec=CategoryGateway),
        "technicians": MagicMock(spec=TechnicianGateway),
        "organizations": MagicMock(spec=OrganizationGateway),
        "inventory": MagicMock(spec=InventoryGateway),
        "technician_activity": MagicMock(spec=TechnicianActivityGateway),
    }
    queries = InventoryQueries(
        cache, stale_times=StaleTimes(realtime=30, moderate=60, slow=300), **gateways
    )
    return queries, gateways, cache, clock


# ── Tests ──


@pytest.mark.asyncio
async def test_reads_without_organization_skip_backend():
    queries, gateways, _, _ = _make_queries()

    assert await queries.get_products(ProductFilters()) is None
    assert await queries.get_movements(StockMovementFilters()) is None
    assert await queries.get_product_stats(None) is None
    assert await queries.get_movements_summary("") is None
    assert await queries.get_categories(None) is None
    assert await queries.get_technicians(None) is None
    assert await queries.get_members(None) is None
    assert await queries.get_invitations(None) is None
    assert await queries.get_available_products(None) is None
    assert await queries.get_product("") is None
    assert await queries.get_technician("") is None
    assert await queries.get_technicians_stats(None) is None
    assert await queries.get_technician_inventory("") is None
    assert await queries.get_technician_history("") is None
    assert await queries.get_technician_movements("") is None
    assert await queries.get_category_tree(None) is None
    assert await queries.get_category("") is None
    assert await queries.get_product_movement_stats("") is None

    for gateway in gateways.values():
        assert gateway.method_calls == []


@pytest.mark.asyncio
async def test_products_page_is_cached_under_its_filters():
    queries, gateways, cache, _ = _make_queries()
    page = ProductsResult(products=[Product(id="p1", name="Vis")], total=1, total_pages=1)
    gateways["products"].list_products.return_value = page
    filters = ProductFilters(organization_id="org-1", search="vis")

    first = await queries.get_products(filters)
    second = await queries.get_products(ProductFilters(organization_id="org-1", search="vis"))

    assert first is page and second is page
    gateways["products"].list_products.assert_awaited_once_with(filters)
    assert cache.get_query_data(query_keys.products.list(filters)) is page


@pytest.mark.asyncio
async def test_realtime_reads_refetch_after_stale_time():
    queries, gateways, _, clock = _make_queries()
    gateways["products"].get_product.side_effect = [
        Product(id="p1", name="Vis", stock_current=5),
        Product(id="p1", name="Vis", stock_current=8),
    ]

    assert (await queries.get_product("p1")).stock_current == 5
    clock.now = 29
    assert (await queries.get_product("p1")).stock_current == 5
    clock.now = 30
    assert (await queries.get_product("p1")).stock_current == 8


@pytest.mark.asyncio
async def test_aggregates_use_moderate_stale_time():
    queries, gateways, _, clock = _make_queries()
    gateways["products"].get_stats.return_value = ProductStats(total=4)
    gateways["movements"].get_summary.return_value = MovementsSummary(total_entries=2)

    await queries.get_product_stats("org-1")
    await queries.get_movements_summary("org-1")
    clock.now = 45
    await queries.get_product_stats("org-1")
    await queries.get_movements_summary("org-1")

    assert gateways["products"].get_stats.await_count == 1
    assert gateways["movements"].get_summary.await_count == 1


@pytest.mark.asyncio
async def test_categories_use_slow_stale_time():
    queries, gateways, _, clock = _make_queries()
    gateways["categories"].list_categories.return_value = [Category(id="c1", name="Visserie")]

    await queries.get_categories("org-1")
    clock.now = 299
    await queries.get_categories("org-1")
    clock.now = 300
    await queries.get_categories("org-1")

    assert gateways["categories"].list_categories.await_count == 2


@pytest.mark.asyncio
async def test_invalidated_read_refetches_immediately():
    queries, gateways, cache, _ = _make_queries()
    gateways["technicians"].list_technicians.return_value = []

    await queries.get_technicians("org-1")
    cache.invalidate_queries(query_keys.technicians.all)
    await queries.get_technicians("org-1")

    assert gateways["technicians"].list_technicians.await_count == 2


@pytest.mark.asyncio
async def test_product_movements_pass_limit():
    queries, gateways, _, _ = _make_queries()
    gateways["movements"].list_product_movements.return_value = []

    await queries.get_product_movements("p1", limit=10)

    gateways["movements"].list_product_movements.assert_awaited_once_with("p1", 10)


@pytest.mark.asyncio
async def test_organizations_are_read_for_the_session():
    queries, gateways, cache, _ = _make_queries()
    gateways["organizations"].list_user_organizations.return_value = []

    assert await queries.get_organizations() == []
    assert cache.get_query_data(query_keys.organizations.list()) == []


@pytest.mark.asyncio
async def test_category_tree_is_built_from_the_list():
    queries, gateways, cache, _ = _make_queries()
    gateways["categories"].list_categories.return_value = [
        Category(id="c1", name="Visserie"),
        Category(id="c2", name="Vis inox", parent_id="c1"),
        Category(id="c3", name="Orpheline", parent_id="gone"),
    ]

    tree = await queries.get_category_tree("org-1")

    assert [node.category.id for node in tree] == ["c1", "c3"]
    assert [child.category.id for child in tree[0].children] == ["c2"]
    assert cache.get_query_data(query_keys.categories.tree("org-1")) is tree
    gateways["categories"].list_categories.assert_awaited_once_with("org-1")


@pytest.mark.asyncio
async def test_category_detail_is_cached_under_its_id():
    queries, gateways, cache, _ = _make_queries()
    category = Category(id="c1", name="Visserie")
    gateways["categories"].get_category.return_value = category

    assert await queries.get_category("c1") is category
    assert cache.get_query_data(query_keys.categories.detail("c1")) is category


@pytest.mark.asyncio
async def test_product_movement_stats_are_keyed_by_months():
    queries, gateways, cache, _ = _make_queries()
    daily = [DailyMovementStats(date="2026-10-01", entries=5, exits=2)]
    gateways["movements"].get_product_daily_stats.return_value = daily

    assert await queries.get_product_movement_stats("p1", months=6) is daily

    gateways["movements"].get_product_daily_stats.assert_awaited_once_with("p1", 6)
    assert cache.get_query_data(query_keys.movements.stats("p1", 6)) is daily
    assert daily[0].balance == 3


@pytest.mark.asyncio
async def test_technician_activity_reads_use_their_keys():
    queries, gateways, cache, _ = _make_queries()
    activity = gateways["technician_activity"]
    item = TechnicianInventoryItem(id="i1", technician_id="t1", product_id="p1", quantity=3)
    activity.list_inventory.return_value = [item]
    activity.list_inventory_history.return_value = []
    activity.list_restock_movements.return_value = []

    await queries.get_technician_inventory("t1")
    await queries.get_technician_history("t1")
    await queries.get_technician_movements("t1")

    assert cache.get_query_data(query_keys.technicians.inventory("t1")) == [item]
    assert cache.get_query_data(query_keys.technicians.history("t1")) == []
    assert cache.get_query_data(query_keys.technicians.movements("t1")) == []
    activity.list_restock_movements.assert_awaited_once_with("t1")


@pytest.mark.asyncio
async def test_technicians_stats_use_moderate_stale_time():
    queries, gateways, _, clock = _make_queries()
    gateways["technician_activity"].get_stats.return_value = TechniciansStats(total_technicians=2)

    await queries.get_technicians_stats("org-1")
    clock.now = 59
    stats = await queries.get_technicians_stats("org-1")
    clock.now = 60
    await queries.get_technicians_stats("org-1")

    assert stats.total_technicians == 2
    assert gateways["technician_activity"].get_stats.await_count == 2
