"""Read-side service — cached, deduplicated reads keyed by the registry.

A read whose required id is missing returns None without touching the
backend, so callers can issue reads before a selection exists.
"""

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
from stockflow.application.services.query_cache import QueryCache, StaleTimes
from stockflow.domain.entities import (
    AvailableProduct,
    Category,
    CategoryNode,
    DailyMovementStats,
    MovementsSummary,
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    Product,
    ProductsResult,
    ProductStats,
    RecentMovement,
    StockMovement,
    StockMovementsResult,
    Technician,
    TechnicianInventoryHistoryEntry,
    TechnicianInventoryItem,
    TechniciansStats,
    build_category_tree,
)


class InventoryQueries:
    """Orchestrates cached reads. Depends on the gateway ports and the cache (DI)."""

    def __init__(
        self,
        cache: QueryCache,
        *,
        products: ProductGateway,
        movements: StockMovementGateway,
        categories: CategoryGateway,
        technicians: TechnicianGateway,
        organizations: OrganizationGateway,
        inventory: InventoryGateway,
        technician_activity: TechnicianActivityGateway,
        stale_times: StaleTimes | None = None,
    ):
        self._cache = cache
        self._products = products
        self._movements = movements
        self._categories = categories
        self._technicians = technicians
        self._organizations = organizations
        self._inventory = inventory
        self._technician_activity = technician_activity
        self._stale = stale_times or StaleTimes()

    # ── Products ────────────────────────────────────────────────────

    async def get_products(self, filters: ProductFilters) -> ProductsResult | None:
        if not filters.organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.products.list(filters),
            lambda: self._products.list_products(filters),
            stale_time=self._stale.realtime,
        )

    async def get_product(self, product_id: str) -> Product | None:
        if not product_id:
            return None
        return await self._cache.fetch_query(
            query_keys.products.detail(product_id),
            lambda: self._products.get_product(product_id),
            stale_time=self._stale.realtime,
        )

    async def get_product_stats(self, organization_id: str | None) -> ProductStats | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.products.stats(organization_id),
            lambda: self._products.get_stats(organization_id),
            stale_time=self._stale.moderate,
        )

    # ── Movements ───────────────────────────────────────────────────

    async def get_movements(self, filters: StockMovementFilters) -> StockMovementsResult | None:
        if not filters.organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.movements.list(filters),
            lambda: self._movements.list_movements(filters),
            stale_time=self._stale.realtime,
        )

    async def get_product_movements(self, product_id: str, limit: int = 50) -> list[StockMovement] | None:
        if not product_id:
            return None
        return await self._cache.fetch_query(
            query_keys.movements.by_product(product_id),
            lambda: self._movements.list_product_movements(product_id, limit),
            stale_time=self._stale.realtime,
        )

    async def get_movements_summary(self, organization_id: str | None) -> MovementsSummary | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.movements.summary(organization_id),
            lambda: self._movements.get_summary(organization_id),
            stale_time=self._stale.moderate,
        )

    async def get_product_movement_stats(
        self, product_id: str, months: int = 3
    ) -> list[DailyMovementStats] | None:
        if not product_id:
            return None
        return await self._cache.fetch_query(
            query_keys.movements.stats(product_id, months),
            lambda: self._movements.get_product_daily_stats(product_id, months),
            stale_time=self._stale.moderate,
        )

    # ── Categories & technicians ────────────────────────────────────

    async def get_categories(self, organization_id: str | None) -> list[Category] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.categories.list(organization_id),
            lambda: self._categories.list_categories(organization_id),
            stale_time=self._stale.slow,
        )

    async def get_category_tree(self, organization_id: str | None) -> list[CategoryNode] | None:
        if not organization_id:
            return None

        async def fetch_tree() -> list[CategoryNode]:
            return build_category_tree(await self._categories.list_categories(organization_id))

        return await self._cache.fetch_query(
            query_keys.categories.tree(organization_id),
            fetch_tree,
            stale_time=self._stale.slow,
        )

    async def get_category(self, category_id: str) -> Category | None:
        if not category_id:
            return None
        return await self._cache.fetch_query(
            query_keys.categories.detail(category_id),
            lambda: self._categories.get_category(category_id),
            stale_time=self._stale.slow,
        )

    async def get_technicians(self, organization_id: str | None) -> list[Technician] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.technicians.list(organization_id),
            lambda: self._technicians.list_technicians(organization_id),
            stale_time=self._stale.realtime,
        )

    async def get_technician(self, technician_id: str) -> Technician | None:
        if not technician_id:
            return None
        return await self._cache.fetch_query(
            query_keys.technicians.detail(technician_id),
            lambda: self._technicians.get_technician(technician_id),
            stale_time=self._stale.realtime,
        )

    async def get_technicians_stats(self, organization_id: str | None) -> TechniciansStats | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.technicians.stats(organization_id),
            lambda: self._technician_activity.get_stats(organization_id),
            stale_time=self._stale.moderate,
        )

    async def get_technician_inventory(self, technician_id: str) -> list[TechnicianInventoryItem] | None:
        if not technician_id:
            return None
        return await self._cache.fetch_query(
            query_keys.technicians.inventory(technician_id),
            lambda: self._technician_activity.list_inventory(technician_id),
            stale_time=self._stale.realtime,
        )

    async def get_technician_history(
        self, technician_id: str
    ) -> list[TechnicianInventoryHistoryEntry] | None:
        if not technician_id:
            return None
        return await self._cache.fetch_query(
            query_keys.technicians.history(technician_id),
            lambda: self._technician_activity.list_inventory_history(technician_id),
            stale_time=self._stale.realtime,
        )

    async def get_technician_movements(self, technician_id: str) -> list[RecentMovement] | None:
        if not technician_id:
            return None
        return await self._cache.fetch_query(
            query_keys.technicians.movements(technician_id),
            lambda: self._technician_activity.list_restock_movements(technician_id),
            stale_time=self._stale.realtime,
        )

    # ── Organizations ───────────────────────────────────────────────

    async def get_organizations(self) -> list[Organization]:
        return await self._cache.fetch_query(
            query_keys.organizations.list(),
            self._organizations.list_user_organizations,
            stale_time=self._stale.slow,
        )

    async def get_members(self, organization_id: str | None) -> list[OrganizationMember] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.organizations.members(organization_id),
            lambda: self._organizations.list_members(organization_id),
            stale_time=self._stale.slow,
        )

    async def get_invitations(self, organization_id: str | None) -> list[OrganizationInvitation] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.organizations.invitations(organization_id),
            lambda: self._organizations.list_pending_invitations(organization_id),
            stale_time=self._stale.slow,
        )

    # ── Inventory ───────────────────────────────────────────────────

    async def get_available_products(self, organization_id: str | None) -> list[AvailableProduct] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.inventory.available_products(organization_id),
            lambda: self._inventory.list_available_products(organization_id),
            stale_time=self._stale.realtime,
        )
