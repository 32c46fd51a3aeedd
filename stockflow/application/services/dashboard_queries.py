"""Cached dashboard reads.

Same contract as InventoryQueries: a read whose organization or entity id
is missing returns None without touching the backend.
"""

from stockflow.application.interfaces import DashboardGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.services.query_cache import QueryCache, StaleTimes
from stockflow.application.services.task_dismissal_store import TaskDismissalStore
from stockflow.domain.dashboard import LOW_STOCK_SCORE
from stockflow.domain.entities import (
    DashboardStats,
    DashboardTask,
    ProductNeedingRestock,
    RecentMovement,
    StockEvolutionPoint,
    TechnicianDashboardStats,
    TechnicianNeedingRestock,
)


class DashboardQueries:
    def __init__(
        self,
        cache: QueryCache,
        dashboard: DashboardGateway,
        task_dismissals: TaskDismissalStore,
        stale_times: StaleTimes | None = None,
    ):
        self._cache = cache
        self._dashboard = dashboard
        self._dismissals = task_dismissals
        self._stale = stale_times or StaleTimes()

    async def get_stats(self, organization_id: str | None) -> DashboardStats | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.dashboard.stats(organization_id),
            lambda: self._dashboard.get_stats(organization_id),
            stale_time=self._stale.realtime,
        )

    async def get_recent_movements(
        self, organization_id: str | None, limit: int = 10
    ) -> list[RecentMovement] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.dashboard.recent_movements(organization_id, limit),
            lambda: self._dashboard.get_recent_movements(organization_id, limit),
            stale_time=self._stale.realtime,
        )

    async def get_products_needing_restock(
        self, organization_id: str | None, score_threshold: int = LOW_STOCK_SCORE
    ) -> list[ProductNeedingRestock] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.dashboard.products_needing_restock(organization_id, score_threshold),
            lambda: self._dashboard.get_products_needing_restock(
                organization_id, score_threshold=score_threshold
            ),
            stale_time=self._stale.moderate,
        )

    async def get_technicians_needing_restock(
        self, organization_id: str | None
    ) -> list[TechnicianNeedingRestock] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.dashboard.technicians_needing_restock(organization_id),
            lambda: self._dashboard.get_technicians_needing_restock(organization_id),
            stale_time=self._stale.moderate,
        )

    async def get_technician_stats(self, organization_id: str | None) -> TechnicianDashboardStats | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.dashboard.technician_stats(organization_id),
            lambda: self._dashboard.get_technician_stats(organization_id),
            stale_time=self._stale.moderate,
        )

    # ── Evolution ───────────────────────────────────────────────────

    async def get_stock_evolution(
        self, organization_id: str | None, months: int = 6
    ) -> list[StockEvolutionPoint] | None:
        if not organization_id:
            return None
        return await self._cache.fetch_query(
            query_keys.dashboard.stock_evolution(organization_id, months),
            lambda: self._dashboard.get_stock_evolution(organization_id, months),
            stale_time=self._stale.slow,
        )

    async def get_product_evolution(self, product_id: str, months: int = 6) -> list[StockEvolutionPoint] | None:
        if not product_id:
            return None
        return await self._cache.fetch_query(
            query_keys.dashboard.product_evolution(product_id, months),
            lambda: self._dashboard.get_product_evolution(product_id, months),
            stale_time=self._stale.slow,
        )

    async def get_category_evolution(
        self, category_id: str, months: int = 6
    ) -> list[StockEvolutionPoint] | None:
        if not category_id:
            return None
        return await self._cache.fetch_query(
            query_keys.dashboard.category_evolution(category_id, months),
            lambda: self._dashboard.get_category_evolution(category_id, months),
            stale_time=self._stale.slow,
        )

    # ── Tasks ───────────────────────────────────────────────────────

    async def get_tasks(self, organization_id: str | None) -> list[DashboardTask] | None:
        """Open tasks, minus those with a dismissed entity.

        The cache holds the full list; dismissals are applied on every read
        so a dismissal shows without refetching.
        """
        if not organization_id:
            return None
        tasks = await self._cache.fetch_query(
            query_keys.dashboard.tasks(organization_id),
            lambda: self._dashboard.get_tasks(organization_id),
            stale_time=self._stale.moderate,
        )
        self._dismissals.clear_expired()
        return [
            task
            for task in tasks
            if not any(
                self._dismissals.is_task_dismissed(task.type.value, entity_id)
                for entity_id in task.entity_ids
            )
        ]

    def dismiss_task(self, task: DashboardTask) -> None:
        for entity_id in task.entity_ids:
            self._dismissals.dismiss_task(task.type.value, entity_id)
