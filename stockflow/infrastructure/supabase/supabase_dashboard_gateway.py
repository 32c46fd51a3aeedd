"""Backend implementation of DashboardGateway.

The backend exposes no aggregate for these reads: each method selects the
raw rows and folds them with the helpers in ``stockflow.domain.dashboard``.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from typing import Any

from stockflow.application.interfaces import DashboardGateway
from stockflow.domain.dashboard import (
    LOW_STOCK_SCORE,
    RESTOCK_DAYS_THRESHOLD,
    ProductLevel,
    build_dashboard_tasks,
    build_stock_evolution,
    evolution_start,
    has_good_stock,
    is_low_stock,
    select_technicians_needing_restock,
)
from stockflow.domain.entities import (
    DashboardStats,
    DashboardTask,
    MovementType,
    ProductNeedingRestock,
    RecentMovement,
    StockEvolutionPoint,
    TechnicianDashboardStats,
    TechnicianNeedingRestock,
)
from stockflow.domain.exceptions import BackendError
from stockflow.domain.stock_metrics import calculate_stock_score
from stockflow.infrastructure.supabase.errors import operation_error
from stockflow.infrastructure.supabase.supabase_client import Filter, SupabaseClient
from stockflow.infrastructure.supabase.supabase_stock_movement_gateway import (
    to_movement_samples,
    to_recent_movement,
)

logger = logging.getLogger(__name__)

_RECENT_MOVEMENT_COLUMNS = """
    id, quantity, movement_type, created_at, notes,
    product:products(id, name, sku, image_url, price),
    technician:technicians(id, first_name, last_name)
"""
_RESTOCK_COLUMNS = "id, name, sku, image_url, stock_current, stock_min, stock_max"

DORMANT_WINDOW = timedelta(days=90)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _org_filter(organization_id: str | None) -> list[Filter]:
    return [("organization_id", f"eq.{organization_id}")] if organization_id else []


def _start_of(day: date) -> str:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc).isoformat()


class SupabaseDashboardGateway(DashboardGateway):
    def __init__(self, client: SupabaseClient, clock: Callable[[], datetime] = _utc_now):
        self._client = client
        self._clock = clock

    async def get_stats(self, organization_id: str | None = None) -> DashboardStats:
        products = await self._select(
            "products",
            "de la récupération des produits",
            columns="stock_current, stock_min, stock_max, price",
            filters=_org_filter(organization_id),
        )

        stats = DashboardStats(total_products=len(products))
        for row in products:
            current = row.get("stock_current") or 0
            stats.total_stock += current
            stats.total_value += current * (row.get("price") or 0)
            if is_low_stock(current, row.get("stock_min") or 0, row.get("stock_max") or 0):
                stats.low_stock_count += 1

        month_start = self._clock().date().replace(day=1)
        movements = await self._select(
            "stock_movements",
            "de la récupération des mouvements",
            columns="quantity, movement_type",
            filters=[("created_at", f"gte.{_start_of(month_start)}"), *_org_filter(organization_id)],
        )
        for row in movements:
            if row.get("movement_type") == MovementType.ENTRY.value:
                stats.monthly_entries += row.get("quantity") or 0
            else:
                stats.monthly_exits += row.get("quantity") or 0
        return stats

    async def get_products_needing_restock(
        self,
        organization_id: str | None = None,
        limit: int = 10,
        score_threshold: int = LOW_STOCK_SCORE,
    ) -> list[ProductNeedingRestock]:
        rows = await self._select(
            "products",
            "de la récupération des produits",
            columns=_RESTOCK_COLUMNS,
            filters=_org_filter(organization_id),
            order="stock_current.asc",
        )

        scored = [
            ProductNeedingRestock(
                id=row["id"],
                name=row.get("name", ""),
                sku=row.get("sku") or "",
                image_url=row.get("image_url"),
                stock_current=row.get("stock_current") or 0,
                stock_min=row.get("stock_min") or 0,
                stock_max=row.get("stock_max") or 0,
                score=calculate_stock_score(
                    row.get("stock_current") or 0, row.get("stock_min") or 0, row.get("stock_max") or 0
                ),
            )
            for row in rows
        ]
        needing = [product for product in scored if product.score < score_threshold]
        needing.sort(key=lambda p: p.score)
        return needing[:limit]

    async def get_technicians_needing_restock(
        self, organization_id: str | None = None, days_threshold: int = RESTOCK_DAYS_THRESHOLD
    ) -> list[TechnicianNeedingRestock]:
        technicians = await self._select(
            "technicians",
            "de la récupération des techniciens",
            columns="id, first_name, last_name, technician_inventory(id)",
            filters=_org_filter(organization_id),
        )
        history = await self._select(
            "technician_inventory_history",
            "de la récupération de l'historique",
            columns="technician_id, created_at",
            filters=_org_filter(organization_id),
            order="created_at.desc",
        )

        # Newest first: the first entry seen per technician is their last restock.
        last_restocks: dict[str, str] = {}
        for row in history:
            if row.get("created_at"):
                last_restocks.setdefault(row["technician_id"], row["created_at"])

        return select_technicians_needing_restock(
            (
                (
                    row["id"],
                    row.get("first_name", ""),
                    row.get("last_name", ""),
                    len(row.get("technician_inventory") or []),
                )
                for row in technicians
            ),
            last_restocks,
            self._clock(),
            days_threshold,
        )

    async def get_recent_movements(
        self, organization_id: str | None = None, limit: int = 10
    ) -> list[RecentMovement]:
        rows = await self._select(
            "stock_movements",
            "de la récupération des mouvements",
            columns=_RECENT_MOVEMENT_COLUMNS,
            filters=_org_filter(organization_id),
            order="created_at.desc",
            limit=limit,
        )
        return [to_recent_movement(row) for row in rows]

    # ── Evolution ───────────────────────────────────────────────────

    async def get_stock_evolution(
        self, organization_id: str | None = None, months: int = 6
    ) -> list[StockEvolutionPoint]:
        products = await self._select(
            "products",
            "de la récupération des produits",
            columns="stock_current",
            filters=_org_filter(organization_id),
        )
        return await self._evolution(
            _org_filter(organization_id),
            sum(row.get("stock_current") or 0 for row in products),
            months,
        )

    async def get_product_evolution(self, product_id: str, months: int = 6) -> list[StockEvolutionPoint]:
        try:
            product = await self._client.select_single(
                "products", columns="stock_current", filters=[("id", f"eq.{product_id}")]
            )
        except BackendError as e:
            raise operation_error("de la récupération du produit", e) from e
        return await self._evolution(
            [("product_id", f"eq.{product_id}")], product.get("stock_current") or 0, months
        )

    async def get_category_evolution(self, category_id: str, months: int = 6) -> list[StockEvolutionPoint]:
        products = await self._select(
            "products",
            "de la récupération des produits",
            columns="id, stock_current",
            filters=[("category_id", f"eq.{category_id}")],
        )
        current_stock = sum(row.get("stock_current") or 0 for row in products)
        if not products:
            return build_stock_evolution([], current_stock, months, self._clock().date())

        ids = ",".join(row["id"] for row in products)
        return await self._evolution([("product_id", f"in.({ids})")], current_stock, months)

    async def _evolution(
        self, filters: list[Filter], current_stock: int, months: int
    ) -> list[StockEvolutionPoint]:
        today = self._clock().date()
        rows = await self._select(
            "stock_movements",
            "de la récupération des mouvements",
            columns="quantity, movement_type, created_at",
            filters=[("created_at", f"gte.{_start_of(evolution_start(today, months))}"), *filters],
            order="created_at.asc",
        )
        return build_stock_evolution(to_movement_samples(rows), current_stock, months, today)

    # ── Technicians & tasks ─────────────────────────────────────────

    async def get_technician_stats(
        self, organization_id: str | None = None, needing_restock_count: int | None = None
    ) -> TechnicianDashboardStats:
        technicians = await self._select(
            "technicians",
            "de la récupération des techniciens",
            columns="id, technician_inventory(quantity, product:products(stock_max))",
            filters=_org_filter(organization_id),
        )

        stats = TechnicianDashboardStats(total=len(technicians))
        for row in technicians:
            lines = [
                (item.get("quantity") or 0, (item.get("product") or {}).get("stock_max"))
                for item in row.get("technician_inventory") or []
            ]
            if has_good_stock(lines):
                stats.with_good_stock += 1
            else:
                stats.with_low_stock += 1

        if needing_restock_count is None:
            needing_restock_count = len(await self.get_technicians_needing_restock(organization_id))
        stats.needing_restock = needing_restock_count
        return stats

    async def get_tasks(self, organization_id: str | None = None) -> list[DashboardTask]:
        products = await self._select(
            "products",
            "de la récupération des produits",
            columns="id, name, stock_current, stock_min, stock_max",
            filters=_org_filter(organization_id),
        )
        since = self._clock() - DORMANT_WINDOW
        movements = await self._select(
            "stock_movements",
            "de la récupération des mouvements",
            columns="product_id",
            filters=[("created_at", f"gte.{since.isoformat()}"), *_org_filter(organization_id)],
        )
        technicians = await self.get_technicians_needing_restock(organization_id)

        tasks = build_dashboard_tasks(
            (
                ProductLevel(
                    id=row["id"],
                    name=row.get("name", ""),
                    stock_current=row.get("stock_current") or 0,
                    stock_min=row.get("stock_min") or 0,
                    stock_max=row.get("stock_max") or 0,
                )
                for row in products
            ),
            technicians,
            active_product_ids={row["product_id"] for row in movements if row.get("product_id")},
        )
        logger.debug("Built %d dashboard task(s) for organization %s", len(tasks), organization_id)
        return tasks

    async def _select(self, table: str, action: str, **kwargs: Any) -> list[dict[str, Any]]:
        try:
            result = await self._client.select(table, **kwargs)
        except BackendError as e:
            raise operation_error(action, e) from e
        return result.data
