"""Backend implementation of StockMovementGateway.

Entries and exits go through the ``create_stock_entry`` /
``create_stock_exit`` procedures, which record the movement and update
the product's stock in one transaction.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any

from stockflow.application.interfaces import StockMovementGateway
from stockflow.application.schemas.filters import StockMovementFilters
from stockflow.domain.dashboard import MovementSample, build_daily_movement_stats, months_ago
from stockflow.domain.entities import (
    DailyMovementStats,
    MovementType,
    MovementsSummary,
    RecentMovement,
    StockMovement,
    StockMovementsResult,
)
from stockflow.domain.exceptions import BackendError
from stockflow.infrastructure.supabase.errors import operation_error
from stockflow.infrastructure.supabase.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

_LIST_COLUMNS = """
    *,
    product:products(id, name, sku, image_url),
    technician:technicians(id, first_name, last_name)
"""
_PRODUCT_HISTORY_COLUMNS = "*, technician:technicians(id, first_name, last_name)"

SUMMARY_WINDOW = timedelta(days=30)


class SupabaseStockMovementGateway(StockMovementGateway):
    def __init__(self, client: SupabaseClient):
        self._client = client

    async def create_entry(
        self,
        organization_id: str,
        product_id: str,
        quantity: int,
        notes: str | None = None,
    ) -> StockMovement:
        try:
            row = await self._client.rpc(
                "create_stock_entry",
                {
                    "p_organization_id": organization_id,
                    "p_product_id": product_id,
                    "p_quantity": quantity,
                    "p_notes": notes or None,
                },
            )
        except BackendError as e:
            raise operation_error("de la création du mouvement", e) from e
        return self._to_entity(row)

    async def create_exit(
        self,
        organization_id: str,
        product_id: str,
        quantity: int,
        movement_type: MovementType,
        technician_id: str | None = None,
        notes: str | None = None,
    ) -> StockMovement:
        try:
            row = await self._client.rpc(
                "create_stock_exit",
                {
                    "p_organization_id": organization_id,
                    "p_product_id": product_id,
                    "p_quantity": quantity,
                    "p_type": MovementType(movement_type).value,
                    "p_technician_id": technician_id or None,
                    "p_notes": notes or None,
                },
            )
        except BackendError as e:
            raise operation_error("de la création du mouvement", e) from e
        return self._to_entity(row)

    async def list_movements(self, filters: StockMovementFilters) -> StockMovementsResult:
        conditions: list[tuple[str, str]] = []
        if filters.organization_id:
            conditions.append(("organization_id", f"eq.{filters.organization_id}"))
        if filters.product_id:
            conditions.append(("product_id", f"eq.{filters.product_id}"))
        if filters.technician_id:
            conditions.append(("technician_id", f"eq.{filters.technician_id}"))
        if filters.movement_type:
            conditions.append(("movement_type", f"eq.{filters.movement_type.value}"))
        if filters.start_date:
            conditions.append(("created_at", f"gte.{filters.start_date}"))
        if filters.end_date:
            conditions.append(("created_at", f"lte.{filters.end_date}"))

        try:
            result = await self._client.select(
                "stock_movements",
                columns=_LIST_COLUMNS,
                filters=conditions,
                order="created_at.desc",
                limit=filters.page_size,
                offset=(filters.page - 1) * filters.page_size,
                count=True,
            )
        except BackendError as e:
            raise operation_error("de la récupération des mouvements", e) from e

        total = result.count or 0
        return StockMovementsResult(
            movements=[self._to_entity(row) for row in result.data],
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            total_pages=math.ceil(total / filters.page_size),
        )

    async def list_product_movements(self, product_id: str, limit: int = 50) -> list[StockMovement]:
        try:
            result = await self._client.select(
                "stock_movements",
                columns=_PRODUCT_HISTORY_COLUMNS,
                filters=[("product_id", f"eq.{product_id}")],
                order="created_at.desc",
                limit=limit,
            )
        except BackendError as e:
            raise operation_error("de la récupération des mouvements", e) from e
        return [self._to_entity(row) for row in result.data]

    async def get_summary(self, organization_id: str | None = None) -> MovementsSummary:
        since = datetime.now(timezone.utc) - SUMMARY_WINDOW
        conditions = [("created_at", f"gte.{since.isoformat()}")]
        if organization_id:
            conditions.append(("organization_id", f"eq.{organization_id}"))

        try:
            result = await self._client.select(
                "stock_movements",
                columns="quantity, movement_type",
                filters=conditions,
            )
        except BackendError as e:
            raise operation_error("de la récupération du résumé", e) from e

        summary = MovementsSummary(recent_movements=len(result.data))
        for row in result.data:
            if row.get("movement_type") == MovementType.ENTRY.value:
                summary.total_entries += row.get("quantity") or 0
            else:
                summary.total_exits += row.get("quantity") or 0
        return summary

    async def get_product_daily_stats(self, product_id: str, months: int = 3) -> list[DailyMovementStats]:
        since = months_ago(datetime.now(timezone.utc), months)
        try:
            result = await self._client.select(
                "stock_movements",
                columns="quantity, movement_type, created_at",
                filters=[("product_id", f"eq.{product_id}"), ("created_at", f"gte.{since.isoformat()}")],
                order="created_at.asc",
            )
        except BackendError as e:
            raise operation_error("de la récupération des statistiques", e) from e
        return build_daily_movement_stats(to_movement_samples(result.data))

    @staticmethod
    def _to_entity(row: dict[str, Any]) -> StockMovement:
        return StockMovement(
            id=row["id"],
            product_id=row.get("product_id", ""),
            quantity=row.get("quantity") or 0,
            movement_type=MovementType(row.get("movement_type", MovementType.ENTRY.value)),
            technician_id=row.get("technician_id"),
            notes=row.get("notes"),
            organization_id=row.get("organization_id"),
            created_at=row.get("created_at"),
        )


def _first(relation: Any) -> dict[str, Any]:
    """Embedded relations may come back as a one-element list."""
    if isinstance(relation, list):
        return relation[0] if relation else {}
    return relation or {}


def to_recent_movement(row: dict[str, Any]) -> RecentMovement:
    product = _first(row.get("product"))
    technician = _first(row.get("technician"))
    technician_name = (
        f"{technician.get('first_name', '')} {technician.get('last_name', '')}".strip()
        if technician
        else None
    )
    return RecentMovement(
        id=row["id"],
        quantity=row.get("quantity") or 0,
        movement_type=MovementType(row.get("movement_type", MovementType.ENTRY.value)),
        created_at=row.get("created_at"),
        notes=row.get("notes"),
        product_id=product.get("id") or row.get("product_id"),
        product_name=product.get("name"),
        product_sku=product.get("sku"),
        product_image_url=product.get("image_url"),
        product_price=product.get("price"),
        technician_id=technician.get("id") or row.get("technician_id"),
        technician_name=technician_name,
    )


def to_movement_samples(rows: list[dict[str, Any]]) -> list[MovementSample]:
    return [
        MovementSample(
            created_at=row.get("created_at") or "",
            movement_type=MovementType(row.get("movement_type", MovementType.ENTRY.value)),
            quantity=row.get("quantity") or 0,
        )
        for row in rows
    ]
