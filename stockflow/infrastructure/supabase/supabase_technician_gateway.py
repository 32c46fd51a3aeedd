"""Backend implementation of TechnicianGateway and TechnicianActivityGateway."""

from datetime import datetime, timedelta, timezone
from typing import Any

from stockflow.application.interfaces import TechnicianActivityGateway, TechnicianGateway
from stockflow.application.schemas.technician import TechnicianCreate
from stockflow.domain.entities import (
    MovementType,
    RecentMovement,
    Technician,
    TechnicianInventoryHistoryEntry,
    TechnicianInventoryItem,
    TechnicianInventorySnapshotItem,
    TechniciansStats,
)
from stockflow.domain.exceptions import BackendError, EntityNotFoundError
from stockflow.infrastructure.supabase.errors import duplicate_or_operation_error, operation_error
from stockflow.infrastructure.supabase.supabase_client import NO_ROWS, SupabaseClient
from stockflow.infrastructure.supabase.supabase_stock_movement_gateway import to_recent_movement

DUPLICATE_EMAIL = "Un technicien avec cet email existe déjà"

_INVENTORY_COLUMNS = "*, product:products(id, name, sku, image_url, stock_max)"
_RESTOCK_MOVEMENT_COLUMNS = """
    id, product_id, quantity, movement_type, notes, created_at,
    product:products(id, name, sku, image_url)
"""

RECENT_RESTOCK_WINDOW = timedelta(days=7)


class SupabaseTechnicianGateway(TechnicianGateway, TechnicianActivityGateway):
    def __init__(self, client: SupabaseClient):
        self._client = client

    async def list_technicians(self, organization_id: str | None = None) -> list[Technician]:
        # One round trip: the procedure joins and aggregates each inventory.
        try:
            rows = await self._client.rpc(
                "get_technicians_with_stats", {"p_organization_id": organization_id}
            )
        except BackendError as e:
            raise operation_error("de la récupération des techniciens", e) from e
        return [self._to_entity(row) for row in rows or []]

    async def get_technician(self, technician_id: str) -> Technician | None:
        try:
            row = await self._client.select_single(
                "technicians", filters=[("id", f"eq.{technician_id}")]
            )
        except BackendError as e:
            if e.code == NO_ROWS:
                return None
            raise operation_error("de la récupération du technicien", e) from e

        try:
            inventory = await self._client.select(
                "technician_inventory",
                columns=_INVENTORY_COLUMNS,
                filters=[("technician_id", f"eq.{technician_id}")],
            )
        except BackendError as e:
            raise operation_error("de la récupération de l'inventaire", e) from e

        try:
            history = await self._client.select(
                "technician_inventory_history",
                columns="created_at",
                filters=[("technician_id", f"eq.{technician_id}")],
                order="created_at.desc",
                limit=1,
            )
        except BackendError as e:
            raise operation_error("de la récupération de l'historique", e) from e

        technician = self._to_entity(row)
        technician.inventory = [self._to_inventory_item(item) for item in inventory.data]
        technician.inventory_count = sum(item.quantity for item in technician.inventory)
        technician.last_restock_at = history.data[0].get("created_at") if history.data else None
        return technician

    async def create_technician(self, data: TechnicianCreate) -> Technician:
        try:
            rows = await self._client.insert(
                "technicians",
                {
                    "organization_id": data.organization_id,
                    "first_name": data.first_name,
                    "last_name": data.last_name,
                    "email": data.email,
                    "phone": data.phone or None,
                    "city": data.city or None,
                },
            )
        except BackendError as e:
            raise duplicate_or_operation_error("de la création du technicien", e, DUPLICATE_EMAIL) from e
        return self._to_entity(rows[0])

    async def update_technician(self, technician_id: str, changes: dict[str, Any]) -> Technician:
        try:
            rows = await self._client.update(
                "technicians", changes, filters=[("id", f"eq.{technician_id}")]
            )
        except BackendError as e:
            raise duplicate_or_operation_error(
                "de la mise à jour du technicien", e, DUPLICATE_EMAIL
            ) from e
        if not rows:
            raise EntityNotFoundError("Technician", technician_id)
        return self._to_entity(rows[0])

    async def delete_technician(self, technician_id: str) -> None:
        try:
            await self._client.delete("technicians", filters=[("id", f"eq.{technician_id}")])
        except BackendError as e:
            raise operation_error("de la suppression du technicien", e) from e

    # ── Activity ────────────────────────────────────────────────────

    async def list_inventory(self, technician_id: str) -> list[TechnicianInventoryItem]:
        try:
            result = await self._client.select(
                "technician_inventory",
                columns=_INVENTORY_COLUMNS,
                filters=[("technician_id", f"eq.{technician_id}")],
            )
        except BackendError as e:
            raise operation_error("de la récupération de l'inventaire", e) from e
        return [self._to_inventory_item(row) for row in result.data]

    async def list_inventory_history(self, technician_id: str) -> list[TechnicianInventoryHistoryEntry]:
        try:
            result = await self._client.select(
                "technician_inventory_history",
                filters=[("technician_id", f"eq.{technician_id}")],
                order="created_at.desc",
            )
        except BackendError as e:
            raise operation_error("de la récupération de l'historique", e) from e
        return [self._to_history_entry(row) for row in result.data]

    async def list_restock_movements(self, technician_id: str) -> list[RecentMovement]:
        try:
            result = await self._client.select(
                "stock_movements",
                columns=_RESTOCK_MOVEMENT_COLUMNS,
                filters=[
                    ("technician_id", f"eq.{technician_id}"),
                    ("movement_type", f"eq.{MovementType.EXIT_TECHNICIAN.value}"),
                ],
                order="created_at.desc",
            )
        except BackendError as e:
            raise operation_error("de la récupération des mouvements", e) from e
        return [to_recent_movement(row) for row in result.data]

    async def get_stats(self, organization_id: str) -> TechniciansStats:
        try:
            technicians = await self._client.select(
                "technicians", columns="id", filters=[("organization_id", f"eq.{organization_id}")]
            )
        except BackendError as e:
            raise operation_error("de la récupération des techniciens", e) from e

        ids = [row["id"] for row in technicians.data]
        if not ids:
            return TechniciansStats()
        in_ids = f"in.({','.join(ids)})"

        try:
            inventory = await self._client.select(
                "technician_inventory",
                columns="technician_id, quantity",
                filters=[("technician_id", in_ids)],
            )
        except BackendError as e:
            raise operation_error("de la récupération de l'inventaire", e) from e

        since = datetime.now(timezone.utc) - RECENT_RESTOCK_WINDOW
        try:
            restocks = await self._client.select(
                "stock_movements",
                columns="technician_id",
                filters=[
                    ("movement_type", f"eq.{MovementType.EXIT_TECHNICIAN.value}"),
                    ("technician_id", in_ids),
                    ("created_at", f"gte.{since.isoformat()}"),
                ],
            )
        except BackendError as e:
            raise operation_error("de la récupération des restocks", e) from e

        held: dict[str, int] = {}
        for row in inventory.data:
            held[row["technician_id"]] = held.get(row["technician_id"], 0) + (row.get("quantity") or 0)

        return TechniciansStats(
            total_technicians=len(ids),
            empty_inventory=sum(1 for technician_id in ids if not held.get(technician_id)),
            total_items=sum(held.values()),
            recent_restocks=len({row["technician_id"] for row in restocks.data}),
        )

    @staticmethod
    def _to_entity(row: dict[str, Any]) -> Technician:
        return Technician(
            id=row["id"],
            first_name=row.get("first_name", ""),
            last_name=row.get("last_name", ""),
            email=row.get("email"),
            phone=row.get("phone"),
            city=row.get("city"),
            organization_id=row.get("organization_id"),
            created_at=row.get("created_at"),
            archived_at=row.get("archived_at"),
            inventory_count=row.get("inventory_count") or 0,
            last_restock_at=row.get("last_restock_at"),
        )

    @staticmethod
    def _to_inventory_item(row: dict[str, Any]) -> TechnicianInventoryItem:
        product = row.get("product") or {}
        return TechnicianInventoryItem(
            id=row["id"],
            technician_id=row.get("technician_id", ""),
            product_id=row.get("product_id", ""),
            quantity=row.get("quantity") or 0,
            assigned_at=row.get("assigned_at"),
            organization_id=row.get("organization_id"),
            product_name=product.get("name"),
            product_sku=product.get("sku"),
            product_stock_max=product.get("stock_max"),
        )

    @staticmethod
    def _to_history_entry(row: dict[str, Any]) -> TechnicianInventoryHistoryEntry:
        snapshot = row.get("snapshot") or {}
        return TechnicianInventoryHistoryEntry(
            id=row["id"],
            technician_id=row.get("technician_id", ""),
            items=[
                TechnicianInventorySnapshotItem(
                    product_id=item.get("product_id", ""),
                    product_name=item.get("product_name", ""),
                    quantity=item.get("quantity") or 0,
                    product_sku=item.get("product_sku"),
                )
                for item in snapshot.get("items") or []
            ],
            total_items=snapshot.get("total_items") or 0,
            organization_id=row.get("organization_id"),
            created_at=row.get("created_at"),
        )
