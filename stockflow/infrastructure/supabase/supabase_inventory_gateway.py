"""Backend implementation of InventoryGateway — atomic technician batches."""

from typing import Any

from stockflow.application.interfaces import InventoryGateway
from stockflow.domain.entities import AvailableProduct, RestockItem, RestockResult
from stockflow.domain.exceptions import (
    INSUFFICIENT_STOCK_MARKER,
    BackendError,
    InsufficientStockError,
    RemoteOperationError,
)
from stockflow.infrastructure.supabase.errors import operation_error
from stockflow.infrastructure.supabase.supabase_client import SupabaseClient

BATCH_INSUFFICIENT_STOCK = "Stock insuffisant pour un ou plusieurs produits"


class SupabaseInventoryGateway(InventoryGateway):
    def __init__(self, client: SupabaseClient):
        self._client = client

    async def restock_technician(self, technician_id: str, items: list[RestockItem]) -> RestockResult:
        return await self._run_batch("restock_technician", technician_id, items)

    async def add_to_technician_inventory(
        self, technician_id: str, items: list[RestockItem]
    ) -> RestockResult:
        return await self._run_batch("add_to_technician_inventory", technician_id, items)

    async def _run_batch(
        self, procedure: str, technician_id: str, items: list[RestockItem]
    ) -> RestockResult:
        try:
            data = await self._client.rpc(
                procedure,
                {
                    "p_technician_id": technician_id,
                    "p_items": [
                        {"product_id": item.product_id, "quantity": item.quantity}
                        for item in items
                    ],
                },
            )
        except BackendError as e:
            if INSUFFICIENT_STOCK_MARKER in e.message:
                raise InsufficientStockError(BATCH_INSUFFICIENT_STOCK, e) from e
            raise RemoteOperationError(f"Erreur lors du restock: {e.message}", e) from e
        return self._to_result(data, len(items))

    async def list_available_products(self, organization_id: str | None = None) -> list[AvailableProduct]:
        conditions = [("stock_current", "gt.0")]
        if organization_id:
            conditions.append(("organization_id", f"eq.{organization_id}"))
        try:
            result = await self._client.select(
                "products",
                columns="id, name, sku, image_url, stock_current, stock_max",
                filters=conditions,
                order="name.asc",
            )
        except BackendError as e:
            raise operation_error("de la récupération des produits", e) from e
        return [
            AvailableProduct(
                id=row["id"],
                name=row.get("name", ""),
                stock_current=row.get("stock_current") or 0,
                stock_max=row.get("stock_max") or 0,
                sku=row.get("sku"),
                image_url=row.get("image_url"),
            )
            for row in result.data
        ]

    @staticmethod
    def _to_result(data: Any, sent: int) -> RestockResult:
        # Procedures return a single JSON object; older deployments return nothing.
        if not isinstance(data, dict):
            return RestockResult(success=True, items_count=sent, previous_items_count=0)
        return RestockResult(
            success=bool(data.get("success", True)),
            items_count=data.get("items_count", sent),
            previous_items_count=data.get("previous_items_count", 0),
        )
