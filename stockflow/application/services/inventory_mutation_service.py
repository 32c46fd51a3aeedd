"""Technician restock orchestration — no optimistic phase, wide invalidation."""

from stockflow.application.interfaces import InventoryGateway
from stockflow.application.query_keys import CacheKey, query_keys
from stockflow.application.schemas import RestockParams
from stockflow.application.services.mutation_service import MutationService
from stockflow.application.services.query_cache import QueryCache
from stockflow.domain.entities import RestockItem, RestockResult, validate_restock_items


class InventoryMutationService(MutationService):
    def __init__(self, gateway: InventoryGateway, cache: QueryCache):
        super().__init__(cache)
        self._gateway = gateway

    async def restock_technician(self, params: RestockParams) -> RestockResult:
        """Replace a technician's inventory with a new batch."""
        items = validate_restock_items(params.items)
        return await self._execute(
            "restock_technician",
            lambda: self._gateway.restock_technician(params.technician_id, items),
            invalidate=self._settled_keys(items),
        )

    async def add_to_technician_inventory(self, params: RestockParams) -> RestockResult:
        """Add a batch on top of a technician's current inventory."""
        items = validate_restock_items(params.items)
        return await self._execute(
            "add_to_technician_inventory",
            lambda: self._gateway.add_to_technician_inventory(params.technician_id, items),
            invalidate=self._settled_keys(items),
        )

    @staticmethod
    def _settled_keys(items: list[RestockItem]) -> list[CacheKey]:
        keys = [
            query_keys.technicians.all,
            query_keys.products.lists(),
        ]
        keys.extend(query_keys.products.detail(item.product_id) for item in items)
        keys.extend([
            query_keys.movements.lists(),
            query_keys.movements.summaries(),
            query_keys.dashboard.all,
            query_keys.inventory.all,
        ])
        return keys
