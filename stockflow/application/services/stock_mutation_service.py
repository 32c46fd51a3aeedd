"""Stock entry / exit orchestration with optimistic stock projection."""

from stockflow.application.interfaces import StockMovementGateway
from stockflow.application.query_keys import CacheKey, query_keys
from stockflow.application.schemas import StockEntryParams, StockExitParams
from stockflow.application.services.cache_updates import add_to_field
from stockflow.application.services.mutation_service import MutationService
from stockflow.application.services.query_cache import QueryCache
from stockflow.domain.entities import MovementType, StockMovement, ensure_positive_quantity


class StockMutationService(MutationService):
    """Projects ``stock_current ± quantity`` on the cached product detail
    while the backend records the movement."""

    def __init__(self, gateway: StockMovementGateway, cache: QueryCache):
        super().__init__(cache)
        self._gateway = gateway

    async def create_entry(self, params: StockEntryParams) -> StockMovement:
        quantity = ensure_positive_quantity(params.quantity)

        patches = self._patch(
            query_keys.products.detail(params.product_id),
            lambda product: add_to_field(product, "stock_current", quantity),
        )
        return await self._execute(
            "stock_entry",
            lambda: self._gateway.create_entry(
                params.organization_id,
                params.product_id,
                quantity,
                params.notes,
            ),
            patches=patches,
            invalidate=self._settled_keys(MovementType.ENTRY),
        )

    async def create_exit(self, params: StockExitParams) -> StockMovement:
        quantity = ensure_positive_quantity(params.quantity)

        patches = self._patch(
            query_keys.products.detail(params.product_id),
            lambda product: add_to_field(product, "stock_current", -quantity),
        )
        return await self._execute(
            f"stock_{params.movement_type.value}",
            lambda: self._gateway.create_exit(
                params.organization_id,
                params.product_id,
                quantity,
                params.movement_type,
                params.technician_id,
                params.notes,
            ),
            patches=patches,
            invalidate=self._settled_keys(params.movement_type),
        )

    @staticmethod
    def _settled_keys(movement_type: MovementType) -> list[CacheKey]:
        keys = [
            query_keys.products.all,
            query_keys.movements.all,
            query_keys.dashboard.all,
        ]
        # Only technician exits change a technician's inventory.
        if movement_type is MovementType.EXIT_TECHNICIAN:
            keys.append(query_keys.technicians.all)
        return keys
