"""Concurrent optimistic mutations on the same cached product."""

import asyncio

import pytest

from stockflow.application.interfaces import StockMovementGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.schemas import StockEntryParams, StockExitParams
from stockflow.application.services import QueryCache, StockMutationService
from stockflow.domain.entities import MovementType, MovementsSummary, Product, StockMovement, StockMovementsResult
from stockflow.domain.exceptions import InsufficientStockError, RemoteOperationError


DETAIL = query_keys.products.detail("p1")


class GatedStockMovementGateway(StockMovementGateway):
    """Each movement type waits on its own gate and may be told to fail."""

    def __init__(self):
        self.gates = {"entry": asyncio.Event(), "exit": asyncio.Event()}
        self.errors: dict[str, Exception] = {}

    async def _settle(self, kind: str, movement: StockMovement) -> StockMovement:
        await self.gates[kind].wait()
        if kind in self.errors:
            raise self.errors[kind]
        return movement

    async def create_entry(self, organization_id, product_id, quantity, notes=None):
        return await self._settle(
            "entry",
            StockMovement(id="mv-in", product_id=product_id, quantity=quantity, movement_type=MovementType.ENTRY),
        )

    async def create_exit(
        self, organization_id, product_id, quantity, movement_type, technician_id=None, notes=None
    ):
        return await self._settle(
            "exit",
            StockMovement(id="mv-out", product_id=product_id, quantity=quantity, movement_type=movement_type),
        )

    async def list_movements(self, filters):
        return StockMovementsResult()

    async def list_product_movements(self, product_id, limit=50):
        return []

    async def get_summary(self, organization_id=None):
        return MovementsSummary()

    async def get_product_daily_stats(self, product_id, months=3):
        return []


# ── Helpers ──


def _setup():
    gateway = GatedStockMovementGateway()
    cache = QueryCache(retry=0)
    cache.set_query_data(DETAIL, Product(id="p1", name="Vis", stock_current=50, stock_min=10, stock_max=100))
    service = StockMutationService(gateway, cache)

    entry = asyncio.ensure_future(
        service.create_entry(StockEntryParams(organization_id="org-1", product_id="p1", quantity=10))
    )
    exit_ = asyncio.ensure_future(
        service.create_exit(StockExitParams(
            organization_id="org-1",
            product_id="p1",
            quantity=5,
            movement_type=MovementType.EXIT_ANONYMOUS,
        ))
    )
    return gateway, cache, entry, exit_


def _stock(cache: QueryCache) -> int:
    return cache.get_query_data(DETAIL).stock_current


# ── Tests ──


@pytest.mark.asyncio
async def test_both_projections_combine_while_in_flight():
    gateway, cache, entry, exit_ = _setup()
    await asyncio.sleep(0)

    assert _stock(cache) == 55

    gateway.gates["entry"].set()
    gateway.gates["exit"].set()
    await asyncio.gather(entry, exit_)
    assert _stock(cache) == 55


@pytest.mark.asyncio
async def test_failed_entry_keeps_pending_exit_projection():
    gateway, cache, entry, exit_ = _setup()
    await asyncio.sleep(0)

    gateway.errors["entry"] = RemoteOperationError("RPC failed")
    gateway.gates["entry"].set()
    with pytest.raises(RemoteOperationError):
        await entry
    assert _stock(cache) == 45

    gateway.gates["exit"].set()
    await exit_
    assert _stock(cache) == 45


@pytest.mark.asyncio
async def test_failed_exit_keeps_settled_entry_projection():
    gateway, cache, entry, exit_ = _setup()
    await asyncio.sleep(0)

    gateway.gates["entry"].set()
    await entry
    assert _stock(cache) == 55

    gateway.errors["exit"] = InsufficientStockError("Stock insuffisant")
    gateway.gates["exit"].set()
    with pytest.raises(InsufficientStockError):
        await exit_
    assert _stock(cache) == 60


@pytest.mark.asyncio
async def test_both_failing_restore_original_stock():
    gateway, cache, entry, exit_ = _setup()
    await asyncio.sleep(0)

    gateway.errors["entry"] = RemoteOperationError("down")
    gateway.errors["exit"] = RemoteOperationError("down")
    gateway.gates["exit"].set()
    gateway.gates["entry"].set()
    results = await asyncio.gather(entry, exit_, return_exceptions=True)

    assert all(isinstance(result, RemoteOperationError) for result in results)
    assert _stock(cache) == 50
