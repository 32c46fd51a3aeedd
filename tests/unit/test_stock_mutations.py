"""Unit tests for the StockMutationService (optimistic stock entries and exits)."""

import asyncio
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from stockflow.application.interfaces import StockMovementGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.schemas import StockEntryParams, StockExitParams, StockMovementFilters
from stockflow.application.services import QueryCache, StockMutationService
from stockflow.domain.entities import (
    MovementType,
    MovementsSummary,
    Product,
    StockMovement,
    StockMovementsResult,
)
from stockflow.domain.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    RemoteOperationError,
)


DETAIL = query_keys.products.detail("p1")


class FakeStockMovementGateway(StockMovementGateway):
    """In-memory gateway; ``gate`` holds calls in flight, ``error`` fails them."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None

    async def _finish(self, movement: StockMovement) -> StockMovement:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return movement

    async def create_entry(self, organization_id, product_id, quantity, notes=None):
        self.calls.append(("entry", organization_id, product_id, quantity, notes))
        return await self._finish(StockMovement(
            id=f"mv-{len(self.calls)}",
            product_id=product_id,
            quantity=quantity,
            movement_type=MovementType.ENTRY,
        ))

    async def create_exit(
        self, organization_id, product_id, quantity, movement_type, technician_id=None, notes=None
    ):
        self.calls.append((movement_type.value, organization_id, product_id, quantity, technician_id))
        return await self._finish(StockMovement(
            id=f"mv-{len(self.calls)}",
            product_id=product_id,
            quantity=quantity,
            movement_type=movement_type,
            technician_id=technician_id,
        ))

    async def list_movements(self, filters: StockMovementFilters) -> StockMovementsResult:
        return StockMovementsResult()

    async def list_product_movements(self, product_id, limit=50):
        return []

    async def get_summary(self, organization_id=None):
        return MovementsSummary()

    async def get_product_daily_stats(self, product_id, months=3):
        return []


# ── Helpers ──


def _make_service(stock: int = 50):
    gateway = FakeStockMovementGateway()
    cache = QueryCache(retry=0, default_stale_time=30, clock=lambda: 0.0)
    cache.set_query_data(DETAIL, Product(id="p1", name="Vis inox", stock_current=stock, stock_min=10, stock_max=100))
    return StockMutationService(gateway, cache), gateway, cache


def _entry(quantity: int) -> StockEntryParams:
    return StockEntryParams(organization_id="org-1", product_id="p1", quantity=quantity)


def _exit(quantity: int, movement_type=MovementType.EXIT_ANONYMOUS, technician_id=None) -> StockExitParams:
    return StockExitParams(
        organization_id="org-1",
        product_id="p1",
        quantity=quantity,
        movement_type=movement_type,
        technician_id=technician_id,
    )


def _invalidated_prefixes(spy) -> list[tuple]:
    return [call.args[0] for call in spy.call_args_list]


# ── Tests ──


@pytest.mark.asyncio
async def test_entry_projects_stock_while_in_flight():
    service, gateway, cache = _make_service(stock=50)
    gateway.gate = asyncio.Event()

    pending = asyncio.ensure_future(service.create_entry(_entry(10)))
    await asyncio.sleep(0)
    assert cache.get_query_data(DETAIL).stock_current == 60

    gateway.gate.set()
    movement = await pending

    assert movement.quantity == 10
    assert cache.get_query_data(DETAIL).stock_current == 60
    assert gateway.calls == [("entry", "org-1", "p1", 10, None)]


@pytest.mark.asyncio
async def test_entry_failure_restores_stock_and_propagates():
    service, gateway, cache = _make_service(stock=50)
    gateway.error = RemoteOperationError("Erreur lors de la création du mouvement: RPC failed")

    with pytest.raises(RemoteOperationError, match="RPC failed"):
        await service.create_entry(_entry(10))

    assert cache.get_query_data(DETAIL).stock_current == 50


@pytest.mark.asyncio
async def test_exit_projects_decrement():
    service, gateway, cache = _make_service(stock=50)
    gateway.gate = asyncio.Event()

    pending = asyncio.ensure_future(service.create_exit(_exit(5)))
    await asyncio.sleep(0)
    assert cache.get_query_data(DETAIL).stock_current == 45

    gateway.gate.set()
    await pending
    assert cache.get_query_data(DETAIL).stock_current == 45


@pytest.mark.asyncio
async def test_exit_insufficient_stock_restores_projection():
    service, gateway, cache = _make_service(stock=50)
    gateway.error = InsufficientStockError("Erreur lors de la création du mouvement: Stock insuffisant")

    with pytest.raises(InsufficientStockError) as exc_info:
        await service.create_exit(_exit(5))

    assert "Stock insuffisant" in str(exc_info.value)
    assert cache.get_query_data(DETAIL).stock_current == 50


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -3])
async def test_non_positive_quantity_never_reaches_backend(quantity):
    service, gateway, cache = _make_service(stock=50)

    with pytest.raises(InvalidQuantityError, match="La quantité doit être positive"):
        await service.create_entry(_entry(quantity))
    with pytest.raises(InvalidQuantityError, match="La quantité doit être positive"):
        await service.create_exit(_exit(quantity))

    assert gateway.calls == []
    assert cache.get_query_data(DETAIL).stock_current == 50


@pytest.mark.asyncio
async def test_entry_without_cached_product_still_succeeds():
    service, gateway, cache = _make_service()
    cache.remove_queries(DETAIL)

    await service.create_entry(_entry(4))

    assert cache.get_query_data(DETAIL) is None
    assert len(gateway.calls) == 1


@pytest.mark.asyncio
async def test_entry_invalidates_products_movements_and_dashboard():
    service, _, cache = _make_service()

    with patch.object(cache, "invalidate_queries", wraps=cache.invalidate_queries) as spy:
        await service.create_entry(_entry(10))

    prefixes = _invalidated_prefixes(spy)
    assert query_keys.products.all in prefixes
    assert query_keys.movements.all in prefixes
    assert query_keys.dashboard.all in prefixes
    assert query_keys.technicians.all not in prefixes
    assert cache.is_stale(DETAIL)


@pytest.mark.asyncio
async def test_technician_exit_also_invalidates_technicians():
    service, _, cache = _make_service()

    with patch.object(cache, "invalidate_queries", wraps=cache.invalidate_queries) as spy:
        await service.create_exit(_exit(2, MovementType.EXIT_TECHNICIAN, technician_id="t1"))

    assert query_keys.technicians.all in _invalidated_prefixes(spy)


@pytest.mark.asyncio
@pytest.mark.parametrize("movement_type", [MovementType.EXIT_ANONYMOUS, MovementType.EXIT_LOSS])
async def test_other_exits_leave_technicians_alone(movement_type):
    service, _, cache = _make_service()

    with patch.object(cache, "invalidate_queries", wraps=cache.invalidate_queries) as spy:
        await service.create_exit(_exit(2, movement_type))

    assert query_keys.technicians.all not in _invalidated_prefixes(spy)


@pytest.mark.asyncio
async def test_invalidation_runs_after_failure_too():
    service, gateway, cache = _make_service()
    gateway.error = RemoteOperationError("boom")

    with patch.object(cache, "invalidate_queries", wraps=cache.invalidate_queries) as spy:
        with pytest.raises(RemoteOperationError):
            await service.create_entry(_entry(1))

    assert query_keys.products.all in _invalidated_prefixes(spy)


def test_exit_params_reject_entry_type():
    with pytest.raises(ValidationError):
        _exit(1, MovementType.ENTRY)
