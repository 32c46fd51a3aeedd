"""Abstract gateway (port) for stock movements."""

from abc import ABC, abstractmethod

from stockflow.application.schemas.filters import StockMovementFilters
from stockflow.domain.entities import (
    DailyMovementStats,
    MovementType,
    MovementsSummary,
    StockMovement,
    StockMovementsResult,
)


class StockMovementGateway(ABC):
    """Port for stock movements — implemented in the infrastructure layer.

    Entries and exits go through atomic backend procedures that update the
    product's ``stock_current`` in the same transaction.
    """

    @abstractmethod
    async def create_entry(
        self,
        organization_id: str,
        product_id: str,
        quantity: int,
        notes: str | None = None,
    ) -> StockMovement:
        """Record an entry and increment the product's stock."""
        ...

    @abstractmethod
    async def create_exit(
        self,
        organization_id: str,
        product_id: str,
        quantity: int,
        movement_type: MovementType,
        technician_id: str | None = None,
        notes: str | None = None,
    ) -> StockMovement:
        """Record an exit and decrement the product's stock.

        Raises:
            InsufficientStockError: the product holds less than ``quantity``.
        """
        ...

    @abstractmethod
    async def list_movements(self, filters: StockMovementFilters) -> StockMovementsResult:
        """Retrieve one page of movements, most recent first."""
        ...

    @abstractmethod
    async def list_product_movements(self, product_id: str, limit: int = 50) -> list[StockMovement]:
        """Retrieve the latest movements of a single product."""
        ...

    @abstractmethod
    async def get_summary(self, organization_id: str | None = None) -> MovementsSummary:
        """Entry/exit totals over the last 30 days."""
        ...

    @abstractmethod
    async def get_product_daily_stats(self, product_id: str, months: int = 3) -> list[DailyMovementStats]:
        """Per-day entries and exits of a product over the last ``months`` months, oldest first."""
        ...
