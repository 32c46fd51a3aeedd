"""Abstract gateway (port) for dashboard aggregates."""

from abc import ABC, abstractmethod

from stockflow.domain.entities import (
    DashboardStats,
    DashboardTask,
    ProductNeedingRestock,
    RecentMovement,
    StockEvolutionPoint,
    TechnicianDashboardStats,
    TechnicianNeedingRestock,
)


class DashboardGateway(ABC):
    """Port for the dashboard reads — implemented in the infrastructure layer.

    Every read is scoped to ``organization_id`` when one is given.
    """

    @abstractmethod
    async def get_stats(self, organization_id: str | None = None) -> DashboardStats:
        """Stock totals, value, low-stock count and this month's entries and exits."""
        ...

    @abstractmethod
    async def get_products_needing_restock(
        self,
        organization_id: str | None = None,
        limit: int = 10,
        score_threshold: int = 30,
    ) -> list[ProductNeedingRestock]:
        """Products scoring under ``score_threshold``, lowest score first."""
        ...

    @abstractmethod
    async def get_technicians_needing_restock(
        self, organization_id: str | None = None, days_threshold: int = 7
    ) -> list[TechnicianNeedingRestock]:
        ...

    @abstractmethod
    async def get_recent_movements(
        self, organization_id: str | None = None, limit: int = 10
    ) -> list[RecentMovement]:
        ...

    @abstractmethod
    async def get_stock_evolution(
        self, organization_id: str | None = None, months: int = 6
    ) -> list[StockEvolutionPoint]:
        """Organization-wide stock level per month, oldest first."""
        ...

    @abstractmethod
    async def get_product_evolution(self, product_id: str, months: int = 6) -> list[StockEvolutionPoint]:
        ...

    @abstractmethod
    async def get_category_evolution(self, category_id: str, months: int = 6) -> list[StockEvolutionPoint]:
        ...

    @abstractmethod
    async def get_technician_stats(
        self, organization_id: str | None = None, needing_restock_count: int | None = None
    ) -> TechnicianDashboardStats:
        """Technician stock health; the restock count is computed when not given."""
        ...

    @abstractmethod
    async def get_tasks(self, organization_id: str | None = None) -> list[DashboardTask]:
        ...
