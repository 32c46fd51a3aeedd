"""Abstract gateway (port) for a technician's inventory and restock history."""

from abc import ABC, abstractmethod

from stockflow.domain.entities import (
    RecentMovement,
    TechnicianInventoryHistoryEntry,
    TechnicianInventoryItem,
    TechniciansStats,
)


class TechnicianActivityGateway(ABC):
    @abstractmethod
    async def list_inventory(self, technician_id: str) -> list[TechnicianInventoryItem]:
        ...

    @abstractmethod
    async def list_inventory_history(self, technician_id: str) -> list[TechnicianInventoryHistoryEntry]:
        """Inventory snapshots, newest first."""
        ...

    @abstractmethod
    async def list_restock_movements(self, technician_id: str) -> list[RecentMovement]:
        """Stock exits to this technician, newest first."""
        ...

    @abstractmethod
    async def get_stats(self, organization_id: str) -> TechniciansStats:
        ...
