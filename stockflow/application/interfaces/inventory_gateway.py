"""Abstract gateway (port) for technician inventory batches."""

from abc import ABC, abstractmethod

from stockflow.domain.entities import AvailableProduct, RestockItem, RestockResult


class InventoryGateway(ABC):
    """Port for technician restocks — each call is one atomic backend batch."""

    @abstractmethod
    async def restock_technician(self, technician_id: str, items: list[RestockItem]) -> RestockResult:
        """Replace the technician's inventory with ``items``.

        The previous inventory is archived, stock exits are recorded and
        product stock is decremented, all or nothing.
        """
        ...

    @abstractmethod
    async def add_to_technician_inventory(
        self, technician_id: str, items: list[RestockItem]
    ) -> RestockResult:
        """Add ``items`` on top of the technician's current inventory."""
        ...

    @abstractmethod
    async def list_available_products(self, organization_id: str | None = None) -> list[AvailableProduct]:
        """Products with stock left to hand out, by name."""
        ...
