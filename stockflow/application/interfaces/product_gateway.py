"""Abstract gateway (port) for the product catalog."""

from abc import ABC, abstractmethod
from typing import Any

from stockflow.application.schemas.catalog import ProductCreate
from stockflow.application.schemas.filters import ProductFilters
from stockflow.domain.entities import Product, ProductsResult, ProductStats


class ProductGateway(ABC):
    """Port for product persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def list_products(self, filters: ProductFilters) -> ProductsResult:
        """Retrieve one page of products matching ``filters``."""
        ...

    @abstractmethod
    async def get_product(self, product_id: str) -> Product | None:
        """Retrieve a product with its category, or None if it does not exist."""
        ...

    @abstractmethod
    async def get_stats(self, organization_id: str | None = None) -> ProductStats:
        ...

    @abstractmethod
    async def create_product(self, data: ProductCreate) -> Product:
        """Persist a new product and return it with its generated ID."""
        ...

    @abstractmethod
    async def update_product(self, product_id: str, changes: dict[str, Any]) -> Product:
        """Apply a partial update and return the stored product."""
        ...

    @abstractmethod
    async def delete_product(self, product_id: str) -> None:
        ...
