"""Abstract gateway (port) for product categories."""

from abc import ABC, abstractmethod
from typing import Any

from stockflow.domain.entities import Category


class CategoryGateway(ABC):
    """Port for category persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def list_categories(self, organization_id: str | None = None) -> list[Category]:
        """Retrieve the organization's categories, by name."""
        ...

    @abstractmethod
    async def get_category(self, category_id: str) -> Category | None:
        ...

    @abstractmethod
    async def create_category(
        self, organization_id: str, name: str, parent_id: str | None = None
    ) -> Category:
        ...

    @abstractmethod
    async def update_category(self, category_id: str, changes: dict[str, Any]) -> Category:
        ...

    @abstractmethod
    async def delete_category(self, category_id: str) -> None:
        """Delete a leaf category.

        Raises:
            RemoteOperationError: the category still has sub-categories.
        """
        ...
