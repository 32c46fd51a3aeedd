"""Category create / rename / delete orchestration."""

from stockflow.application.interfaces import CategoryGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.schemas import CategoryCreate, CategoryUpdate
from stockflow.application.services.cache_updates import remove_from_list, update_in_list
from stockflow.application.services.mutation_service import MutationService
from stockflow.application.services.query_cache import QueryCache
from stockflow.domain.entities import Category


class CategoryMutationService(MutationService):
    """Category edits are projected into every cached category list."""

    def __init__(self, gateway: CategoryGateway, cache: QueryCache):
        super().__init__(cache)
        self._gateway = gateway

    async def create_category(self, data: CategoryCreate) -> Category:
        return await self._execute(
            "create_category",
            lambda: self._gateway.create_category(data.organization_id, data.name, data.parent_id),
            invalidate=[query_keys.categories.all],
        )

    async def update_category(self, data: CategoryUpdate) -> Category:
        changes = data.changes()
        patches = self._patch_all(
            query_keys.categories.all,
            lambda categories: update_in_list(categories, data.id, changes),
        )
        return await self._execute(
            "update_category",
            lambda: self._gateway.update_category(data.id, changes),
            patches=patches,
            invalidate=[query_keys.categories.all],
        )

    async def delete_category(self, category_id: str) -> None:
        patches = self._patch_all(
            query_keys.categories.all,
            lambda categories: remove_from_list(categories, category_id),
        )
        return await self._execute(
            "delete_category",
            lambda: self._gateway.delete_category(category_id),
            patches=patches,
            invalidate=[query_keys.categories.all],
        )
