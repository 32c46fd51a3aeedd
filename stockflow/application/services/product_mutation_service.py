"""Product create / update / delete orchestration."""

from stockflow.application.interfaces import ProductGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.schemas import ProductCreate, ProductUpdate
from stockflow.application.services.cache_updates import get_field, merge_fields, remove_from_page
from stockflow.application.services.mutation_service import MutationService
from stockflow.application.services.query_cache import QueryCache
from stockflow.domain.entities import Product

_SETTLED_KEYS = (query_keys.products.all, query_keys.dashboard.all)


def _is_page(data) -> bool:
    return get_field(data, "products") is not None


class ProductMutationService(MutationService):
    def __init__(self, gateway: ProductGateway, cache: QueryCache):
        super().__init__(cache)
        self._gateway = gateway

    async def create_product(self, data: ProductCreate) -> Product:
        return await self._execute(
            "create_product",
            lambda: self._gateway.create_product(data),
            invalidate=_SETTLED_KEYS,
        )

    async def update_product(self, product_id: str, data: ProductUpdate) -> Product:
        """Merge the changed fields into the cached detail, then save them."""
        changes = data.changes()
        patches = self._patch(
            query_keys.products.detail(product_id),
            lambda product: merge_fields(product, changes),
        )
        return await self._execute(
            "update_product",
            lambda: self._gateway.update_product(product_id, changes),
            patches=patches,
            invalidate=_SETTLED_KEYS,
        )

    async def delete_product(self, product_id: str) -> None:
        """Remove the product from every cached page, then delete it."""
        patches = self._patch_all(
            query_keys.products.lists(),
            lambda page: remove_from_page(page, product_id),
            accepts=_is_page,
        )
        return await self._execute(
            "delete_product",
            lambda: self._gateway.delete_product(product_id),
            patches=patches,
            invalidate=_SETTLED_KEYS,
        )
