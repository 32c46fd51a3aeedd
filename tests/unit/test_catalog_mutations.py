"""Unit tests for product and category mutation orchestrators."""

import asyncio

import pytest

from stockflow.application.interfaces import CategoryGateway, ProductGateway
from stockflow.application.query_keys import query_keys
from stockflow.application.schemas import (
    CategoryCreate,
    CategoryUpdate,
    ProductCreate,
    ProductFilters,
    ProductUpdate,
)
from stockflow.application.services import CategoryMutationService, ProductMutationService, QueryCache
from stockflow.domain.entities import Category, Product, ProductsResult, ProductStats
from stockflow.domain.exceptions import RemoteOperationError


class FakeProductGateway(ProductGateway):
    def __init__(self):
        self.products: dict[str, Product] = {}
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def _check(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error

    async def list_products(self, filters):
        return ProductsResult(products=list(self.products.values()), total=len(self.products))

    async def get_product(self, product_id):
        return self.products.get(product_id)

    async def get_stats(self, organization_id=None):
        return ProductStats(total=len(self.products))

    async def create_product(self, data: ProductCreate):
        await self._check()
        product = Product(id=f"p{len(self.products) + 1}", name=data.name, sku=data.sku or "AUTO")
        self.products[product.id] = product
        return product

    async def update_product(self, product_id, changes):
        await self._check()
        product = self.products[product_id]
        for field, value in changes.items():
            setattr(product, field, value)
        return product

    async def delete_product(self, product_id):
        await self._check()
        self.products.pop(product_id, None)


class FakeCategoryGateway(CategoryGateway):
    def __init__(self):
        self.calls: list[tuple] = []
        self.error: Exception | None = None

    async def list_categories(self, organization_id=None):
        return []

    async def get_category(self, category_id):
        return None

    async def create_category(self, organization_id, name, parent_id=None):
        self.calls.append(("create", organization_id, name, parent_id))
        return Category(id="c-new", name=name, parent_id=parent_id, organization_id=organization_id)

    async def update_category(self, category_id, changes):
        self.calls.append(("update", category_id, changes))
        if self.error is not None:
            raise self.error
        return Category(id=category_id, **changes)

    async def delete_category(self, category_id):
        self.calls.append(("delete", category_id))
        if self.error is not None:
            raise self.error


# ── Helpers ──


def _make_cache() -> QueryCache:
    return QueryCache(retry=0, default_stale_time=30, clock=lambda: 0.0)


def _categories() -> list[Category]:
    return [
        Category(id="c1", name="Visserie", organization_id="org-1"),
        Category(id="c2", name="Outillage", organization_id="org-1"),
    ]


def _page(*products: Product) -> ProductsResult:
    return ProductsResult(products=list(products), total=len(products), page=1, page_size=10, total_pages=1)


# ── Category tests ──


@pytest.mark.asyncio
async def test_create_category_invalidates_categories():
    gateway, cache = FakeCategoryGateway(), _make_cache()
    cache.set_query_data(query_keys.categories.list("org-1"), _categories())
    service = CategoryMutationService(gateway, cache)

    category = await service.create_category(CategoryCreate(organization_id="org-1", name="Électricité"))

    assert category.name == "Électricité"
    assert gateway.calls == [("create", "org-1", "Électricité", None)]
    assert cache.is_stale(query_keys.categories.list("org-1"))


@pytest.mark.asyncio
async def test_rename_category_is_projected_into_every_list():
    gateway, cache = FakeCategoryGateway(), _make_cache()
    cache.set_query_data(query_keys.categories.list("org-1"), _categories())
    cache.set_query_data(query_keys.categories.list(None), _categories())
    service = CategoryMutationService(gateway, cache)

    await service.update_category(CategoryUpdate(id="c1", name="Boulonnerie"))

    for key in (query_keys.categories.list("org-1"), query_keys.categories.list(None)):
        names = [c.name for c in cache.get_query_data(key)]
        assert names == ["Boulonnerie", "Outillage"]
    assert gateway.calls == [("update", "c1", {"name": "Boulonnerie"})]


@pytest.mark.asyncio
async def test_update_category_moves_parent_only_when_given():
    gateway, cache = FakeCategoryGateway(), _make_cache()
    service = CategoryMutationService(gateway, cache)

    await service.update_category(CategoryUpdate(id="c1", name="Visserie", parent_id=None))

    assert gateway.calls == [("update", "c1", {"name": "Visserie", "parent_id": None})]


@pytest.mark.asyncio
async def test_delete_category_rolls_back_when_it_has_children():
    gateway, cache = FakeCategoryGateway(), _make_cache()
    gateway.error = RemoteOperationError(
        "Impossible de supprimer une catégorie qui contient des sous-catégories"
    )
    key = query_keys.categories.list("org-1")
    cache.set_query_data(key, _categories())
    service = CategoryMutationService(gateway, cache)

    with pytest.raises(RemoteOperationError, match="sous-catégories"):
        await service.delete_category("c1")

    assert [c.id for c in cache.get_query_data(key)] == ["c1", "c2"]


@pytest.mark.asyncio
async def test_delete_category_removes_it_from_lists():
    gateway, cache = FakeCategoryGateway(), _make_cache()
    key = query_keys.categories.list("org-1")
    cache.set_query_data(key, _categories())
    service = CategoryMutationService(gateway, cache)

    await service.delete_category("c1")

    assert [c.id for c in cache.get_query_data(key)] == ["c2"]


# ── Product tests ──


@pytest.mark.asyncio
async def test_update_product_merges_changes_into_detail():
    gateway, cache = FakeProductGateway(), _make_cache()
    gateway.products["p1"] = Product(id="p1", name="Vis", price=1.0, stock_current=50)
    cache.set_query_data(query_keys.products.detail("p1"), Product(id="p1", name="Vis", price=1.0, stock_current=50))
    gateway.gate = asyncio.Event()
    service = ProductMutationService(gateway, cache)

    pending = asyncio.ensure_future(service.update_product("p1", ProductUpdate(price=2.5)))
    await asyncio.sleep(0)
    projected = cache.get_query_data(query_keys.products.detail("p1"))
    assert projected.price == 2.5
    assert projected.name == "Vis"

    gateway.gate.set()
    saved = await pending
    assert saved.price == 2.5


@pytest.mark.asyncio
async def test_update_product_failure_restores_detail():
    gateway, cache = FakeProductGateway(), _make_cache()
    gateway.products["p1"] = Product(id="p1", name="Vis")
    gateway.error = RemoteOperationError("Erreur lors de la mise à jour du produit: denied")
    cache.set_query_data(query_keys.products.detail("p1"), Product(id="p1", name="Vis"))
    service = ProductMutationService(gateway, cache)

    with pytest.raises(RemoteOperationError):
        await service.update_product("p1", ProductUpdate(name="Écrou"))

    assert cache.get_query_data(query_keys.products.detail("p1")).name == "Vis"


@pytest.mark.asyncio
async def test_delete_product_removes_it_from_cached_pages():
    gateway, cache = FakeProductGateway(), _make_cache()
    gateway.products["p1"] = Product(id="p1", name="Vis")
    first = query_keys.products.list(ProductFilters(organization_id="org-1"))
    other = query_keys.products.list(ProductFilters(organization_id="org-1", search="clé"))
    cache.set_query_data(first, _page(Product(id="p1", name="Vis"), Product(id="p2", name="Clou")))
    cache.set_query_data(other, _page(Product(id="p3", name="Clé")))
    gateway.gate = asyncio.Event()
    service = ProductMutationService(gateway, cache)

    pending = asyncio.ensure_future(service.delete_product("p1"))
    await asyncio.sleep(0)

    page = cache.get_query_data(first)
    assert [p.id for p in page.products] == ["p2"]
    assert page.total == 1
    assert cache.get_query_data(other).total == 1

    gateway.gate.set()
    await pending
    assert cache.is_stale(first)


@pytest.mark.asyncio
async def test_delete_product_failure_restores_pages():
    gateway, cache = FakeProductGateway(), _make_cache()
    gateway.error = RemoteOperationError("Erreur lors de la suppression du produit: fk")
    key = query_keys.products.list(ProductFilters(organization_id="org-1"))
    cache.set_query_data(key, _page(Product(id="p1", name="Vis")))
    service = ProductMutationService(gateway, cache)

    with pytest.raises(RemoteOperationError):
        await service.delete_product("p1")

    page = cache.get_query_data(key)
    assert [p.id for p in page.products] == ["p1"]
    assert page.total == 1


@pytest.mark.asyncio
async def test_create_product_invalidates_products_and_dashboard():
    gateway, cache = FakeProductGateway(), _make_cache()
    cache.set_query_data(query_keys.products.stats("org-1"), ProductStats(total=0))
    cache.set_query_data(query_keys.dashboard.stats("org-1"), {"products": 0})
    service = ProductMutationService(gateway, cache)

    product = await service.create_product(ProductCreate(organization_id="org-1", name="Vis"))

    assert product.id == "p1"
    assert cache.is_stale(query_keys.products.stats("org-1"))
    assert cache.is_stale(query_keys.dashboard.stats("org-1"))
