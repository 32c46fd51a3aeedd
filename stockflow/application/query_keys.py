"""Hierarchical cache key registry.

Every key is a tuple whose first element is its namespace name. Sub-resource
keys extend their parent key, so invalidating a prefix (e.g.
``query_keys.products.all``) reaches every list, detail and stats entry
below it.

Usage:
    from stockflow.application.query_keys import query_keys
    query_keys.products.detail("p1")   # ("products", "detail", "p1")
"""

from typing import Any, TypeVar

from stockflow.application.schemas.filters import ProductFilters, StockMovementFilters

CacheKey = tuple[Any, ...]


def is_prefix(prefix: CacheKey, key: CacheKey) -> bool:
    """True when ``key`` starts with every element of ``prefix``, in order."""
    if len(prefix) > len(key):
        return False
    return all(a == b for a, b in zip(prefix, key))


class Namespace:
    """Base for a key namespace — owns the ``all`` root key."""

    name: str = ""

    def __init__(self) -> None:
        if not self.name:
            raise ValueError(f"{type(self).__name__} must define a namespace name")
        self.all: CacheKey = (self.name,)

    def _key(self, *segments: Any) -> CacheKey:
        return (*self.all, *segments)


# ── Namespaces ───────────────────────────────────────────────────────


class ProductKeys(Namespace):
    name = "products"

    def lists(self) -> CacheKey:
        return self._key("list")

    def list(self, filters: ProductFilters | None = None) -> CacheKey:
        return (*self.lists(), filters or ProductFilters())

    def details(self) -> CacheKey:
        return self._key("detail")

    def detail(self, product_id: str) -> CacheKey:
        return (*self.details(), product_id)

    def stats(self, org_id: str | None = None) -> CacheKey:
        return self._key("stats", org_id)


class CategoryKeys(Namespace):
    name = "categories"

    def lists(self) -> CacheKey:
        return self._key("list")

    def list(self, org_id: str | None = None) -> CacheKey:
        return (*self.lists(), org_id)

    def tree(self, org_id: str | None = None) -> CacheKey:
        return self._key("tree", org_id)

    def details(self) -> CacheKey:
        return self._key("detail")

    def detail(self, category_id: str) -> CacheKey:
        return (*self.details(), category_id)


class MovementKeys(Namespace):
    name = "movements"

    def lists(self) -> CacheKey:
        return self._key("list")

    def list(self, filters: StockMovementFilters | None = None) -> CacheKey:
        return (*self.lists(), filters or StockMovementFilters())

    def by_product(self, product_id: str) -> CacheKey:
        return self._key("by_product", product_id)

    def stats(self, product_id: str, months: int | None = None) -> CacheKey:
        return self._key("stats", product_id, months)

    def summaries(self) -> CacheKey:
        return self._key("summary")

    def summary(self, org_id: str | None = None) -> CacheKey:
        return (*self.summaries(), org_id)


class TechnicianKeys(Namespace):
    name = "technicians"

    def lists(self) -> CacheKey:
        return self._key("list")

    def list(self, org_id: str | None = None) -> CacheKey:
        return (*self.lists(), org_id)

    def details(self) -> CacheKey:
        return self._key("detail")

    def detail(self, technician_id: str) -> CacheKey:
        return (*self.details(), technician_id)

    def stats(self, org_id: str | None = None) -> CacheKey:
        return self._key("stats", org_id)

    def inventory(self, technician_id: str) -> CacheKey:
        return self._key("inventory", technician_id)

    def history(self, technician_id: str) -> CacheKey:
        return self._key("history", technician_id)

    def movements(self, technician_id: str) -> CacheKey:
        return self._key("movements", technician_id)


class DashboardKeys(Namespace):
    name = "dashboard"

    def stats(self, org_id: str | None = None) -> CacheKey:
        return self._key("stats", org_id)

    def recent_movements(self, org_id: str | None = None, limit: int | None = None) -> CacheKey:
        return self._key("recent_movements", org_id, limit)

    def stock_evolution(self, org_id: str | None = None, months: int | None = None) -> CacheKey:
        return self._key("stock_evolution", org_id, months)

    def product_evolution(self, product_id: str, months: int | None = None) -> CacheKey:
        return self._key("product_evolution", product_id, months)

    def category_evolution(self, category_id: str, months: int | None = None) -> CacheKey:
        return self._key("category_evolution", category_id, months)

    def technician_stats(self, org_id: str | None = None) -> CacheKey:
        return self._key("technician_stats", org_id)

    def products_needing_restock(
        self, org_id: str | None = None, score_threshold: int | None = None
    ) -> CacheKey:
        return self._key("products_needing_restock", org_id, score_threshold)

    def technicians_needing_restock(self, org_id: str | None = None) -> CacheKey:
        return self._key("technicians_needing_restock", org_id)

    def tasks(self, org_id: str | None = None) -> CacheKey:
        return self._key("tasks", org_id)


class OrganizationKeys(Namespace):
    name = "organizations"

    def lists(self) -> CacheKey:
        return self._key("list")

    def list(self) -> CacheKey:
        # The member's organization list is not parameterized: one list per session.
        return self.lists()

    def members(self, org_id: str) -> CacheKey:
        return self._key("members", org_id)

    def invitations(self, org_id: str) -> CacheKey:
        return self._key("invitations", org_id)


class InventoryKeys(Namespace):
    name = "inventory"

    def available_products(self, org_id: str | None = None) -> CacheKey:
        return self._key("available_products", org_id)


# ── Registry ─────────────────────────────────────────────────────────

N = TypeVar("N", bound=Namespace)


class QueryKeys:
    """All namespaces of the application, with unique root names."""

    def __init__(self) -> None:
        self._namespaces: dict[str, Namespace] = {}

        self.products = self.register(ProductKeys())
        self.categories = self.register(CategoryKeys())
        self.movements = self.register(MovementKeys())
        self.technicians = self.register(TechnicianKeys())
        self.dashboard = self.register(DashboardKeys())
        self.organizations = self.register(OrganizationKeys())
        self.inventory = self.register(InventoryKeys())

    def register(self, namespace: N) -> N:
        """Add a namespace; raises ValueError if its name is already taken."""
        if namespace.name in self._namespaces:
            raise ValueError(f"Cache namespace '{namespace.name}' is already registered")
        self._namespaces[namespace.name] = namespace
        return namespace

    @property
    def namespaces(self) -> tuple[Namespace, ...]:
        return tuple(self._namespaces.values())


query_keys = QueryKeys()
