"""Product mirror — the backend owns products; the client holds read copies."""

from dataclasses import dataclass, field


@dataclass
class Category:
    """A product category, optionally nested under a parent category."""

    id: str
    name: str
    parent_id: str | None = None
    organization_id: str | None = None
    created_at: str | None = None


@dataclass
class Product:
    """Core catalog entity with its stock thresholds."""

    id: str
    name: str
    sku: str = ""
    description: str | None = None
    image_url: str | None = None
    price: float | None = None
    stock_current: int = 0
    stock_min: int = 0
    stock_max: int = 0
    category_id: str | None = None
    supplier_name: str | None = None
    is_perishable: bool = False
    track_stock: bool = True
    organization_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    archived_at: str | None = None
    category: Category | None = None


@dataclass
class ProductsResult:
    """One page of a filtered product listing."""

    products: list[Product] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
    total_pages: int = 0


@dataclass
class ProductStats:
    """Catalog-wide counters shown on the products overview."""

    total: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    total_value: float = 0.0


@dataclass
class CategoryNode:
    category: Category
    children: list["CategoryNode"] = field(default_factory=list)


def build_category_tree(categories: list[Category]) -> list[CategoryNode]:
    """Nest categories under their parents, keeping input order.

    A category whose parent is not in the list is treated as a root.
    """
    nodes = {category.id: CategoryNode(category) for category in categories}
    roots: list[CategoryNode] = []
    for category in categories:
        node = nodes[category.id]
        parent = nodes.get(category.parent_id) if category.parent_id else None
        if parent is not None:
            parent.children.append(node)
        else:
            roots.append(node)
    return roots
