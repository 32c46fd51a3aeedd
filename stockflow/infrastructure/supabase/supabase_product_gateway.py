"""Backend implementation of ProductGateway.

``stock_status`` is applied to the fetched page rather than sent to the
backend: PostgREST cannot compare two columns of the same row. When that
filter is active, ``total`` counts the filtered page only.
"""

import math
import re
import time
from datetime import datetime, timezone
from typing import Any

from stockflow.application.interfaces import ProductGateway
from stockflow.application.schemas.catalog import ProductCreate
from stockflow.application.schemas.filters import ProductFilters
from stockflow.domain.entities import Product, ProductsResult, ProductStats
from stockflow.domain.exceptions import BackendError, EntityNotFoundError
from stockflow.infrastructure.supabase.errors import operation_error
from stockflow.infrastructure.supabase.supabase_category_gateway import category_from_row
from stockflow.infrastructure.supabase.supabase_client import NO_ROWS, SupabaseClient

_COLUMNS = "*, category:categories(*)"
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_sku(name: str, now_ms: int | None = None) -> str:
    """``<4 alphanumerics of the name, X-padded>-<last 6 base-36 chars of the timestamp>``."""
    prefix = re.sub(r"[^A-Z0-9]", "", name.upper())[:4].ljust(4, "X")
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{prefix}-{_to_base36(now_ms)[-6:]}"


def _matches_stock_status(product: Product, stock_status: str | None) -> bool:
    if stock_status == "low":
        return product.stock_current <= product.stock_min
    if stock_status == "high":
        return product.stock_current >= product.stock_max
    return True


class SupabaseProductGateway(ProductGateway):
    def __init__(self, client: SupabaseClient):
        self._client = client

    async def list_products(self, filters: ProductFilters) -> ProductsResult:
        conditions: list[tuple[str, str]] = []
        if filters.organization_id:
            conditions.append(("organization_id", f"eq.{filters.organization_id}"))
        if filters.search:
            term = filters.search
            conditions.append(
                ("or", f"(name.ilike.*{term}*,sku.ilike.*{term}*,description.ilike.*{term}*)")
            )
        if filters.category_id:
            conditions.append(("category_id", f"eq.{filters.category_id}"))
        if filters.min_price is not None:
            conditions.append(("price", f"gte.{filters.min_price}"))
        if filters.max_price is not None:
            conditions.append(("price", f"lte.{filters.max_price}"))

        try:
            result = await self._client.select(
                "products",
                columns=_COLUMNS,
                filters=conditions,
                order="created_at.desc",
                limit=filters.page_size,
                offset=(filters.page - 1) * filters.page_size,
                count=True,
            )
        except BackendError as e:
            raise operation_error("de la récupération des produits", e) from e

        products = [self._to_entity(row) for row in result.data]
        total = result.count or 0

        if filters.stock_status and filters.stock_status != "all":
            products = [p for p in products if _matches_stock_status(p, filters.stock_status)]
            total = len(products)

        return ProductsResult(
            products=products,
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            total_pages=math.ceil(total / filters.page_size),
        )

    async def get_product(self, product_id: str) -> Product | None:
        try:
            row = await self._client.select_single(
                "products", columns=_COLUMNS, filters=[("id", f"eq.{product_id}")]
            )
        except BackendError as e:
            if e.code == NO_ROWS:
                return None
            raise operation_error("de la récupération du produit", e) from e
        return self._to_entity(row)

    async def get_stats(self, organization_id: str | None = None) -> ProductStats:
        conditions = []
        if organization_id:
            conditions.append(("organization_id", f"eq.{organization_id}"))
        try:
            result = await self._client.select(
                "products", columns="stock_current, stock_min, price", filters=conditions
            )
        except BackendError as e:
            raise operation_error("de la récupération des statistiques", e) from e

        stats = ProductStats(total=len(result.data))
        for row in result.data:
            current = row.get("stock_current") or 0
            minimum = row.get("stock_min") or 0
            if current == 0:
                stats.out_of_stock += 1
            elif current <= minimum:
                stats.low_stock += 1
            stats.total_value += (row.get("price") or 0) * current
        return stats

    async def create_product(self, data: ProductCreate) -> Product:
        values = {
            "organization_id": data.organization_id,
            "name": data.name,
            "sku": data.sku or generate_sku(data.name),
            "description": data.description or None,
            "image_url": data.image_url or None,
            "price": data.price,
            "stock_current": data.stock_current,
            "stock_min": data.stock_min,
            "stock_max": data.stock_max,
            "category_id": data.category_id or None,
            "supplier_name": data.supplier_name or None,
            "is_perishable": data.is_perishable,
            "track_stock": data.track_stock,
        }
        try:
            rows = await self._client.insert("products", values)
        except BackendError as e:
            raise operation_error("de la création du produit", e) from e
        return self._to_entity(rows[0])

    async def update_product(self, product_id: str, changes: dict[str, Any]) -> Product:
        values = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        try:
            rows = await self._client.update("products", values, filters=[("id", f"eq.{product_id}")])
        except BackendError as e:
            raise operation_error("de la mise à jour du produit", e) from e
        if not rows:
            raise EntityNotFoundError("Product", product_id)
        return self._to_entity(rows[0])

    async def delete_product(self, product_id: str) -> None:
        try:
            await self._client.delete("products", filters=[("id", f"eq.{product_id}")])
        except BackendError as e:
            raise operation_error("de la suppression du produit", e) from e

    @staticmethod
    def _to_entity(row: dict[str, Any]) -> Product:
        category = row.get("category")
        return Product(
            id=row["id"],
            name=row.get("name", ""),
            sku=row.get("sku") or "",
            description=row.get("description"),
            image_url=row.get("image_url"),
            price=row.get("price"),
            stock_current=row.get("stock_current") or 0,
            stock_min=row.get("stock_min") or 0,
            stock_max=row.get("stock_max") or 0,
            category_id=row.get("category_id"),
            supplier_name=row.get("supplier_name"),
            is_perishable=bool(row.get("is_perishable")),
            track_stock=row.get("track_stock") is not False,
            organization_id=row.get("organization_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            archived_at=row.get("archived_at"),
            category=category_from_row(category) if category else None,
        )
