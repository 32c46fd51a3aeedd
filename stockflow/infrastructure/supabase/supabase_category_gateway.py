"""Backend implementation of CategoryGateway."""

from typing import Any

from stockflow.application.interfaces import CategoryGateway
from stockflow.domain.entities import Category
from stockflow.domain.exceptions import BackendError, EntityNotFoundError, RemoteOperationError
from stockflow.infrastructure.supabase.errors import operation_error
from stockflow.infrastructure.supabase.supabase_client import NO_ROWS, SupabaseClient

CATEGORY_HAS_CHILDREN = "Impossible de supprimer une catégorie qui contient des sous-catégories"


def category_from_row(row: dict[str, Any]) -> Category:
    return Category(
        id=row["id"],
        name=row.get("name", ""),
        parent_id=row.get("parent_id"),
        organization_id=row.get("organization_id"),
        created_at=row.get("created_at"),
    )


class SupabaseCategoryGateway(CategoryGateway):
    def __init__(self, client: SupabaseClient):
        self._client = client

    async def list_categories(self, organization_id: str | None = None) -> list[Category]:
        conditions = []
        if organization_id:
            conditions.append(("organization_id", f"eq.{organization_id}"))
        try:
            result = await self._client.select("categories", filters=conditions, order="name.asc")
        except BackendError as e:
            raise operation_error("de la récupération des catégories", e) from e
        return [category_from_row(row) for row in result.data]

    async def get_category(self, category_id: str) -> Category | None:
        try:
            row = await self._client.select_single("categories", filters=[("id", f"eq.{category_id}")])
        except BackendError as e:
            if e.code == NO_ROWS:
                return None
            raise operation_error("de la récupération de la catégorie", e) from e
        return category_from_row(row)

    async def create_category(
        self, organization_id: str, name: str, parent_id: str | None = None
    ) -> Category:
        try:
            rows = await self._client.insert(
                "categories",
                {"organization_id": organization_id, "name": name, "parent_id": parent_id or None},
            )
        except BackendError as e:
            raise operation_error("de la création de la catégorie", e) from e
        return category_from_row(rows[0])

    async def update_category(self, category_id: str, changes: dict[str, Any]) -> Category:
        try:
            rows = await self._client.update(
                "categories", changes, filters=[("id", f"eq.{category_id}")]
            )
        except BackendError as e:
            raise operation_error("de la mise à jour de la catégorie", e) from e
        if not rows:
            raise EntityNotFoundError("Category", category_id)
        return category_from_row(rows[0])

    async def delete_category(self, category_id: str) -> None:
        try:
            children = await self._client.select(
                "categories", columns="id", filters=[("parent_id", f"eq.{category_id}")]
            )
        except BackendError as e:
            raise operation_error("de la récupération des sous-catégories", e) from e
        if children.data:
            raise RemoteOperationError(CATEGORY_HAS_CHILDREN)

        try:
            await self._client.delete("categories", filters=[("id", f"eq.{category_id}")])
        except BackendError as e:
            raise operation_error("de la suppression de la catégorie", e) from e
