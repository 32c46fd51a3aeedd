"""Pydantic DTOs for the product catalog (products and categories)."""

from typing import Any

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    """Schema for creating a product — a SKU is generated when omitted."""

    organization_id: str
    name: str = Field(..., min_length=1, examples=["Vis inox M6"])
    sku: str | None = None
    description: str | None = None
    image_url: str | None = None
    price: float | None = None
    stock_current: int = 0
    stock_min: int = 10
    stock_max: int = 100
    category_id: str | None = None
    supplier_name: str | None = None
    is_perishable: bool = False
    track_stock: bool = True


class ProductUpdate(BaseModel):
    """Schema for updating a product — only the fields that were set are sent."""

    name: str | None = Field(None, min_length=1)
    sku: str | None = None
    description: str | None = None
    image_url: str | None = None
    price: float | None = None
    stock_current: int | None = None
    stock_min: int | None = None
    stock_max: int | None = None
    category_id: str | None = None
    supplier_name: str | None = None
    is_perishable: bool | None = None
    track_stock: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class CategoryCreate(BaseModel):
    organization_id: str
    name: str = Field(..., min_length=1)
    parent_id: str | None = None


class CategoryUpdate(BaseModel):
    """Rename a category; ``parent_id`` is only moved when explicitly given."""

    id: str
    name: str = Field(..., min_length=1)
    parent_id: str | None = None

    def changes(self) -> dict[str, Any]:
        changes: dict[str, Any] = {"name": self.name}
        if "parent_id" in self.model_fields_set:
            changes["parent_id"] = self.parent_id
        return changes
