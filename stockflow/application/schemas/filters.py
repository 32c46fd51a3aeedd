"""Immutable filter objects for paginated list reads.

Frozen models are hashable, so they can sit inside cache keys.
"""

from typing import Literal

from pydantic import BaseModel, Field

from stockflow.domain.entities import MovementType

StockStatus = Literal["low", "normal", "high", "all"]


class ProductFilters(BaseModel):
    """Catalog list filters — ``stock_status`` is applied after the fetch."""

    organization_id: str | None = None
    search: str | None = None
    category_id: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    stock_status: StockStatus | None = None
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1)

    model_config = {"frozen": True}


class StockMovementFilters(BaseModel):
    organization_id: str | None = None
    product_id: str | None = None
    technician_id: str | None = None
    movement_type: MovementType | None = None
    start_date: str | None = None
    end_date: str | None = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1)

    model_config = {"frozen": True}
