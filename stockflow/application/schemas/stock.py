"""Pydantic DTOs for stock movements and technician restocks.

Quantities are not constrained here; the orchestrators reject non-positive
values with InvalidQuantityError.
"""

from pydantic import BaseModel, Field, field_validator

from stockflow.domain.entities import MovementType, RestockItem


class StockEntryParams(BaseModel):
    organization_id: str
    product_id: str
    quantity: int
    notes: str | None = None


class StockExitParams(BaseModel):
    """Exit of stock — ``technician_id`` is required by the backend for
    ``exit_technician``."""

    organization_id: str
    product_id: str
    quantity: int
    movement_type: MovementType = Field(..., examples=["exit_anonymous"])
    technician_id: str | None = None
    notes: str | None = None

    @field_validator("movement_type")
    @classmethod
    def _must_be_exit(cls, value: MovementType) -> MovementType:
        if not value.is_exit:
            raise ValueError("movement_type must be an exit type")
        return value


class RestockParams(BaseModel):
    """A batch of products handed to a technician, applied atomically."""

    technician_id: str
    items: list[RestockItem]
