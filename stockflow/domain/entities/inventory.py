"""Technician restock batches — applied atomically by the backend."""

from dataclasses import dataclass

from stockflow.domain.entities.stock_movement import ensure_positive_quantity
from stockflow.domain.exceptions import EmptyBatchError


@dataclass(frozen=True)
class RestockItem:
    product_id: str
    quantity: int


@dataclass
class RestockResult:
    success: bool
    items_count: int
    previous_items_count: int


@dataclass
class AvailableProduct:
    """A product with stock left to hand out to technicians."""

    id: str
    name: str
    stock_current: int
    stock_max: int
    sku: str | None = None
    image_url: str | None = None


def validate_restock_items(items: list[RestockItem]) -> list[RestockItem]:
    """Check a batch before it is sent: non-empty, every quantity positive."""
    if not items:
        raise EmptyBatchError()
    for item in items:
        ensure_positive_quantity(item.quantity)
    return items
