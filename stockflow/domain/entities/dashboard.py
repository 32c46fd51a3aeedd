"""Dashboard read models — aggregates computed from products, movements and technicians."""

from dataclasses import dataclass, field
from enum import Enum

from stockflow.domain.entities.stock_movement import MovementType


@dataclass
class DashboardStats:
    """Headline counters for the organization dashboard."""

    total_stock: int = 0
    total_value: float = 0.0
    monthly_entries: int = 0
    monthly_exits: int = 0
    total_products: int = 0
    low_stock_count: int = 0


@dataclass
class ProductNeedingRestock:
    id: str
    name: str
    sku: str = ""
    image_url: str | None = None
    stock_current: int = 0
    stock_min: int = 0
    stock_max: int = 0
    score: int = 0


@dataclass
class TechnicianNeedingRestock:
    id: str
    first_name: str
    last_name: str
    last_restock: str | None = None
    days_since_restock: int = 0
    inventory_count: int = 0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class RecentMovement:
    """A movement with the product and technician names needed to display it."""

    id: str
    quantity: int
    movement_type: MovementType
    created_at: str | None = None
    notes: str | None = None
    product_id: str | None = None
    product_name: str | None = None
    product_sku: str | None = None
    product_image_url: str | None = None
    product_price: float | None = None
    technician_id: str | None = None
    technician_name: str | None = None


@dataclass
class StockEvolutionPoint:
    """Stock level at the end of a month (``date`` is ``YYYY-MM``)."""

    date: str
    total_stock: int = 0
    entries: int = 0
    exits: int = 0


@dataclass
class TechnicianDashboardStats:
    total: int = 0
    with_good_stock: int = 0
    with_low_stock: int = 0
    needing_restock: int = 0


class TaskType(str, Enum):
    PRODUCT_OUT_OF_STOCK = "product_out_of_stock"
    PRODUCT_BELOW_MIN = "product_below_min"
    PRODUCT_OVERSTOCKED = "product_overstocked"
    PRODUCT_DORMANT = "product_dormant"
    TECHNICIAN_NEVER_RESTOCKED = "technician_never_restocked"
    TECHNICIAN_LATE_RESTOCK = "technician_late_restock"


class TaskPriority(str, Enum):
    CRITICAL = "critical"
    IMPORTANT = "important"
    INFORMATIONAL = "informational"


@dataclass
class DashboardTask:
    """An action suggested on the dashboard; dismissible per entity."""

    type: TaskType
    priority: TaskPriority
    title: str
    entity_ids: list[str] = field(default_factory=list)
    description: str | None = None
