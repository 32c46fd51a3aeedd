from dataclasses import dataclass, field


@dataclass
class TechnicianInventoryItem:
    """A product line held in a technician's personal inventory."""

    id: str
    technician_id: str
    product_id: str
    quantity: int
    assigned_at: str | None = None
    organization_id: str | None = None
    product_name: str | None = None
    product_sku: str | None = None
    product_stock_max: int | None = None


@dataclass
class Technician:
    """Field technician, with inventory counters when fetched through the stats RPC."""

    id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    city: str | None = None
    organization_id: str | None = None
    created_at: str | None = None
    archived_at: str | None = None
    inventory: list[TechnicianInventoryItem] = field(default_factory=list)
    inventory_count: int = 0
    last_restock_at: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class TechnicianInventorySnapshotItem:
    product_id: str
    product_name: str
    quantity: int
    product_sku: str | None = None


@dataclass
class TechnicianInventoryHistoryEntry:
    """Inventory snapshot recorded after each restock of a technician."""

    id: str
    technician_id: str
    items: list[TechnicianInventorySnapshotItem] = field(default_factory=list)
    total_items: int = 0
    organization_id: str | None = None
    created_at: str | None = None


@dataclass
class TechniciansStats:
    """Organization-wide technician counters (restocks over the last 7 days)."""

    total_technicians: int = 0
    empty_inventory: int = 0
    total_items: int = 0
    recent_restocks: int = 0
