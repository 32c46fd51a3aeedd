"""Stock movement entities and the quantity precondition shared by every stock operation."""

from dataclasses import dataclass, field
from enum import Enum

from stockflow.domain.exceptions import InvalidQuantityError


class MovementType(str, Enum):
    ENTRY = "entry"
    EXIT_TECHNICIAN = "exit_technician"
    EXIT_ANONYMOUS = "exit_anonymous"
    EXIT_LOSS = "exit_loss"

    @property
    def is_exit(self) -> bool:
        return self is not MovementType.ENTRY


MOVEMENT_TYPE_LABELS: dict[MovementType, str] = {
    MovementType.ENTRY: "Entrée",
    MovementType.EXIT_TECHNICIAN: "Sortie technicien",
    MovementType.EXIT_ANONYMOUS: "Sortie anonyme",
    MovementType.EXIT_LOSS: "Perte/Casse",
}


@dataclass
class StockMovement:
    """A single entry or exit recorded by the backend."""

    id: str
    product_id: str
    quantity: int
    movement_type: MovementType
    technician_id: str | None = None
    notes: str | None = None
    organization_id: str | None = None
    created_at: str | None = None


@dataclass
class StockMovementsResult:
    """One page of a filtered movement listing."""

    movements: list[StockMovement] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 0


@dataclass
class MovementsSummary:
    """Totals over the last 30 days."""

    total_entries: int = 0
    total_exits: int = 0
    recent_movements: int = 0


@dataclass
class DailyMovementStats:
    """Entries and exits of one product on one day (``date`` is ``YYYY-MM-DD``)."""

    date: str
    entries: int = 0
    exits: int = 0

    @property
    def balance(self) -> int:
        return self.entries - self.exits


def ensure_positive_quantity(quantity: int) -> int:
    """Return ``quantity`` unchanged, or raise InvalidQuantityError.

    Booleans and non-integral values are rejected along with zero and
    negatives.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(quantity)
    return quantity
