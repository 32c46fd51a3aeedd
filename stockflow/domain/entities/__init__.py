from .product import (
    Category,
    CategoryNode,
    Product,
    ProductsResult,
    ProductStats,
    build_category_tree,
)
from .stock_movement import (
    MOVEMENT_TYPE_LABELS,
    DailyMovementStats,
    MovementType,
    MovementsSummary,
    StockMovement,
    StockMovementsResult,
    ensure_positive_quantity,
)
from .technician import (
    Technician,
    TechnicianInventoryHistoryEntry,
    TechnicianInventoryItem,
    TechnicianInventorySnapshotItem,
    TechniciansStats,
)
from .inventory import AvailableProduct, RestockItem, RestockResult, validate_restock_items
from .dashboard import (
    DashboardStats,
    DashboardTask,
    ProductNeedingRestock,
    RecentMovement,
    StockEvolutionPoint,
    TaskPriority,
    TaskType,
    TechnicianDashboardStats,
    TechnicianNeedingRestock,
)
from .organization import (
    Organization,
    OrganizationInvitation,
    OrganizationMember,
    OrganizationRole,
    can_delete_organization,
    can_invite,
    can_manage_admins,
    can_manage_members,
)

__all__ = [
    "Category",
    "CategoryNode",
    "build_category_tree",
    "Product",
    "ProductsResult",
    "ProductStats",
    "MOVEMENT_TYPE_LABELS",
    "DailyMovementStats",
    "MovementType",
    "MovementsSummary",
    "StockMovement",
    "StockMovementsResult",
    "ensure_positive_quantity",
    "Technician",
    "TechnicianInventoryItem",
    "TechnicianInventoryHistoryEntry",
    "TechnicianInventorySnapshotItem",
    "TechniciansStats",
    "AvailableProduct",
    "RestockItem",
    "RestockResult",
    "validate_restock_items",
    "DashboardStats",
    "DashboardTask",
    "ProductNeedingRestock",
    "RecentMovement",
    "StockEvolutionPoint",
    "TaskPriority",
    "TaskType",
    "TechnicianDashboardStats",
    "TechnicianNeedingRestock",
    "Organization",
    "OrganizationInvitation",
    "OrganizationMember",
    "OrganizationRole",
    "can_delete_organization",
    "can_invite",
    "can_manage_admins",
    "can_manage_members",
]
