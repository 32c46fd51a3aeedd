from .query_cache import CacheEvent, OptimisticPatch, QueryCache, StaleTimes
from .mutation_service import MutationService
from .stock_mutation_service import StockMutationService
from .inventory_mutation_service import InventoryMutationService
from .category_mutation_service import CategoryMutationService
from .product_mutation_service import ProductMutationService
from .technician_mutation_service import TechnicianMutationService
from .organization_mutation_service import OrganizationMutationService
from .inventory_queries import InventoryQueries
from .dashboard_queries import DashboardQueries
from .persisted_state import PersistedState
from .task_dismissal_store import TaskDismissalStore
from .organization_store import OrganizationStore
from .organization_session import OrganizationSession

__all__ = [
    "CacheEvent",
    "OptimisticPatch",
    "QueryCache",
    "StaleTimes",
    "MutationService",
    "StockMutationService",
    "InventoryMutationService",
    "CategoryMutationService",
    "ProductMutationService",
    "TechnicianMutationService",
    "OrganizationMutationService",
    "InventoryQueries",
    "DashboardQueries",
    "PersistedState",
    "TaskDismissalStore",
    "OrganizationStore",
    "OrganizationSession",
]
