from .supabase_client import QueryResult, SupabaseClient
from .supabase_stock_movement_gateway import SupabaseStockMovementGateway
from .supabase_inventory_gateway import SupabaseInventoryGateway
from .supabase_product_gateway import SupabaseProductGateway
from .supabase_category_gateway import SupabaseCategoryGateway
from .supabase_technician_gateway import SupabaseTechnicianGateway
from .supabase_organization_gateway import SupabaseOrganizationGateway
from .supabase_dashboard_gateway import SupabaseDashboardGateway

__all__ = [
    "QueryResult",
    "SupabaseClient",
    "SupabaseStockMovementGateway",
    "SupabaseInventoryGateway",
    "SupabaseProductGateway",
    "SupabaseCategoryGateway",
    "SupabaseTechnicianGateway",
    "SupabaseOrganizationGateway",
    "SupabaseDashboardGateway",
]
