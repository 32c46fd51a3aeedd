from .stock_movement_gateway import StockMovementGateway
from .inventory_gateway import InventoryGateway
from .product_gateway import ProductGateway
from .category_gateway import CategoryGateway
from .technician_gateway import TechnicianGateway
from .technician_activity_gateway import TechnicianActivityGateway
from .dashboard_gateway import DashboardGateway
from .organization_gateway import OrganizationGateway
from .key_value_storage import KeyValueStorage

__all__ = [
    "StockMovementGateway",
    "InventoryGateway",
    "ProductGateway",
    "CategoryGateway",
    "TechnicianGateway",
    "TechnicianActivityGateway",
    "DashboardGateway",
    "OrganizationGateway",
    "KeyValueStorage",
]
