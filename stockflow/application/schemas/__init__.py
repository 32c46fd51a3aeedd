from .filters import ProductFilters, StockMovementFilters
from .stock import RestockParams, StockEntryParams, StockExitParams
from .catalog import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate
from .technician import TechnicianCreate, TechnicianUpdate
from .organization import (
    AssignableRole,
    InvitationCancel,
    InvitationCreate,
    MemberRemoval,
    MemberRoleUpdate,
    OrganizationCreate,
    OrganizationUpdate,
)

__all__ = [
    "ProductFilters",
    "StockMovementFilters",
    "RestockParams",
    "StockEntryParams",
    "StockExitParams",
    "CategoryCreate",
    "CategoryUpdate",
    "ProductCreate",
    "ProductUpdate",
    "TechnicianCreate",
    "TechnicianUpdate",
    "AssignableRole",
    "InvitationCancel",
    "InvitationCreate",
    "MemberRemoval",
    "MemberRoleUpdate",
    "OrganizationCreate",
    "OrganizationUpdate",
]
