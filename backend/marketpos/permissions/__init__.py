# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    CATALOG_PERMISSIONS,
    SALES_PERMISSIONS,
    PURCHASING_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    PROMOTION_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import Role, ROLE_PERMISSIONS
from .helpers import (
    get_all_permission_codes,
    permissions_for_role,
    role_has_permission,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "CATALOG_PERMISSIONS",
    "SALES_PERMISSIONS",
    "PURCHASING_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "PROMOTION_PERMISSIONS",
    "USER_PERMISSIONS",
    "Role",
    "ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "permissions_for_role",
    "role_has_permission",
]
