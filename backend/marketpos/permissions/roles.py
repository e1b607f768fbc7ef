# Overview: Closed role enumeration and the capability set granted to each role.

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    CASHIER = "cashier"

    @classmethod
    def values(cls) -> list[str]:
        return [r.value for r in cls]


_READ_ONLY = frozenset({
    "VIEW_CATALOG",
    "VIEW_SALES",
    "VIEW_PURCHASES",
    "VIEW_INVENTORY",
    "VIEW_DISCOUNTS",
})

# Admin has every permission; staff runs the back room; cashier runs the till.
ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.ADMIN: _READ_ONLY | {
        "CREATE_SALE",
        "VIEW_SALES_STATS",
        "MANAGE_PRODUCTS",
        "MANAGE_CATEGORIES",
        "MANAGE_SUPPLIERS",
        "MANAGE_PURCHASES",
        "ADJUST_INVENTORY",
        "VIEW_INVENTORY_STATS",
        "MANAGE_DISCOUNTS",
        "MANAGE_USERS",
        "VIEW_AUDIT_LOG",
    },
    Role.STAFF: _READ_ONLY | {
        "MANAGE_PRODUCTS",
        "MANAGE_SUPPLIERS",
        "MANAGE_PURCHASES",
        "ADJUST_INVENTORY",
        "VIEW_INVENTORY_STATS",
    },
    Role.CASHIER: _READ_ONLY | {
        "CREATE_SALE",
        "VIEW_SALES_STATS",
    },
}
