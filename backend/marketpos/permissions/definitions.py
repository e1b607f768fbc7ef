# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "VIEW_CATALOG",
        "View Catalog",
        "View products, categories and suppliers",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_PRODUCTS",
        "Manage Products",
        "Create, edit and deactivate products",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_CATEGORIES",
        "Manage Categories",
        "Create, edit and delete categories",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_SUPPLIERS",
        "Manage Suppliers",
        "Create, edit and deactivate suppliers",
        PermissionCategory.CATALOG,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        "VIEW_SALES",
        "View Sales",
        "View sale history and invoices",
        PermissionCategory.SALES,
    ),
    (
        "CREATE_SALE",
        "Create Sale",
        "Check out customers (POS access)",
        PermissionCategory.SALES,
    ),
    (
        "VIEW_SALES_STATS",
        "View Sales Statistics",
        "View revenue and sales aggregates",
        PermissionCategory.SALES,
    ),
]


# -- PURCHASING --

PURCHASING_PERMISSIONS = [
    (
        "VIEW_PURCHASES",
        "View Purchase Orders",
        "View purchase orders and their items",
        PermissionCategory.PURCHASING,
    ),
    (
        "MANAGE_PURCHASES",
        "Manage Purchase Orders",
        "Create, update status and delete pending purchase orders",
        PermissionCategory.PURCHASING,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View inventory ledger entries",
        PermissionCategory.INVENTORY,
    ),
    (
        "ADJUST_INVENTORY",
        "Adjust Inventory",
        "Create manual stock adjustments (corrections, shrink, etc.)",
        PermissionCategory.INVENTORY,
    ),
    (
        "VIEW_INVENTORY_STATS",
        "View Inventory Statistics",
        "View stock movement totals and low-stock alerts",
        PermissionCategory.INVENTORY,
    ),
]


# -- PROMOTIONS --

PROMOTION_PERMISSIONS = [
    (
        "VIEW_DISCOUNTS",
        "View Discounts",
        "View discounts and calculate discount amounts",
        PermissionCategory.PROMOTIONS,
    ),
    (
        "MANAGE_DISCOUNTS",
        "Manage Discounts",
        "Create, edit and delete discounts",
        PermissionCategory.PROMOTIONS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create, edit and deactivate staff accounts",
        PermissionCategory.USERS,
    ),
    (
        "VIEW_AUDIT_LOG",
        "View Activity Log",
        "View the audit trail of logins, denials and data changes",
        PermissionCategory.USERS,
    ),
]


PERMISSION_DEFINITIONS = (
    CATALOG_PERMISSIONS
    + SALES_PERMISSIONS
    + PURCHASING_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + PROMOTION_PERMISSIONS
    + USER_PERMISSIONS
)
