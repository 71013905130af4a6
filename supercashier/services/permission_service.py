# Overview: Static role -> permission mapping and permission checks.

from __future__ import annotations

from ..errors import PermissionDeniedError
from ..models import User


ADMIN = "admin"
CASHIER = "cashier"
WAREHOUSE = "warehouse"

PERMISSIONS = {
    "CREATE_SALE": "Create and manage draft sales",
    "VIEW_PRODUCTS": "View products and categories",
    "MANAGE_PRODUCTS": "Create, update and delete products",
    "MANAGE_CATEGORIES": "Create, update and delete categories",
    "ADD_STOCK": "Receive stock into products",
    "VIEW_REPORTS": "View sales and inventory reports",
    "MANAGE_USERS": "Create, update and deactivate users",
}

ROLE_DESCRIPTIONS = {
    ADMIN: "Full access",
    CASHIER: "Point of sale",
    WAREHOUSE: "Catalog and stock management",
}

ROLE_PERMISSIONS: dict[str, set[str]] = {
    ADMIN: set(PERMISSIONS),
    CASHIER: {"CREATE_SALE", "VIEW_PRODUCTS", "VIEW_REPORTS"},
    WAREHOUSE: {
        "VIEW_PRODUCTS",
        "MANAGE_PRODUCTS",
        "MANAGE_CATEGORIES",
        "ADD_STOCK",
        "VIEW_REPORTS",
    },
}


def get_user_permissions(user: User) -> set[str]:
    return set(ROLE_PERMISSIONS.get(user.role_name, set()))


def has_permission(user: User, permission_code: str) -> bool:
    return permission_code in get_user_permissions(user)


def require_permission(user: User, permission_code: str) -> None:
    if not has_permission(user, permission_code):
        raise PermissionDeniedError(f"Requires permission {permission_code}")
