"""
Role-based gating for the HTTP layer

Roles come from the front-end session and are used for UI gating only; the
ledger itself never checks them.
"""

from enum import Enum
from typing import Set


class Role(str, Enum):
    """Staff roles"""
    ADMIN = "admin"
    MANAGER = "manager"
    WAITER = "waiter"
    KITCHEN = "kitchen"
    CASHIER = "cashier"


class Permission(str, Enum):
    """Permission definitions"""
    # Order permissions
    ORDER_VIEW = "order:view"
    ORDER_CREATE = "order:create"
    ORDER_UPDATE_STATUS = "order:update_status"

    # Kitchen permissions
    KITCHEN_UPDATE = "kitchen:update"

    # Payment permissions
    PAYMENT_RECORD = "payment:record"

    # Catalog permissions
    MENU_EDIT = "menu:edit"
    INVENTORY_EDIT = "inventory:edit"
    CUSTOMER_EDIT = "customer:edit"

    # Table and delivery permissions
    TABLES_EDIT = "tables:edit"
    DELIVERY_EDIT = "delivery:edit"

    # Report permissions
    REPORTS_VIEW = "reports:view"


# Role permission mapping
ROLE_PERMISSIONS = {
    Role.ADMIN: set(Permission),
    Role.MANAGER: set(Permission),
    Role.WAITER: {
        Permission.ORDER_VIEW,
        Permission.ORDER_CREATE,
        Permission.ORDER_UPDATE_STATUS,
        Permission.TABLES_EDIT,
        Permission.CUSTOMER_EDIT,
        Permission.DELIVERY_EDIT,
    },
    Role.KITCHEN: {
        Permission.ORDER_VIEW,
        Permission.KITCHEN_UPDATE,
    },
    Role.CASHIER: {
        Permission.ORDER_VIEW,
        Permission.ORDER_UPDATE_STATUS,
        Permission.PAYMENT_RECORD,
        Permission.CUSTOMER_EDIT,
        Permission.DELIVERY_EDIT,
    },
}


def get_permissions_for_role(role: str) -> Set[Permission]:
    """Get permissions for a given role"""
    try:
        return ROLE_PERMISSIONS[Role(role.lower())]
    except ValueError:
        return set()


def has_permission(required_permission: Permission, user_permissions: Set[Permission]) -> bool:
    """Check if user has required permission"""
    return required_permission in user_permissions
