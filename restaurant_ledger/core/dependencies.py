"""
FastAPI dependencies: service lookup and role gating
"""

from fastapi import Depends, Header, Request
from typing import Optional, Set
import structlog

from restaurant_ledger.core.exceptions import PermissionDenied
from restaurant_ledger.core.permissions import Permission, get_permissions_for_role, has_permission
from restaurant_ledger.services.cashier import CashierService
from restaurant_ledger.services.catalog import Catalog
from restaurant_ledger.services.ledger import OrderLedger

logger = structlog.get_logger(__name__)


def get_ledger(request: Request) -> OrderLedger:
    """Ledger owned by the running application"""
    return request.app.state.ledger


def get_catalog(request: Request) -> Catalog:
    return request.app.state.ledger.catalog


def get_cashier(request: Request) -> CashierService:
    return request.app.state.cashier


async def get_user_role(request: Request, x_user_role: Optional[str] = Header(default=None)) -> str:
    """Role of the calling staff member, from the X-User-Role header"""
    return (x_user_role or request.app.state.settings.DEFAULT_USER_ROLE).lower()


async def get_user_permissions(role: str = Depends(get_user_role)) -> Set[Permission]:
    return get_permissions_for_role(role)


def require_permission(required_permission: Permission):
    """Dependency factory to check permissions"""
    async def check_permission(
        role: str = Depends(get_user_role),
        user_permissions: Set[Permission] = Depends(get_user_permissions),
    ) -> bool:
        if not has_permission(required_permission, user_permissions):
            logger.warning("permission_denied", role=role, permission=required_permission.value)
            raise PermissionDenied(
                f"Permission required: {required_permission.value}",
                {"role": role},
            )
        return True
    return check_permission
