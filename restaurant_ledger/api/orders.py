"""
Orders API endpoints
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from datetime import datetime
import structlog
import uuid

from restaurant_ledger.api.schemas import (
    KitchenTicketRead, LineItemStatusUpdate, OrderStatusUpdate, PaymentCreate
)
from restaurant_ledger.core.dependencies import get_ledger, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.models.order import Order, OrderStatus, OrderType
from restaurant_ledger.services.ledger import OrderDraft, OrderFilter, OrderLedger
from restaurant_ledger.services.reports import HistoryStats

logger = structlog.get_logger(__name__)
router = APIRouter()


def order_filter_params(
    status: Optional[OrderStatus] = None,
    order_type: Optional[OrderType] = None,
    table_id: Optional[uuid.UUID] = None,
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    search: Optional[str] = Query(default=None, max_length=100),
) -> OrderFilter:
    """Query string to OrderFilter"""
    return OrderFilter(
        status=status,
        order_type=order_type,
        table_id=table_id,
        created_from=created_from,
        created_to=created_to,
        search=search,
    )


@router.post(
    "/",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.ORDER_CREATE))],
)
async def create_order(
    draft: OrderDraft,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Create an order and its kitchen ticket

    Rules:
    - At least one item, every menu item must exist and be available
    - Dine-in orders need an existing table
    - Delivery orders need an address (or a customer with one)
    """
    return ledger.create_order(draft)


@router.get(
    "/",
    response_model=List[Order],
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def list_orders(
    order_filter: OrderFilter = Depends(order_filter_params),
    ledger: OrderLedger = Depends(get_ledger),
):
    """List orders, newest first"""
    return ledger.list_orders(order_filter)


@router.get(
    "/stats",
    response_model=HistoryStats,
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def order_stats(
    order_filter: OrderFilter = Depends(order_filter_params),
    ledger: OrderLedger = Depends(get_ledger),
):
    """Totals and completion/cancellation rates for the filtered history"""
    return ledger.order_history_stats(order_filter)


@router.get(
    "/{order_id}",
    response_model=Order,
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def get_order(order_id: uuid.UUID, ledger: OrderLedger = Depends(get_ledger)):
    return ledger.get_order(order_id)


@router.patch(
    "/{order_id}/status",
    response_model=Order,
    dependencies=[Depends(require_permission(Permission.ORDER_UPDATE_STATUS))],
)
async def update_order_status(
    order_id: uuid.UUID,
    update: OrderStatusUpdate,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Advance an order one step or cancel it"""
    return ledger.update_order_status(order_id, update.status)


@router.post(
    "/{order_id}/payments",
    response_model=Order,
    dependencies=[Depends(require_permission(Permission.PAYMENT_RECORD))],
)
async def record_payment(
    order_id: uuid.UUID,
    payment: PaymentCreate,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Record a payment taken outside the cashier flow"""
    return ledger.record_payment(order_id, payment.method, payment.amount, payment.transaction_id)


@router.patch(
    "/{order_id}/items/{line_item_id}/status",
    response_model=Order,
    dependencies=[Depends(require_permission(Permission.ORDER_UPDATE_STATUS))],
)
async def update_line_item_status(
    order_id: uuid.UUID,
    line_item_id: uuid.UUID,
    update: LineItemStatusUpdate,
    ledger: OrderLedger = Depends(get_ledger),
):
    return ledger.update_line_item_status(order_id, line_item_id, update.status)


@router.get(
    "/{order_id}/ticket",
    response_model=Optional[KitchenTicketRead],
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def get_order_ticket(order_id: uuid.UUID, ledger: OrderLedger = Depends(get_ledger)):
    """Kitchen ticket of an order; null for beverage-only orders"""
    ticket = ledger.get_ticket_for_order(order_id)
    if ticket is None:
        return None
    return KitchenTicketRead.from_ticket(ticket, ledger.now(), ledger.priority_thresholds)
