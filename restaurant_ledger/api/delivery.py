"""
Delivery API endpoints
"""

from fastapi import APIRouter, Depends, status
from typing import List, Optional
import uuid

from restaurant_ledger.api.schemas import DeliveryOrderCreate, DeliveryStatusUpdate
from restaurant_ledger.core.dependencies import get_ledger, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.models.delivery import DeliveryOrder, DeliveryPerson, DeliveryStatus
from restaurant_ledger.models.order import OrderType
from restaurant_ledger.services.ledger import OrderDraft, OrderLedger

router = APIRouter()


@router.post(
    "/",
    response_model=DeliveryOrder,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.DELIVERY_EDIT))],
)
async def create_delivery_order(order_data: DeliveryOrderCreate, ledger: OrderLedger = Depends(get_ledger)):
    """Create a delivery order with a tracking code; the fee is added to the total"""
    draft = OrderDraft.model_validate(
        order_data.model_dump(exclude={"order_type", "delivery_fee", "delivery_time", "delivery_person"})
    )
    draft.order_type = OrderType.DELIVERY
    return ledger.create_delivery_order(
        draft,
        delivery_fee=order_data.delivery_fee,
        delivery_time=order_data.delivery_time,
        delivery_person=order_data.delivery_person,
    )


@router.get(
    "/",
    response_model=List[DeliveryOrder],
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def list_delivery_orders(
    status: Optional[DeliveryStatus] = None,
    search: Optional[str] = None,
    ledger: OrderLedger = Depends(get_ledger),
):
    return ledger.list_delivery_orders(delivery_status=status, search=search)


@router.get(
    "/active",
    response_model=List[DeliveryOrder],
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def active_deliveries(ledger: OrderLedger = Depends(get_ledger)):
    """Confirmed, preparing and out for delivery"""
    return ledger.active_deliveries()


@router.get(
    "/{order_id}",
    response_model=DeliveryOrder,
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def get_delivery_order(order_id: uuid.UUID, ledger: OrderLedger = Depends(get_ledger)):
    return ledger.get_delivery_order(order_id)


@router.patch(
    "/{order_id}/status",
    response_model=DeliveryOrder,
    dependencies=[Depends(require_permission(Permission.DELIVERY_EDIT))],
)
async def update_delivery_status(
    order_id: uuid.UUID,
    update: DeliveryStatusUpdate,
    ledger: OrderLedger = Depends(get_ledger),
):
    return ledger.update_delivery_status(order_id, update.status)


@router.put(
    "/{order_id}/person",
    response_model=DeliveryOrder,
    dependencies=[Depends(require_permission(Permission.DELIVERY_EDIT))],
)
async def assign_delivery_person(
    order_id: uuid.UUID,
    person: DeliveryPerson,
    ledger: OrderLedger = Depends(get_ledger),
):
    return ledger.assign_delivery_person(order_id, person)
