"""
Kitchen display API endpoints
"""

from fastapi import APIRouter, Depends
from typing import Dict, List, Optional
import uuid

from restaurant_ledger.api.schemas import KitchenItemStatusUpdate, KitchenTicketRead
from restaurant_ledger.core.dependencies import get_ledger, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.models.kitchen_ticket import Station
from restaurant_ledger.services.ledger import OrderLedger

router = APIRouter()


@router.get(
    "/tickets",
    response_model=List[KitchenTicketRead],
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def list_tickets(
    station: Optional[Station] = None,
    include_completed: bool = True,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Tickets with work at the station, most urgent then oldest first"""
    now = ledger.now()
    return [
        KitchenTicketRead.from_ticket(ticket, now, ledger.priority_thresholds)
        for ticket in ledger.list_kitchen_tickets(station=station, include_completed=include_completed)
    ]


@router.get(
    "/tickets/by-priority",
    response_model=Dict[str, List[KitchenTicketRead]],
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def tickets_by_priority(
    station: Optional[Station] = None,
    include_completed: bool = False,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Kitchen display lanes keyed by priority"""
    now = ledger.now()
    groups = ledger.tickets_by_priority(station=station, include_completed=include_completed)
    return {
        priority.value: [KitchenTicketRead.from_ticket(ticket, now, ledger.priority_thresholds) for ticket in tickets]
        for priority, tickets in groups.items()
    }


@router.get(
    "/tickets/{ticket_id}",
    response_model=KitchenTicketRead,
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def get_ticket(ticket_id: uuid.UUID, ledger: OrderLedger = Depends(get_ledger)):
    ticket = ledger.get_ticket(ticket_id)
    return KitchenTicketRead.from_ticket(ticket, ledger.now(), ledger.priority_thresholds)


@router.patch(
    "/tickets/{ticket_id}/items/{item_id}/status",
    response_model=KitchenTicketRead,
    dependencies=[Depends(require_permission(Permission.KITCHEN_UPDATE))],
)
async def update_item_status(
    ticket_id: uuid.UUID,
    item_id: uuid.UUID,
    update: KitchenItemStatusUpdate,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Move a ticket item one step: pending -> preparing -> ready"""
    ticket = ledger.update_kitchen_item_status(ticket_id, item_id, update.status)
    return KitchenTicketRead.from_ticket(ticket, ledger.now(), ledger.priority_thresholds)
