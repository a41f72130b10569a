"""
Kitchen ticket model for the kitchen display

A ticket is derived from an order at the moment the order is created and is
kept for audit; it is never deleted. Ticket items move independently of the
parent order's status.
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional, List, Sequence
from enum import Enum
import uuid

from restaurant_ledger.core.exceptions import InvalidTransition, NotFound
from restaurant_ledger.models.menu_item import MenuItem


class Station(str, Enum):
    """Kitchen preparation area an item is routed to"""
    GRILL = "grill"
    FRYER = "fryer"
    SALAD = "salad"
    DESSERTS = "desserts"
    BEVERAGES = "beverages"


class TicketItemStatus(str, Enum):
    """Preparation status of a ticket item"""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"


class TicketPriority(str, Enum):
    """Priority derived from ticket age"""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


TICKET_ITEM_STATUS_FLOW = [
    TicketItemStatus.PENDING,
    TicketItemStatus.PREPARING,
    TicketItemStatus.READY,
]

# Most urgent first
PRIORITY_RANK = {
    TicketPriority.URGENT: 0,
    TicketPriority.HIGH: 1,
    TicketPriority.NORMAL: 2,
    TicketPriority.LOW: 3,
}

DEFAULT_PRIORITY_THRESHOLDS = (10, 20, 30)


def priority_for_elapsed(elapsed_minutes: float, thresholds: Sequence[int] = DEFAULT_PRIORITY_THRESHOLDS) -> TicketPriority:
    """<10min low, <20min normal, <30min high, otherwise urgent"""
    normal_after, high_after, urgent_after = thresholds
    if elapsed_minutes < normal_after:
        return TicketPriority.LOW
    if elapsed_minutes < high_after:
        return TicketPriority.NORMAL
    if elapsed_minutes < urgent_after:
        return TicketPriority.HIGH
    return TicketPriority.URGENT


class KitchenTicketItem(SQLModel):
    """One order line as seen by a kitchen station"""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    line_item_id: uuid.UUID = Field(description="Order line this item was derived from")
    menu_item: MenuItem
    quantity: int = Field(ge=1)
    modifications: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    station: Station
    status: TicketItemStatus = Field(default=TicketItemStatus.PENDING)

    def can_transition_to(self, new_status: TicketItemStatus) -> tuple[bool, str]:
        """Strict adjacent forward steps: pending -> preparing -> ready"""
        current = TICKET_ITEM_STATUS_FLOW.index(self.status)
        target = TICKET_ITEM_STATUS_FLOW.index(new_status)
        if target == current + 1:
            return True, "Can transition"
        if target <= current:
            return False, f"Cannot move ticket item back from {self.status.value} to {new_status.value}"
        return False, f"Cannot skip from {self.status.value} to {new_status.value}"


class KitchenTicket(SQLModel):
    """Kitchen ticket for the kitchen display"""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    order_id: uuid.UUID = Field(description="Order this ticket was derived from")
    table_number: Optional[int] = Field(default=None, description="Table number for display")
    items: List[KitchenTicketItem] = Field(default_factory=list)
    estimated_time: int = Field(default=0, ge=0, description="Minutes, longest preparation time among items")
    notes: Optional[str] = None

    # Timing
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = Field(default=None, description="When the first item left pending")
    completed_at: Optional[datetime] = Field(default=None, description="When every item became ready")

    version: int = Field(default=1)

    def elapsed_minutes(self, now: datetime) -> float:
        return max(0.0, (now - self.created_at).total_seconds() / 60)

    def priority_at(self, now: datetime, thresholds: Sequence[int] = DEFAULT_PRIORITY_THRESHOLDS) -> TicketPriority:
        """Priority recomputed from the ticket age; never stored"""
        return priority_for_elapsed(self.elapsed_minutes(now), thresholds)

    def is_complete(self) -> bool:
        return bool(self.items) and all(item.status == TicketItemStatus.READY for item in self.items)

    def stations(self) -> List[Station]:
        """Stations involved, in first-seen order"""
        seen: List[Station] = []
        for item in self.items:
            if item.station not in seen:
                seen.append(item.station)
        return seen

    def has_station(self, station: Station) -> bool:
        return any(item.station == station for item in self.items)

    def find_item(self, item_id: uuid.UUID) -> Optional[KitchenTicketItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def advance_item(self, item_id: uuid.UUID, new_status: TicketItemStatus, at: datetime) -> KitchenTicketItem:
        """Move one item forward; stamps started/completed times on the ticket"""
        item = self.find_item(item_id)
        if item is None:
            raise NotFound("Ticket item not found", {"ticket_id": self.id, "item_id": item_id})
        can_transition, reason = item.can_transition_to(new_status)
        if not can_transition:
            raise InvalidTransition(reason, {"ticket_id": self.id, "item_id": item_id})

        item.status = new_status
        if self.started_at is None and new_status != TicketItemStatus.PENDING:
            self.started_at = at
        if self.is_complete():
            self.completed_at = at
        self.updated_at = at
        self.version += 1
        return item
