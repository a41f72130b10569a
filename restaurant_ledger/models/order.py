"""
Order model for the order ledger

An order is created once from a draft; afterwards only its status (and,
on payment, its final bill) changes. Line items never change after creation
apart from their own preparation status.
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional, List
from decimal import Decimal
from enum import Enum
import uuid

from restaurant_ledger.core.exceptions import AlreadyPaid, InvalidTransition
from restaurant_ledger.models.customer import Address
from restaurant_ledger.models.menu_item import MenuItem
from restaurant_ledger.models.payment import PaymentRecord


class OrderStatus(str, Enum):
    """Status of an order"""
    PENDING = "pending"         # Submitted, waiting for the kitchen
    PREPARING = "preparing"     # Kitchen is preparing
    READY = "ready"             # Ready to be served or picked up
    SERVED = "served"           # Delivered to the guest, awaiting payment
    PAID = "paid"               # Payment completed (final)
    CANCELLED = "cancelled"     # Cancelled before payment (final)


class OrderType(str, Enum):
    """How the order reaches the customer"""
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


class LineItemStatus(str, Enum):
    """Service status of a single order line"""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"


ORDER_STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.PAID,
]
TERMINAL_ORDER_STATUSES = {OrderStatus.PAID, OrderStatus.CANCELLED}

LINE_ITEM_STATUS_FLOW = [
    LineItemStatus.PENDING,
    LineItemStatus.PREPARING,
    LineItemStatus.READY,
    LineItemStatus.SERVED,
]


class OrderLineItem(SQLModel):
    """Line of an order, holding a snapshot of the menu item"""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    menu_item: MenuItem = Field(description="Menu item snapshot taken at order time")
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2, description="Price captured at order time")
    notes: Optional[str] = Field(default=None, max_length=1000)
    modifications: List[str] = Field(default_factory=list)
    status: LineItemStatus = Field(default=LineItemStatus.PENDING)

    @property
    def menu_item_id(self) -> uuid.UUID:
        return self.menu_item.id

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * Decimal(self.quantity)

    def can_transition_to(self, new_status: LineItemStatus) -> tuple[bool, str]:
        """Only the next step in pending -> preparing -> ready -> served"""
        current = LINE_ITEM_STATUS_FLOW.index(self.status)
        if current + 1 < len(LINE_ITEM_STATUS_FLOW) and LINE_ITEM_STATUS_FLOW[current + 1] == new_status:
            return True, "Can transition"
        return False, f"Cannot transition line item from {self.status.value} to {new_status.value}"


class Order(SQLModel):
    """Customer order tracked from placement to payment"""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)

    # Linkage
    table_id: Optional[uuid.UUID] = Field(default=None, description="Table for dine-in orders")
    customer_id: Optional[uuid.UUID] = Field(default=None, description="Customer for takeaway/delivery orders")
    waiter_id: Optional[str] = Field(default=None, description="Staff member who took the order")

    items: List[OrderLineItem] = Field(default_factory=list)
    order_type: OrderType = Field(default=OrderType.DINE_IN)
    status: OrderStatus = Field(default=OrderStatus.PENDING)

    # Financial amounts (derived)
    subtotal: Decimal = Field(default=Decimal("0.00"), ge=0)
    discount: Decimal = Field(default=Decimal("0.00"), ge=0, description="Discount amount applied")
    tax: Decimal = Field(default=Decimal("0.00"), ge=0, description="Service tax")
    tip: Decimal = Field(default=Decimal("0.00"), ge=0)
    total: Decimal = Field(default=Decimal("0.00"), ge=0)

    # Service information
    notes: Optional[str] = Field(default=None, max_length=2000)
    estimated_time: int = Field(default=0, ge=0, description="Minutes, longest preparation time")
    delivery_address: Optional[Address] = None

    # Payment
    payment: Optional[PaymentRecord] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    # Incremented on every mutation
    version: int = Field(default=1)

    # State machine methods
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES

    def next_status(self) -> Optional[OrderStatus]:
        """Immediate successor in the forward flow, None when terminal"""
        if self.is_terminal():
            return None
        return ORDER_STATUS_FLOW[ORDER_STATUS_FLOW.index(self.status) + 1]

    def can_transition_to(self, new_status: OrderStatus) -> tuple[bool, str]:
        """Check if order can transition to new status"""
        if self.is_terminal():
            return False, f"Order is {self.status.value}, no further transitions"
        if new_status == OrderStatus.CANCELLED:
            return True, "Can cancel"
        if new_status == self.next_status():
            return True, "Can transition"
        return False, f"Cannot transition from {self.status.value} to {new_status.value}"

    def transition_to(self, new_status: OrderStatus, at: datetime) -> None:
        """Move to new status, stamping the transition time"""
        can_transition, reason = self.can_transition_to(new_status)
        if not can_transition:
            raise InvalidTransition(reason, {"order_id": self.id, "status": self.status.value})
        self.status = new_status
        if new_status == OrderStatus.CANCELLED:
            self.cancelled_at = at
        elif new_status == OrderStatus.PAID:
            self.paid_at = at
        self.touch(at)

    def is_payable(self) -> bool:
        """Cashier can take payment for ready or served orders"""
        return self.status in (OrderStatus.READY, OrderStatus.SERVED)

    def mark_paid(self, payment: PaymentRecord, at: datetime) -> None:
        """Close a ready or served order with its payment"""
        if self.status == OrderStatus.PAID:
            raise AlreadyPaid("Order is already paid", {"order_id": self.id})
        if not self.is_payable():
            raise InvalidTransition(
                f"Cannot take payment for an order that is {self.status.value}",
                {"order_id": self.id, "status": self.status.value},
            )
        self.payment = payment
        self.status = OrderStatus.PAID
        self.paid_at = at
        self.touch(at)

    def touch(self, at: datetime) -> None:
        self.updated_at = at
        self.version += 1

    def find_item(self, item_id: uuid.UUID) -> Optional[OrderLineItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def item_count(self) -> int:
        """Number of units across all lines"""
        return sum(item.quantity for item in self.items)
