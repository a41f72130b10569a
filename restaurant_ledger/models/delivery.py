"""
Delivery order model

A delivery order is an order with its own delivery state machine, which is
only moved by explicit calls and never derived from the order status.
"""

from sqlmodel import Field, SQLModel
from typing import Optional
from decimal import Decimal
from enum import Enum

from restaurant_ledger.models.order import Order


class DeliveryStatus(str, Enum):
    """Status of the delivery run"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


DELIVERY_STATUS_FLOW = [
    DeliveryStatus.PENDING,
    DeliveryStatus.CONFIRMED,
    DeliveryStatus.PREPARING,
    DeliveryStatus.OUT_FOR_DELIVERY,
    DeliveryStatus.DELIVERED,
]
TERMINAL_DELIVERY_STATUSES = {DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED}
ACTIVE_DELIVERY_STATUSES = {
    DeliveryStatus.CONFIRMED,
    DeliveryStatus.PREPARING,
    DeliveryStatus.OUT_FOR_DELIVERY,
}


class DeliveryPerson(SQLModel):
    """Courier assigned to a delivery"""
    id: str
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=50)


class DeliveryOrder(Order):
    """Order delivered to a customer address"""

    delivery_fee: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    delivery_time: int = Field(default=0, ge=0, description="Estimated delivery time in minutes")
    delivery_status: DeliveryStatus = Field(default=DeliveryStatus.PENDING)
    delivery_person: Optional[DeliveryPerson] = None
    tracking_code: str = Field(min_length=1, max_length=20, description="Unique code given to the customer")

    def can_transition_delivery_to(self, new_status: DeliveryStatus) -> tuple[bool, str]:
        """Adjacent forward steps, or cancelled from any non-terminal state"""
        if self.delivery_status in TERMINAL_DELIVERY_STATUSES:
            return False, f"Delivery is {self.delivery_status.value}, no further transitions"
        if new_status == DeliveryStatus.CANCELLED:
            return True, "Can cancel"
        current = DELIVERY_STATUS_FLOW.index(self.delivery_status)
        if DELIVERY_STATUS_FLOW[current + 1] == new_status:
            return True, "Can transition"
        return False, f"Cannot transition delivery from {self.delivery_status.value} to {new_status.value}"

    def is_active_delivery(self) -> bool:
        return self.delivery_status in ACTIVE_DELIVERY_STATUSES
