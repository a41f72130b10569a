"""
API request and response schemas
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional, List
from decimal import Decimal

from restaurant_ledger.models.inventory_item import InventoryItem
from restaurant_ledger.models.delivery import DeliveryPerson, DeliveryStatus
from restaurant_ledger.models.kitchen_ticket import KitchenTicket, TicketItemStatus, TicketPriority
from restaurant_ledger.models.order import LineItemStatus, OrderStatus
from restaurant_ledger.models.payment import PaymentMethod
from restaurant_ledger.models.table import TableStatus
from restaurant_ledger.services.ledger import OrderDraft, OrderLineDraft
from restaurant_ledger.services.pricing import DiscountType

# ============================================================================
# Order Schemas
# ============================================================================

class OrderStatusUpdate(SQLModel):
    status: OrderStatus


class LineItemStatusUpdate(SQLModel):
    status: LineItemStatus


class PaymentCreate(SQLModel):
    method: PaymentMethod
    amount: Decimal = Field(ge=0)
    transaction_id: Optional[str] = None


# ============================================================================
# Kitchen Schemas
# ============================================================================

class KitchenItemStatusUpdate(SQLModel):
    status: TicketItemStatus


class KitchenTicketRead(KitchenTicket):
    """Ticket with its priority computed at read time"""
    priority: TicketPriority
    age_minutes: float

    @classmethod
    def from_ticket(cls, ticket: KitchenTicket, now: datetime, thresholds) -> "KitchenTicketRead":
        return cls(
            **ticket.model_dump(),
            priority=ticket.priority_at(now, thresholds),
            age_minutes=round(ticket.elapsed_minutes(now), 1),
        )


# ============================================================================
# Table Schemas
# ============================================================================

class TableCreate(SQLModel):
    number: int = Field(gt=0)
    capacity: int = Field(default=4, gt=0)
    section: str = "Main"


class TableStatusUpdate(SQLModel):
    status: TableStatus


# ============================================================================
# Delivery Schemas
# ============================================================================

class DeliveryOrderCreate(OrderDraft):
    delivery_fee: Decimal = Field(default=Decimal("0.00"), ge=0)
    delivery_time: int = Field(default=0, ge=0)
    delivery_person: Optional[DeliveryPerson] = None


class DeliveryStatusUpdate(SQLModel):
    status: DeliveryStatus


# ============================================================================
# Cashier Schemas
# ============================================================================

class QuoteRequest(SQLModel):
    """Unset discount and tip keep the order's own figures"""
    discount: Optional[Decimal] = Field(default=None, ge=0)
    discount_type: Optional[DiscountType] = None
    tip: Optional[Decimal] = Field(default=None, ge=0)
    split_count: int = 1


class CheckoutRequest(QuoteRequest):
    method: PaymentMethod


# ============================================================================
# Digital Menu Schemas
# ============================================================================

class DigitalMenuOrderCreate(SQLModel):
    items: List[OrderLineDraft]
    customer_name: Optional[str] = Field(default=None, max_length=255)


# ============================================================================
# Inventory Schemas
# ============================================================================

class InventoryAlerts(SQLModel):
    low_stock: List[InventoryItem] = Field(default_factory=list)
    out_of_stock: List[InventoryItem] = Field(default_factory=list)

