"""
Display metadata for every status enum

One table shared by all screens: the label shown to staff and the colour
tone used for badges.
"""

from enum import Enum
from typing import Dict, List

from sqlmodel import SQLModel

from restaurant_ledger.models.delivery import DeliveryStatus
from restaurant_ledger.models.kitchen_ticket import TicketItemStatus, TicketPriority
from restaurant_ledger.models.order import OrderStatus
from restaurant_ledger.models.table import TableStatus


class StatusDisplay(SQLModel):
    value: str
    label: str
    tone: str


STATUS_DISPLAY: Dict[type, Dict[Enum, tuple[str, str]]] = {
    OrderStatus: {
        OrderStatus.PENDING: ("Pendente", "warning"),
        OrderStatus.PREPARING: ("Preparando", "primary"),
        OrderStatus.READY: ("Pronto", "success"),
        OrderStatus.SERVED: ("Servido", "gray"),
        OrderStatus.PAID: ("Pago", "secondary"),
        OrderStatus.CANCELLED: ("Cancelado", "error"),
    },
    TicketItemStatus: {
        TicketItemStatus.PENDING: ("Pendente", "warning"),
        TicketItemStatus.PREPARING: ("Preparando", "primary"),
        TicketItemStatus.READY: ("Pronto", "success"),
    },
    TicketPriority: {
        TicketPriority.URGENT: ("Urgente", "error"),
        TicketPriority.HIGH: ("Alta", "warning"),
        TicketPriority.NORMAL: ("Normal", "primary"),
        TicketPriority.LOW: ("Baixa", "gray"),
    },
    TableStatus: {
        TableStatus.AVAILABLE: ("Disponível", "success"),
        TableStatus.OCCUPIED: ("Ocupada", "error"),
        TableStatus.RESERVED: ("Reservada", "warning"),
        TableStatus.MAINTENANCE: ("Manutenção", "gray"),
    },
    DeliveryStatus: {
        DeliveryStatus.PENDING: ("Pendente", "warning"),
        DeliveryStatus.CONFIRMED: ("Confirmado", "primary"),
        DeliveryStatus.PREPARING: ("Preparando", "accent"),
        DeliveryStatus.OUT_FOR_DELIVERY: ("Saiu para Entrega", "secondary"),
        DeliveryStatus.DELIVERED: ("Entregue", "success"),
        DeliveryStatus.CANCELLED: ("Cancelado", "error"),
    },
}

DISPLAYED_ENUMS = {
    "order": OrderStatus,
    "kitchen_item": TicketItemStatus,
    "priority": TicketPriority,
    "table": TableStatus,
    "delivery": DeliveryStatus,
}


def display_for(status: Enum) -> StatusDisplay:
    label, tone = STATUS_DISPLAY[type(status)][status]
    return StatusDisplay(value=status.value, label=label, tone=tone)


def display_catalog() -> Dict[str, List[StatusDisplay]]:
    """Every state machine with its states in declaration order"""
    return {
        name: [display_for(status) for status in enum_class]
        for name, enum_class in DISPLAYED_ENUMS.items()
    }
