"""
Kitchen ticket derivation

Routes order lines to kitchen stations by menu category and projects a new
order into a single kitchen ticket.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from restaurant_ledger.models.order import Order
from restaurant_ledger.models.kitchen_ticket import (
    KitchenTicket, KitchenTicketItem, Station, TicketPriority, PRIORITY_RANK,
    DEFAULT_PRIORITY_THRESHOLDS
)

# Category tag (lowercase) -> station. Tags cover the seeded Portuguese menu
# and English equivalents; anything else goes to beverages.
STATION_BY_CATEGORY: Dict[str, Station] = {
    "hambúrgueres": Station.GRILL,
    "hamburgueres": Station.GRILL,
    "burgers": Station.GRILL,
    "carnes": Station.GRILL,
    "meat": Station.GRILL,
    "meats": Station.GRILL,
    "pizzas": Station.FRYER,
    "pizza": Station.FRYER,
    "fritos": Station.FRYER,
    "fried": Station.FRYER,
    "saladas": Station.SALAD,
    "salads": Station.SALAD,
    "salad": Station.SALAD,
    "sobremesas": Station.DESSERTS,
    "desserts": Station.DESSERTS,
    "dessert": Station.DESSERTS,
}

BEVERAGE_CATEGORIES = {"bebidas", "beverages", "drinks"}


def station_for_category(category: str) -> Station:
    return STATION_BY_CATEGORY.get(category.strip().lower(), Station.BEVERAGES)


def is_beverage_category(category: str) -> bool:
    return category.strip().lower() in BEVERAGE_CATEGORIES


def needs_kitchen_ticket(order: Order) -> bool:
    """Tickets are skipped only for orders made entirely of beverages"""
    return any(not is_beverage_category(item.menu_item.category) for item in order.items)


def derive_ticket(order: Order, table_number: Optional[int] = None) -> Optional[KitchenTicket]:
    """Project an order into its kitchen ticket

    Returns None for all-beverage orders. Otherwise every order line becomes a
    pending ticket item at its station, and the ticket shares the order's
    creation time.
    """
    if not needs_kitchen_ticket(order):
        return None

    items = [
        KitchenTicketItem(
            line_item_id=line.id,
            menu_item=line.menu_item.snapshot(),
            quantity=line.quantity,
            modifications=list(line.modifications),
            notes=line.notes,
            station=station_for_category(line.menu_item.category),
        )
        for line in order.items
    ]

    return KitchenTicket(
        order_id=order.id,
        table_number=table_number,
        items=items,
        estimated_time=max((item.menu_item.preparation_time for item in items), default=0),
        notes=order.notes,
        created_at=order.created_at,
    )


def sort_by_urgency(
    tickets: List[KitchenTicket],
    now: datetime,
    thresholds: Sequence[int] = DEFAULT_PRIORITY_THRESHOLDS,
) -> List[KitchenTicket]:
    """Most urgent first, then oldest first"""
    return sorted(
        tickets,
        key=lambda ticket: (PRIORITY_RANK[ticket.priority_at(now, thresholds)], ticket.created_at),
    )


def group_by_priority(
    tickets: List[KitchenTicket],
    now: datetime,
    thresholds: Sequence[int] = DEFAULT_PRIORITY_THRESHOLDS,
) -> Dict[TicketPriority, List[KitchenTicket]]:
    """Kitchen display lanes, most urgent lane first; empty lanes omitted"""
    groups: Dict[TicketPriority, List[KitchenTicket]] = {}
    for ticket in sort_by_urgency(tickets, now, thresholds):
        groups.setdefault(ticket.priority_at(now, thresholds), []).append(ticket)
    return groups
