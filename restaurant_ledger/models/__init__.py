from restaurant_ledger.models.menu_item import MenuItem, NutritionalInfo
from restaurant_ledger.models.inventory_item import InventoryItem, StockLevel
from restaurant_ledger.models.customer import Customer, Address
from restaurant_ledger.models.table import Table, TableStatus
from restaurant_ledger.models.payment import PaymentMethod, PaymentRecord, PaymentResult
from restaurant_ledger.models.order import (
    Order, OrderStatus, OrderType, OrderLineItem, LineItemStatus
)
from restaurant_ledger.models.kitchen_ticket import (
    KitchenTicket, KitchenTicketItem, Station, TicketItemStatus, TicketPriority
)
from restaurant_ledger.models.delivery import DeliveryOrder, DeliveryStatus, DeliveryPerson
