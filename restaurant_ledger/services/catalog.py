"""
Catalog service: menu items, inventory and customers

Read-mostly reference data consumed by order creation.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional
import threading
import uuid
import structlog

from restaurant_ledger.core.exceptions import NotFound, ValidationError
from restaurant_ledger.models.menu_item import MenuItem
from restaurant_ledger.models.inventory_item import InventoryItem
from restaurant_ledger.models.customer import Customer

logger = structlog.get_logger(__name__)


class Catalog:
    """In-memory catalog of menu items, inventory items and customers"""

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self._clock = clock
        self._lock = threading.RLock()
        self._menu_items: Dict[uuid.UUID, MenuItem] = {}
        self._inventory_items: Dict[uuid.UUID, InventoryItem] = {}
        self._customers: Dict[uuid.UUID, Customer] = {}

    # ------------------------------------------------------------------
    # Menu items
    # ------------------------------------------------------------------

    def list_menu_items(self, category: Optional[str] = None, available_only: bool = False) -> List[MenuItem]:
        with self._lock:
            items = list(self._menu_items.values())
        if category:
            items = [item for item in items if item.category.lower() == category.lower()]
        if available_only:
            items = [item for item in items if item.is_available]
        return [item.model_copy(deep=True) for item in items]

    def get_menu_item(self, item_id: uuid.UUID) -> MenuItem:
        with self._lock:
            item = self._menu_items.get(item_id)
            if item is None:
                raise NotFound("Menu item not found", {"menu_item_id": item_id})
            return item.model_copy(deep=True)

    def add_menu_item(self, item: MenuItem) -> MenuItem:
        self._validate_menu_item(item)
        with self._lock:
            if item.id in self._menu_items:
                raise ValidationError("Menu item id already exists", {"menu_item_id": item.id})
            stored = item.model_copy(deep=True)
            stored.allergens = _dedupe(stored.allergens)
            self._menu_items[stored.id] = stored
        logger.info("menu_item_added", menu_item_id=str(stored.id), name=stored.name, category=stored.category)
        return stored.model_copy(deep=True)

    def update_menu_item(self, item_id: uuid.UUID, item: MenuItem) -> MenuItem:
        """Replace a menu item, keeping its id"""
        self._validate_menu_item(item)
        with self._lock:
            if item_id not in self._menu_items:
                raise NotFound("Menu item not found", {"menu_item_id": item_id})
            stored = item.model_copy(update={"id": item_id}, deep=True)
            stored.allergens = _dedupe(stored.allergens)
            self._menu_items[item_id] = stored
        logger.info("menu_item_updated", menu_item_id=str(item_id))
        return stored.model_copy(deep=True)

    def delete_menu_item(self, item_id: uuid.UUID) -> None:
        with self._lock:
            if self._menu_items.pop(item_id, None) is None:
                raise NotFound("Menu item not found", {"menu_item_id": item_id})
        logger.info("menu_item_deleted", menu_item_id=str(item_id))

    def menu_categories(self) -> List[str]:
        """Distinct categories, in catalog order"""
        categories: List[str] = []
        with self._lock:
            for item in self._menu_items.values():
                if item.category not in categories:
                    categories.append(item.category)
        return categories

    def _validate_menu_item(self, item: MenuItem) -> None:
        if item.price < 0:
            raise ValidationError("Menu item price cannot be negative", {"price": item.price})
        if item.preparation_time < 0:
            raise ValidationError("Preparation time cannot be negative", {"preparation_time": item.preparation_time})

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def list_inventory_items(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        low_stock_only: bool = False,
    ) -> List[InventoryItem]:
        with self._lock:
            items = list(self._inventory_items.values())
        if category:
            items = [item for item in items if item.category == category]
        if search:
            needle = search.lower()
            items = [item for item in items if needle in item.name.lower()]
        if low_stock_only:
            items = [item for item in items if item.is_low_stock()]
        return [item.model_copy(deep=True) for item in items]

    def get_inventory_item(self, item_id: uuid.UUID) -> InventoryItem:
        with self._lock:
            item = self._inventory_items.get(item_id)
            if item is None:
                raise NotFound("Inventory item not found", {"inventory_item_id": item_id})
            return item.model_copy(deep=True)

    def add_inventory_item(self, item: InventoryItem) -> InventoryItem:
        self._validate_inventory_item(item)
        with self._lock:
            if item.id in self._inventory_items:
                raise ValidationError("Inventory item id already exists", {"inventory_item_id": item.id})
            stored = item.model_copy(update={"last_updated": self._clock()}, deep=True)
            self._inventory_items[stored.id] = stored
        logger.info("inventory_item_added", inventory_item_id=str(stored.id), name=stored.name)
        return stored.model_copy(deep=True)

    def update_inventory_item(self, item_id: uuid.UUID, item: InventoryItem) -> InventoryItem:
        """Replace an inventory item, keeping its id and refreshing last_updated"""
        self._validate_inventory_item(item)
        with self._lock:
            if item_id not in self._inventory_items:
                raise NotFound("Inventory item not found", {"inventory_item_id": item_id})
            stored = item.model_copy(update={"id": item_id, "last_updated": self._clock()}, deep=True)
            self._inventory_items[item_id] = stored
        if stored.is_low_stock():
            logger.warning(
                "inventory_low_stock",
                inventory_item_id=str(item_id),
                current_stock=str(stored.current_stock),
                minimum_stock=str(stored.minimum_stock),
            )
        else:
            logger.info("inventory_item_updated", inventory_item_id=str(item_id))
        return stored.model_copy(deep=True)

    def delete_inventory_item(self, item_id: uuid.UUID) -> None:
        with self._lock:
            if self._inventory_items.pop(item_id, None) is None:
                raise NotFound("Inventory item not found", {"inventory_item_id": item_id})
        logger.info("inventory_item_deleted", inventory_item_id=str(item_id))

    def low_stock_items(self) -> List[InventoryItem]:
        return self.list_inventory_items(low_stock_only=True)

    def out_of_stock_items(self) -> List[InventoryItem]:
        return [item for item in self.list_inventory_items() if item.current_stock == 0]

    def inventory_categories(self) -> List[str]:
        with self._lock:
            return sorted({item.category for item in self._inventory_items.values()})

    def _validate_inventory_item(self, item: InventoryItem) -> None:
        for field_name in ("current_stock", "minimum_stock", "maximum_stock", "unit_cost"):
            if getattr(item, field_name) < 0:
                raise ValidationError(f"{field_name} cannot be negative", {field_name: getattr(item, field_name)})
        if item.minimum_stock > item.maximum_stock:
            raise ValidationError(
                "Minimum stock cannot exceed maximum stock",
                {"minimum_stock": item.minimum_stock, "maximum_stock": item.maximum_stock},
            )

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def add_customer(self, customer: Customer) -> Customer:
        with self._lock:
            if customer.id in self._customers:
                raise ValidationError("Customer id already exists", {"customer_id": customer.id})
            stored = customer.model_copy(update={"created_at": self._clock()}, deep=True)
            self._customers[stored.id] = stored
        logger.info("customer_added", customer_id=str(stored.id))
        return stored.model_copy(deep=True)

    def get_customer(self, customer_id: uuid.UUID) -> Customer:
        with self._lock:
            customer = self._customers.get(customer_id)
            if customer is None:
                raise NotFound("Customer not found", {"customer_id": customer_id})
            return customer.model_copy(deep=True)

    def list_customers(self, search: Optional[str] = None) -> List[Customer]:
        with self._lock:
            customers = list(self._customers.values())
        if search:
            needle = search.lower()
            customers = [
                customer for customer in customers
                if needle in customer.name.lower() or needle in customer.phone
            ]
        return [customer.model_copy(deep=True) for customer in customers]

    def record_customer_order(self, customer_id: uuid.UUID, order_id: uuid.UUID) -> None:
        """Append an order to the customer's history"""
        with self._lock:
            customer = self._customers.get(customer_id)
            if customer is None:
                raise NotFound("Customer not found", {"customer_id": customer_id})
            customer.order_history.append(order_id)


def _dedupe(values: List[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen
