"""
Inventory item model for stock tracking
"""

from sqlmodel import Field, SQLModel
from datetime import datetime, date
from typing import Optional
from decimal import Decimal
from enum import Enum
import uuid


class StockLevel(str, Enum):
    """Stock level classification for the inventory screen"""
    OUT = "out"         # Nothing left
    LOW = "low"         # At or below minimum stock
    NORMAL = "normal"   # Between minimum and maximum
    HIGH = "high"       # At or above maximum stock


class InventoryItem(SQLModel):
    """Ingredient or supply tracked in stock"""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)

    name: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, max_length=100)
    unit: str = Field(min_length=1, max_length=20, description="Unit of measure (kg, l, un)")

    # Stock levels
    current_stock: Decimal = Field(ge=0, description="Quantity on hand")
    minimum_stock: Decimal = Field(ge=0, description="Reorder threshold")
    maximum_stock: Decimal = Field(ge=0, description="Storage capacity")

    unit_cost: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    supplier: Optional[str] = Field(default=None, max_length=255)
    expiration_date: Optional[date] = None

    last_updated: datetime = Field(default_factory=datetime.utcnow)

    @property
    def stock_level(self) -> StockLevel:
        if self.current_stock == 0:
            return StockLevel.OUT
        if self.current_stock <= self.minimum_stock:
            return StockLevel.LOW
        if self.current_stock >= self.maximum_stock:
            return StockLevel.HIGH
        return StockLevel.NORMAL

    def is_low_stock(self) -> bool:
        """At or below the reorder threshold (includes out of stock)"""
        return self.current_stock <= self.minimum_stock

    def stock_value(self) -> Decimal:
        """Value of the stock on hand"""
        return self.current_stock * self.unit_cost
