"""
Menu item model for the restaurant catalog

Order line items embed a copy of the menu item taken when the order is
created, so catalog edits never rewrite historical orders.
"""

from sqlmodel import Field, SQLModel
from typing import Optional, List
from decimal import Decimal
import uuid


class NutritionalInfo(SQLModel):
    """Optional nutritional facts shown on the digital menu"""
    calories: int = Field(ge=0)
    protein: Decimal = Field(ge=0)
    carbs: Decimal = Field(ge=0)
    fat: Decimal = Field(ge=0)


class MenuItem(SQLModel):
    """Menu item available for ordering"""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)

    # Item details
    name: str = Field(min_length=1, max_length=255, description="Item display name")
    description: str = Field(default="", max_length=2000, description="Item description")
    category: str = Field(min_length=1, max_length=100, description="Category tag, drives kitchen station routing")
    image: Optional[str] = Field(default=None, max_length=500, description="Image URL")

    # Pricing
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2, description="Unit price")

    # Kitchen
    preparation_time: int = Field(default=0, ge=0, description="Preparation time in minutes")
    ingredients: List[str] = Field(default_factory=list, description="Ordered list of ingredients")
    allergens: List[str] = Field(default_factory=list, description="Allergen tags")
    nutritional_info: Optional[NutritionalInfo] = None

    # Availability
    is_available: bool = Field(default=True, description="Whether the item can be ordered")

    def allergen_set(self) -> set[str]:
        """Allergens as a normalized set"""
        return {allergen.strip().lower() for allergen in self.allergens if allergen.strip()}

    def snapshot(self) -> "MenuItem":
        """Copy embedded into an order line item"""
        return self.model_copy(deep=True)
