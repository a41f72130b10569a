"""
Customer and address models for delivery orders
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional, List
import uuid


class Address(SQLModel):
    """Delivery address"""
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    street: str = Field(min_length=1, max_length=255)
    number: str = Field(min_length=1, max_length=20)
    complement: Optional[str] = Field(default=None, max_length=255)
    neighborhood: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=255)
    state: str = Field(min_length=1, max_length=50)
    zip_code: str = Field(min_length=1, max_length=20)
    is_default: bool = False

    def one_line(self) -> str:
        """Address formatted for a delivery slip"""
        line = f"{self.street}, {self.number}"
        if self.complement:
            line += f" - {self.complement}"
        return f"{line}, {self.neighborhood}, {self.city}/{self.state} {self.zip_code}"


class Customer(SQLModel):
    """Customer placing delivery or takeaway orders"""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    addresses: List[Address] = Field(default_factory=list)
    order_history: List[uuid.UUID] = Field(default_factory=list, description="Order ids, oldest first")
    preferred_payment_method: Optional[str] = None
    loyalty_points: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def default_address(self) -> Optional[Address]:
        for address in self.addresses:
            if address.is_default:
                return address
        return self.addresses[0] if self.addresses else None
