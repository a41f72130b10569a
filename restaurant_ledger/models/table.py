"""
Table model for restaurant seating
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid


class TableStatus(str, Enum):
    """Status of a dining table"""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"


class Table(SQLModel):
    """Table model for restaurant seating"""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)

    # Table details
    number: int = Field(gt=0, description="Table number shown to staff and guests (unique)")
    capacity: int = Field(default=4, gt=0, description="Maximum number of guests")
    section: str = Field(default="Main", max_length=100, description="Grouping label (e.g. 'Varanda')")

    # Status
    status: TableStatus = Field(default=TableStatus.AVAILABLE)
    current_order_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Order currently seated at this table"
    )

    # QR code for the digital menu
    qr_code: Optional[str] = Field(default=None, max_length=500, description="Digital menu URL encoded in the QR code")

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
