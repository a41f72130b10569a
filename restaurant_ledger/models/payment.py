"""
Payment models
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from decimal import Decimal
from enum import Enum


class PaymentMethod(str, Enum):
    """Payment method accepted at the cashier"""
    CASH = "cash"
    CREDIT = "credit"
    DEBIT = "debit"
    PIX = "pix"
    VOUCHER = "voucher"


class PaymentRecord(SQLModel):
    """Payment captured on a paid order"""
    method: PaymentMethod
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    transaction_id: Optional[str] = Field(default=None, max_length=255)
    processed_at: datetime = Field(default_factory=datetime.utcnow)


class PaymentResult(SQLModel):
    """Outcome reported by the payment gateway"""
    success: bool
    transaction_id: Optional[str] = None
    message: Optional[str] = None
