"""
Pricing and totals engine

Pure functions over Decimal amounts. Every reported figure is rounded to
cents with ROUND_HALF_UP so the same inputs always print the same receipt.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional, Protocol

from sqlmodel import SQLModel

from restaurant_ledger.core.config import get_settings
from restaurant_ledger.core.exceptions import ValidationError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


class DiscountType(str, Enum):
    """How a discount value is interpreted"""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PricedLine(Protocol):
    quantity: int
    unit_price: Decimal


class Totals(SQLModel):
    """Bill breakdown"""
    subtotal: Decimal
    discount_amount: Decimal
    tax: Decimal
    tip: Decimal
    total: Decimal


def to_money(value) -> Decimal:
    """Round to cents"""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_subtotal(line_items: Iterable[PricedLine]) -> Decimal:
    return to_money(sum((Decimal(item.quantity) * item.unit_price for item in line_items), ZERO))


def compute_discount(
    subtotal: Decimal,
    discount: Decimal,
    discount_type: DiscountType = DiscountType.PERCENTAGE,
) -> Decimal:
    """Discount amount clamped to [0, subtotal]"""
    if discount < 0:
        raise ValidationError("Discount cannot be negative", {"discount": discount})
    if discount_type == DiscountType.PERCENTAGE:
        amount = subtotal * discount / Decimal(100)
    else:
        amount = discount
    return to_money(min(max(amount, ZERO), subtotal))


def totals_for_subtotal(
    subtotal: Decimal,
    discount: Decimal = ZERO,
    discount_type: DiscountType = DiscountType.PERCENTAGE,
    tax_rate: Optional[Decimal] = None,
    tip: Decimal = ZERO,
) -> Totals:
    """Discount, service tax and tip on top of an already known subtotal"""
    if tax_rate is None:
        tax_rate = get_settings().SERVICE_TAX_RATE
    if tax_rate < 0:
        raise ValidationError("Tax rate cannot be negative", {"tax_rate": tax_rate})
    if tip < 0:
        raise ValidationError("Tip cannot be negative", {"tip": tip})

    subtotal = to_money(subtotal)
    discount_amount = compute_discount(subtotal, Decimal(discount), discount_type)
    tax = to_money((subtotal - discount_amount) * Decimal(tax_rate))
    tip = to_money(tip)
    total = max(ZERO, subtotal - discount_amount + tax) + tip

    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax=tax,
        tip=tip,
        total=to_money(total),
    )


def compute_totals(
    line_items: Iterable[PricedLine],
    discount: Decimal = ZERO,
    discount_type: DiscountType = DiscountType.PERCENTAGE,
    tax_rate: Optional[Decimal] = None,
    tip: Decimal = ZERO,
) -> Totals:
    """Compute the bill for a list of priced lines

    subtotal = sum(quantity * unit_price)
    discount = percentage of subtotal or fixed amount, clamped to [0, subtotal]
    tax      = (subtotal - discount) * tax_rate
    total    = max(0, subtotal - discount + tax) + tip   (tip is not taxed)
    """
    return totals_for_subtotal(
        compute_subtotal(line_items),
        discount=discount,
        discount_type=discount_type,
        tax_rate=tax_rate,
        tip=tip,
    )


def split_bill(total: Decimal, split_count: int) -> Decimal:
    """Per-person share, rounded to cents

    The rounding remainder is not redistributed: 100.00 / 3 gives 33.33 each.
    """
    if split_count < 1:
        raise ValidationError("Split count must be at least 1", {"split_count": split_count})
    return to_money(Decimal(total) / Decimal(split_count))
