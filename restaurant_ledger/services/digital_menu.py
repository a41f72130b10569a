"""
Digital menu for guests scanning a table QR code
"""

from io import BytesIO
from typing import Dict, List, Optional
import structlog

import qrcode
import qrcode.image.svg
from sqlmodel import Field, SQLModel

from restaurant_ledger.core.config import get_settings
from restaurant_ledger.core.exceptions import ValidationError
from restaurant_ledger.models.menu_item import MenuItem
from restaurant_ledger.models.order import Order, OrderType
from restaurant_ledger.models.table import Table
from restaurant_ledger.services.ledger import OrderDraft, OrderLedger, OrderLineDraft

logger = structlog.get_logger(__name__)


class MenuSection(SQLModel):
    category: str
    items: List[MenuItem] = Field(default_factory=list)


class DigitalMenu(SQLModel):
    """Orderable menu shown at a table"""
    table_number: int
    sections: List[MenuSection] = Field(default_factory=list)


def menu_url(table_number: int, base_url: Optional[str] = None) -> str:
    """Public menu URL for a table"""
    base_url = base_url or get_settings().PUBLIC_MENU_BASE_URL
    return f"{base_url}?table={table_number}"


def render_table_qr_svg(table: Table, base_url: Optional[str] = None) -> str:
    """SVG QR code pointing at the table's digital menu"""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
        image_factory=qrcode.image.svg.SvgPathImage,
    )
    qr.add_data(table.qr_code or menu_url(table.number, base_url))
    qr.make(fit=True)
    img = qr.make_image()

    buffer = BytesIO()
    img.save(buffer)
    return buffer.getvalue().decode("utf-8")


def digital_menu(
    ledger: OrderLedger,
    table_number: int,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> DigitalMenu:
    """Available items grouped by category

    Search matches the item name or description, case-insensitive.
    Raises NotFound for an unknown table.
    """
    ledger.get_table_by_number(table_number)

    items = ledger.catalog.list_menu_items(category=category, available_only=True)
    if search:
        needle = search.strip().lower()
        items = [
            item for item in items
            if needle in item.name.lower() or needle in item.description.lower()
        ]

    sections: Dict[str, MenuSection] = {}
    for item in items:
        sections.setdefault(item.category, MenuSection(category=item.category)).items.append(item)

    return DigitalMenu(table_number=table_number, sections=list(sections.values()))


def place_table_order(
    ledger: OrderLedger,
    table_number: int,
    items: List[OrderLineDraft],
    customer_name: Optional[str] = None,
) -> Order:
    """Dine-in order placed by a guest from the table's QR menu"""
    if not items:
        raise ValidationError("Order must contain at least one item")
    table = ledger.get_table_by_number(table_number)

    notes = None
    if customer_name and customer_name.strip():
        notes = f"Customer: {customer_name.strip()}"

    order = ledger.create_order(OrderDraft(
        order_type=OrderType.DINE_IN,
        table_id=table.id,
        items=items,
        notes=notes,
    ))
    logger.info("digital_menu_order_placed", order_id=str(order.id), table_number=table_number)
    return order
