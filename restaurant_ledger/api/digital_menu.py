"""
Public digital menu endpoints, reached from the table QR codes
"""

from fastapi import APIRouter, Depends, status
from typing import Optional

from restaurant_ledger.api.schemas import DigitalMenuOrderCreate
from restaurant_ledger.core.dependencies import get_ledger
from restaurant_ledger.models.order import Order
from restaurant_ledger.services import digital_menu as menu_service
from restaurant_ledger.services.ledger import OrderLedger

router = APIRouter()


@router.get("/{table_number}", response_model=menu_service.DigitalMenu)
async def get_digital_menu(
    table_number: int,
    category: Optional[str] = None,
    search: Optional[str] = None,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Available items for the table, grouped by category"""
    return menu_service.digital_menu(ledger, table_number, category=category, search=search)


@router.post("/{table_number}/orders", response_model=Order, status_code=status.HTTP_201_CREATED)
async def place_order(
    table_number: int,
    order_data: DigitalMenuOrderCreate,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Guest order sent straight to the kitchen"""
    return menu_service.place_table_order(
        ledger,
        table_number,
        order_data.items,
        customer_name=order_data.customer_name,
    )
