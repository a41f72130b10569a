"""
Tables API endpoints
"""

from fastapi import APIRouter, Depends, Response, status
from typing import List, Optional
import uuid

from restaurant_ledger.api.schemas import TableCreate, TableStatusUpdate
from restaurant_ledger.core.dependencies import get_ledger, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.models.table import Table, TableStatus
from restaurant_ledger.services.digital_menu import menu_url, render_table_qr_svg
from restaurant_ledger.services.ledger import OrderLedger

router = APIRouter()


@router.post(
    "/",
    response_model=Table,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.TABLES_EDIT))],
)
async def create_table(table_data: TableCreate, ledger: OrderLedger = Depends(get_ledger)):
    """Create a table with its digital menu URL"""
    return ledger.add_table(Table(
        number=table_data.number,
        capacity=table_data.capacity,
        section=table_data.section,
        qr_code=menu_url(table_data.number, ledger.settings.PUBLIC_MENU_BASE_URL),
    ))


@router.get("/", response_model=List[Table])
async def list_tables(
    section: Optional[str] = None,
    status: Optional[TableStatus] = None,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Floor plan, ordered by table number"""
    return ledger.list_tables(section=section, status=status)


@router.get("/{table_id}", response_model=Table)
async def get_table(table_id: uuid.UUID, ledger: OrderLedger = Depends(get_ledger)):
    return ledger.get_table(table_id)


@router.patch(
    "/{table_id}/status",
    response_model=Table,
    dependencies=[Depends(require_permission(Permission.TABLES_EDIT))],
)
async def update_table_status(
    table_id: uuid.UUID,
    update: TableStatusUpdate,
    ledger: OrderLedger = Depends(get_ledger),
):
    """Manual status override"""
    return ledger.update_table_status(table_id, update.status)


@router.get("/{table_id}/qr.svg")
async def table_qr_code(table_id: uuid.UUID, ledger: OrderLedger = Depends(get_ledger)):
    """Printable QR code for the table's digital menu"""
    table = ledger.get_table(table_id)
    svg = render_table_qr_svg(table, ledger.settings.PUBLIC_MENU_BASE_URL)
    return Response(content=svg, media_type="image/svg+xml")
