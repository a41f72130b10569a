"""
Inventory API endpoints
"""

from fastapi import APIRouter, Depends, status
from typing import List, Optional
import uuid

from restaurant_ledger.api.schemas import InventoryAlerts
from restaurant_ledger.core.dependencies import get_catalog, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.models.inventory_item import InventoryItem
from restaurant_ledger.services.catalog import Catalog

router = APIRouter()


@router.get("/", response_model=List[InventoryItem])
async def list_inventory(
    category: Optional[str] = None,
    search: Optional[str] = None,
    low_stock_only: bool = False,
    catalog: Catalog = Depends(get_catalog),
):
    return catalog.list_inventory_items(category=category, search=search, low_stock_only=low_stock_only)


@router.get("/alerts", response_model=InventoryAlerts)
async def stock_alerts(catalog: Catalog = Depends(get_catalog)):
    """Items at or below their minimum, and items with no stock left"""
    return InventoryAlerts(
        low_stock=catalog.low_stock_items(),
        out_of_stock=catalog.out_of_stock_items(),
    )


@router.get("/categories", response_model=List[str])
async def list_categories(catalog: Catalog = Depends(get_catalog)):
    return catalog.inventory_categories()


@router.get("/{item_id}", response_model=InventoryItem)
async def get_inventory_item(item_id: uuid.UUID, catalog: Catalog = Depends(get_catalog)):
    return catalog.get_inventory_item(item_id)


@router.post(
    "/",
    response_model=InventoryItem,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.INVENTORY_EDIT))],
)
async def create_inventory_item(item: InventoryItem, catalog: Catalog = Depends(get_catalog)):
    return catalog.add_inventory_item(item)


@router.put(
    "/{item_id}",
    response_model=InventoryItem,
    dependencies=[Depends(require_permission(Permission.INVENTORY_EDIT))],
)
async def update_inventory_item(item_id: uuid.UUID, item: InventoryItem, catalog: Catalog = Depends(get_catalog)):
    return catalog.update_inventory_item(item_id, item)


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(Permission.INVENTORY_EDIT))],
)
async def delete_inventory_item(item_id: uuid.UUID, catalog: Catalog = Depends(get_catalog)):
    catalog.delete_inventory_item(item_id)
