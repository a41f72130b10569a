"""
Menu items API endpoints
"""

from fastapi import APIRouter, Depends, status
from typing import List, Optional
import uuid

from restaurant_ledger.core.dependencies import get_catalog, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.models.menu_item import MenuItem
from restaurant_ledger.services.catalog import Catalog

router = APIRouter()


@router.get("/", response_model=List[MenuItem])
async def list_menu_items(
    category: Optional[str] = None,
    available_only: bool = False,
    catalog: Catalog = Depends(get_catalog),
):
    return catalog.list_menu_items(category=category, available_only=available_only)


@router.get("/categories", response_model=List[str])
async def list_categories(catalog: Catalog = Depends(get_catalog)):
    return catalog.menu_categories()


@router.get("/{item_id}", response_model=MenuItem)
async def get_menu_item(item_id: uuid.UUID, catalog: Catalog = Depends(get_catalog)):
    return catalog.get_menu_item(item_id)


@router.post(
    "/",
    response_model=MenuItem,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.MENU_EDIT))],
)
async def create_menu_item(item: MenuItem, catalog: Catalog = Depends(get_catalog)):
    return catalog.add_menu_item(item)


@router.put(
    "/{item_id}",
    response_model=MenuItem,
    dependencies=[Depends(require_permission(Permission.MENU_EDIT))],
)
async def update_menu_item(item_id: uuid.UUID, item: MenuItem, catalog: Catalog = Depends(get_catalog)):
    """Replace a menu item; existing orders keep their snapshot"""
    return catalog.update_menu_item(item_id, item)


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(Permission.MENU_EDIT))],
)
async def delete_menu_item(item_id: uuid.UUID, catalog: Catalog = Depends(get_catalog)):
    catalog.delete_menu_item(item_id)
