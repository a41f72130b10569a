"""
Customers API endpoints
"""

from fastapi import APIRouter, Depends, status
from typing import List, Optional
import uuid

from restaurant_ledger.core.dependencies import get_catalog, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.models.customer import Customer
from restaurant_ledger.services.catalog import Catalog

router = APIRouter()


@router.get(
    "/",
    response_model=List[Customer],
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def list_customers(search: Optional[str] = None, catalog: Catalog = Depends(get_catalog)):
    """Customers matching a name or phone fragment"""
    return catalog.list_customers(search=search)


@router.post(
    "/",
    response_model=Customer,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.CUSTOMER_EDIT))],
)
async def create_customer(customer: Customer, catalog: Catalog = Depends(get_catalog)):
    return catalog.add_customer(customer)


@router.get(
    "/{customer_id}",
    response_model=Customer,
    dependencies=[Depends(require_permission(Permission.ORDER_VIEW))],
)
async def get_customer(customer_id: uuid.UUID, catalog: Catalog = Depends(get_catalog)):
    return catalog.get_customer(customer_id)
