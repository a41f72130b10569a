"""
Cashier API endpoints
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from typing import Any, Dict, List
import uuid

from restaurant_ledger.api.schemas import CheckoutRequest, QuoteRequest
from restaurant_ledger.core.dependencies import get_cashier, require_permission
from restaurant_ledger.core.permissions import Permission
from restaurant_ledger.models.order import Order
from restaurant_ledger.services.cashier import CashierService, Quote

router = APIRouter(dependencies=[Depends(require_permission(Permission.PAYMENT_RECORD))])


@router.get("/orders", response_model=List[Order])
async def payable_orders(cashier: CashierService = Depends(get_cashier)):
    """Orders waiting for payment"""
    return cashier.payable_orders()


@router.post("/orders/{order_id}/quote", response_model=Quote)
async def quote_order(
    order_id: uuid.UUID,
    request: QuoteRequest,
    cashier: CashierService = Depends(get_cashier),
):
    """Final bill with discount, service tax, tip and split, without charging"""
    return cashier.quote(order_id, request.discount, request.discount_type, request.tip, request.split_count)


@router.post("/orders/{order_id}/checkout", response_model=Order)
async def checkout(
    order_id: uuid.UUID,
    request: CheckoutRequest,
    cashier: CashierService = Depends(get_cashier),
):
    """Charge the bill through the payment gateway and close the order

    A declined charge answers 402 and leaves the order payable.
    """
    return await cashier.checkout(
        order_id,
        request.method,
        discount=request.discount,
        discount_type=request.discount_type,
        tip=request.tip,
        split_count=request.split_count,
    )


@router.get("/orders/{order_id}/receipt", response_model=Dict[str, Any])
async def receipt(order_id: uuid.UUID, cashier: CashierService = Depends(get_cashier)):
    order = cashier.ledger.get_order(order_id)
    return cashier.build_receipt(order)


@router.get("/orders/{order_id}/receipt.txt", response_class=PlainTextResponse)
async def printable_receipt(order_id: uuid.UUID, cashier: CashierService = Depends(get_cashier)):
    """Receipt formatted for a thermal printer"""
    order = cashier.ledger.get_order(order_id)
    return cashier.format_receipt(cashier.build_receipt(order))
