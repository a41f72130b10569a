"""
Cashier service

Computes the final bill (discount, service tax, tip, split), charges it
through a payment gateway and records the payment on the ledger. A declined
or failed charge leaves the order unpaid so it can be retried.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Set
import asyncio
import threading
import uuid
import structlog

from sqlmodel import Field, SQLModel

from restaurant_ledger.core.config import get_settings
from restaurant_ledger.core.exceptions import AlreadyPaid, InvalidTransition, PaymentFailed
from restaurant_ledger.models.delivery import DeliveryOrder
from restaurant_ledger.models.order import Order, OrderStatus
from restaurant_ledger.models.payment import PaymentMethod, PaymentResult
from restaurant_ledger.services.ledger import OrderFilter, OrderLedger
from restaurant_ledger.services.pricing import (
    ZERO, DiscountType, Totals, split_bill, to_money, totals_for_subtotal
)

logger = structlog.get_logger(__name__)


class PaymentGateway(Protocol):
    """Anything able to charge an amount for an order"""

    async def process_payment(self, order_id: uuid.UUID, method: PaymentMethod, amount: Decimal) -> PaymentResult:
        ...


class SimulatedPaymentGateway:
    """Stand-in gateway that approves every charge after a short delay

    Methods listed in ``declined_methods`` are always refused, which is
    handy for exercising the failure path at the counter.
    """

    def __init__(self, delay: Optional[float] = None, declined_methods: Optional[set] = None):
        self.delay = get_settings().PAYMENT_SIMULATED_DELAY if delay is None else delay
        self.declined_methods = set(declined_methods or ())

    async def process_payment(self, order_id: uuid.UUID, method: PaymentMethod, amount: Decimal) -> PaymentResult:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

        if method in self.declined_methods:
            logger.warning("simulated_payment_declined", order_id=str(order_id), method=method.value)
            return PaymentResult(success=False, message=f"{method.value} payment declined")

        transaction_id = f"SIM-{uuid.uuid4().hex[:12].upper()}"
        logger.info(
            "simulated_payment_approved",
            order_id=str(order_id),
            method=method.value,
            amount=str(amount),
            transaction_id=transaction_id,
        )
        return PaymentResult(success=True, transaction_id=transaction_id, message="Approved")


class Quote(SQLModel):
    """Final bill for an order as shown at the cashier"""
    order_id: uuid.UUID
    totals: Totals
    delivery_fee: Decimal = ZERO
    amount_due: Decimal
    split_count: int = Field(default=1, ge=1)
    per_person: Decimal


class CashierService:
    """Checkout flow on top of the order ledger"""

    def __init__(self, ledger: OrderLedger, gateway: Optional[PaymentGateway] = None):
        self.ledger = ledger
        self.gateway = gateway or SimulatedPaymentGateway(delay=ledger.settings.PAYMENT_SIMULATED_DELAY)
        self._charging: Set[uuid.UUID] = set()
        self._charging_lock = threading.Lock()

    def payable_orders(self) -> List[Order]:
        """Ready and served orders, newest first"""
        ready = self.ledger.list_orders(OrderFilter(status=OrderStatus.READY))
        served = self.ledger.list_orders(OrderFilter(status=OrderStatus.SERVED))
        return sorted(ready + served, key=lambda order: order.created_at, reverse=True)

    def quote(
        self,
        order_id: uuid.UUID,
        discount: Optional[Decimal] = None,
        discount_type: Optional[DiscountType] = None,
        tip: Optional[Decimal] = None,
        split_count: int = 1,
    ) -> Quote:
        """Bill for a payable order without charging it

        Discount and tip left as None keep the figures the order was created
        with; the discount type defaults to percentage when a discount is given.
        """
        order = self.ledger.get_order(order_id)
        if order.status == OrderStatus.PAID:
            raise AlreadyPaid("Order is already paid", {"order_id": order_id})
        if not order.is_payable():
            raise InvalidTransition(
                f"Cannot take payment for an order that is {order.status.value}",
                {"order_id": order_id, "status": order.status.value},
            )
        return self._quote_for(order, discount, discount_type, tip, split_count)

    async def checkout(
        self,
        order_id: uuid.UUID,
        method: PaymentMethod,
        discount: Optional[Decimal] = None,
        discount_type: Optional[DiscountType] = None,
        tip: Optional[Decimal] = None,
        split_count: int = 1,
    ) -> Order:
        """Charge the final bill and mark the order paid

        Only one charge per order can be in flight; a second checkout started
        before the first settles is refused without calling the gateway.
        """
        self._reserve(order_id)
        try:
            return await self._charge(order_id, method, discount, discount_type, tip, split_count)
        finally:
            self._release(order_id)

    async def _charge(
        self,
        order_id: uuid.UUID,
        method: PaymentMethod,
        discount: Optional[Decimal],
        discount_type: Optional[DiscountType],
        tip: Optional[Decimal],
        split_count: int,
    ) -> Order:
        quote = self.quote(order_id, discount, discount_type, tip, split_count)

        try:
            result = await self.gateway.process_payment(order_id, method, quote.amount_due)
        except Exception as exc:
            logger.error("payment_gateway_error", order_id=str(order_id), method=method.value, error=str(exc))
            raise PaymentFailed("Payment gateway error", {"order_id": order_id, "method": method.value}) from exc

        if not result.success:
            logger.warning("payment_failed", order_id=str(order_id), method=method.value, reason=result.message)
            raise PaymentFailed(
                result.message or "Payment declined",
                {"order_id": order_id, "method": method.value},
            )

        bill = quote.totals.model_copy(update={"total": quote.amount_due})
        return self.ledger.record_payment(
            order_id,
            method,
            quote.amount_due,
            transaction_id=result.transaction_id,
            bill=bill,
        )

    def build_receipt(self, order: Order, quote: Optional[Quote] = None) -> Dict[str, Any]:
        """Receipt payload for a quoted or paid order"""
        if quote is None:
            quote = Quote(
                order_id=order.id,
                totals=Totals(
                    subtotal=order.subtotal,
                    discount_amount=order.discount,
                    tax=order.tax,
                    tip=order.tip,
                    total=order.total,
                ),
                delivery_fee=order.delivery_fee if isinstance(order, DeliveryOrder) else ZERO,
                amount_due=order.total,
                per_person=order.total,
            )

        table_number = None
        if order.table_id is not None:
            table_number = self.ledger.get_table(order.table_id).number

        return {
            "order_id": str(order.id),
            "table_number": table_number,
            "order_type": order.order_type.value,
            "created_at": order.created_at.isoformat(),
            "items": [
                {
                    "name": line.menu_item.name,
                    "quantity": line.quantity,
                    "unit_price": str(line.unit_price),
                    "line_total": str(to_money(line.line_total)),
                    "modifications": list(line.modifications),
                }
                for line in order.items
            ],
            "subtotal": str(quote.totals.subtotal),
            "discount": str(quote.totals.discount_amount),
            "tax": str(quote.totals.tax),
            "tip": str(quote.totals.tip),
            "delivery_fee": str(quote.delivery_fee),
            "total": str(quote.amount_due),
            "split_count": quote.split_count,
            "per_person": str(quote.per_person),
            "currency": get_settings().CURRENCY,
            "payment_method": order.payment.method.value if order.payment else None,
            "transaction_id": order.payment.transaction_id if order.payment else None,
        }

    def format_receipt(self, receipt: Dict[str, Any]) -> str:
        """Plain text receipt for a thermal printer"""
        currency = receipt["currency"]
        lines = []
        lines.append("=" * 40)
        lines.append(f"Order #{receipt['order_id']}")
        lines.append(f"Date: {receipt['created_at']}")
        if receipt["table_number"] is not None:
            lines.append(f"Table: {receipt['table_number']}")
        lines.append("=" * 40)

        for item in receipt["items"]:
            lines.append(f"{item['name']} x{item['quantity']}")
            lines.append(f"  {currency} {item['unit_price']} each")
            if item["modifications"]:
                lines.append(f"  Mods: {', '.join(item['modifications'])}")

        lines.append("-" * 40)
        lines.append(f"Subtotal: {currency} {receipt['subtotal']}")
        if Decimal(receipt["discount"]) > 0:
            lines.append(f"Discount: -{currency} {receipt['discount']}")
        lines.append(f"Service tax: {currency} {receipt['tax']}")
        if Decimal(receipt["tip"]) > 0:
            lines.append(f"Tip: {currency} {receipt['tip']}")
        if Decimal(receipt["delivery_fee"]) > 0:
            lines.append(f"Delivery fee: {currency} {receipt['delivery_fee']}")
        lines.append("-" * 40)
        lines.append(f"TOTAL: {currency} {receipt['total']}")
        if receipt["split_count"] > 1:
            lines.append(f"Per person ({receipt['split_count']}): {currency} {receipt['per_person']}")
        if receipt["payment_method"]:
            lines.append(f"Paid with: {receipt['payment_method']}")
        lines.append("=" * 40)
        return "\n".join(lines)

    def _quote_for(
        self,
        order: Order,
        discount: Optional[Decimal],
        discount_type: Optional[DiscountType],
        tip: Optional[Decimal],
        split_count: int,
    ) -> Quote:
        if discount is None:
            discount, discount_type = order.discount, DiscountType.FIXED
        elif discount_type is None:
            discount_type = DiscountType.PERCENTAGE
        if tip is None:
            tip = order.tip

        totals = totals_for_subtotal(
            order.subtotal,
            discount=discount,
            discount_type=discount_type,
            tax_rate=self.ledger.settings.SERVICE_TAX_RATE,
            tip=tip,
        )
        delivery_fee = order.delivery_fee if isinstance(order, DeliveryOrder) else ZERO
        amount_due = to_money(totals.total + delivery_fee)
        return Quote(
            order_id=order.id,
            totals=totals,
            delivery_fee=delivery_fee,
            amount_due=amount_due,
            split_count=split_count,
            per_person=split_bill(amount_due, split_count),
        )

    def _reserve(self, order_id: uuid.UUID) -> None:
        with self._charging_lock:
            if order_id in self._charging:
                logger.warning("checkout_already_in_progress", order_id=str(order_id))
                raise InvalidTransition(
                    "A payment for this order is already in progress",
                    {"order_id": order_id},
                )
            self._charging.add(order_id)

    def _release(self, order_id: uuid.UUID) -> None:
        with self._charging_lock:
            self._charging.discard(order_id)
