"""
Order ledger

The aggregate root for service: creates orders, enforces status transitions,
fans new orders out into kitchen tickets and keeps table occupancy and
delivery records in step.

All mutations run under one re-entrant lock, so an order and its ticket are
never observed half-updated. Each operation validates before it mutates;
a raised error leaves the ledger untouched. Events are published after the
lock is released. Reads return deep copies.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence
import secrets
import threading
import uuid
import structlog

from sqlmodel import Field, SQLModel

from restaurant_ledger.core.config import Settings, get_settings
from restaurant_ledger.core.events import (
    DomainEvent, EventBus, OrderCreated, OrderStatusChanged, PaymentRecorded,
    KitchenTicketCreated, KitchenItemStatusChanged, TableStatusChanged,
    DeliveryStatusChanged
)
from restaurant_ledger.core.exceptions import (
    AlreadyPaid, InvalidTransition, NotFound, ValidationError
)
from restaurant_ledger.models.customer import Address
from restaurant_ledger.models.delivery import DeliveryOrder, DeliveryPerson, DeliveryStatus
from restaurant_ledger.models.kitchen_ticket import KitchenTicket, Station, TicketItemStatus, TicketPriority
from restaurant_ledger.models.order import (
    Order, OrderLineItem, OrderStatus, OrderType, LineItemStatus
)
from restaurant_ledger.models.payment import PaymentMethod, PaymentRecord
from restaurant_ledger.models.table import Table, TableStatus
from restaurant_ledger.services.catalog import Catalog
from restaurant_ledger.services.kitchen import derive_ticket, group_by_priority, sort_by_urgency
from restaurant_ledger.services.pricing import DiscountType, Totals, compute_totals, to_money
from restaurant_ledger.services.reports import HistoryStats, history_stats

logger = structlog.get_logger(__name__)


class OrderLineDraft(SQLModel):
    """Requested order line"""
    menu_item_id: uuid.UUID
    quantity: int = Field(default=1, ge=1)
    notes: Optional[str] = None
    modifications: List[str] = Field(default_factory=list)


class OrderDraft(SQLModel):
    """Order as submitted by a waiter, the digital menu or the delivery desk"""
    order_type: OrderType = OrderType.DINE_IN
    table_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    waiter_id: Optional[str] = None
    items: List[OrderLineDraft] = Field(default_factory=list)
    discount: Decimal = Decimal("0")
    discount_type: DiscountType = DiscountType.PERCENTAGE
    tip: Decimal = Decimal("0")
    notes: Optional[str] = None
    delivery_address: Optional[Address] = None


class OrderFilter(SQLModel):
    """Criteria for listing orders; unset fields match everything"""
    status: Optional[OrderStatus] = None
    order_type: Optional[OrderType] = None
    table_id: Optional[uuid.UUID] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    search: Optional[str] = None


class OrderLedger:
    """In-memory order ledger"""

    def __init__(
        self,
        catalog: Catalog,
        settings: Optional[Settings] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.catalog = catalog
        self.settings = settings or get_settings()
        self.event_bus = event_bus or EventBus()
        self._clock = clock
        self._lock = threading.RLock()
        self._orders: Dict[uuid.UUID, Order] = {}
        self._tickets: Dict[uuid.UUID, KitchenTicket] = {}
        self._ticket_by_order: Dict[uuid.UUID, uuid.UUID] = {}
        self._tables: Dict[uuid.UUID, Table] = {}

    def now(self) -> datetime:
        return self._clock()

    @property
    def priority_thresholds(self) -> Sequence[int]:
        return self.settings.PRIORITY_THRESHOLDS_MINUTES

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def create_order(self, draft: OrderDraft) -> Order:
        """Validate a draft, price it, store it and derive its kitchen ticket"""
        if draft.order_type == OrderType.DELIVERY:
            return self.create_delivery_order(draft)

        events: List[DomainEvent] = []
        with self._lock:
            order = self._build_order(draft, Order)
            self._commit_new_order(order, events)
            result = order.model_copy(deep=True)

        self._publish(events)
        return result

    def create_delivery_order(
        self,
        draft: OrderDraft,
        delivery_fee: Decimal = Decimal("0"),
        delivery_time: int = 0,
        delivery_person: Optional[DeliveryPerson] = None,
    ) -> DeliveryOrder:
        """Create a delivery order with its own tracking code and delivery status

        The delivery fee is added to the order total.
        """
        if draft.order_type != OrderType.DELIVERY:
            raise ValidationError("Delivery orders must have order type delivery", {"order_type": draft.order_type.value})
        if delivery_fee < 0:
            raise ValidationError("Delivery fee cannot be negative", {"delivery_fee": delivery_fee})
        if delivery_time < 0:
            raise ValidationError("Delivery time cannot be negative", {"delivery_time": delivery_time})

        events: List[DomainEvent] = []
        with self._lock:
            fee = to_money(delivery_fee)
            order = self._build_order(
                draft,
                DeliveryOrder,
                delivery_fee=fee,
                delivery_time=delivery_time,
                delivery_person=delivery_person,
                tracking_code=self._new_tracking_code(),
            )
            order.total = to_money(order.total + fee)
            self._commit_new_order(order, events)
            result = order.model_copy(deep=True)

        self._publish(events)
        return result

    def get_order(self, order_id: uuid.UUID) -> Order:
        with self._lock:
            return self._require_order(order_id).model_copy(deep=True)

    def list_orders(self, order_filter: Optional[OrderFilter] = None) -> List[Order]:
        """Orders matching the filter, newest first"""
        order_filter = order_filter or OrderFilter()
        with self._lock:
            matches = [
                order.model_copy(deep=True)
                for order in self._orders.values()
                if self._matches(order, order_filter)
            ]
        return sorted(matches, key=lambda order: order.created_at, reverse=True)

    def update_order_status(self, order_id: uuid.UUID, status: OrderStatus) -> Order:
        """Advance an order one step, or cancel it from any non-terminal state"""
        events: List[DomainEvent] = []
        with self._lock:
            order = self._require_order(order_id)
            previous = order.status
            now = self.now()
            order.transition_to(status, now)

            logger.info(
                "order_status_changed",
                order_id=str(order.id),
                previous_status=previous.value,
                status=status.value,
            )
            events.append(OrderStatusChanged(order_id=order.id, previous_status=previous.value, status=status.value))
            if order.is_terminal():
                self._release_table(order, now, events)
            result = order.model_copy(deep=True)

        self._publish(events)
        return result

    def record_payment(
        self,
        order_id: uuid.UUID,
        method: PaymentMethod,
        amount: Decimal,
        transaction_id: Optional[str] = None,
        bill: Optional[Totals] = None,
    ) -> Order:
        """Close a ready or served order with a payment

        ``bill`` carries the final figures computed at the cashier (discount,
        tip) and replaces the order's totals; without it the order total is
        charged as created.
        """
        events: List[DomainEvent] = []
        with self._lock:
            order = self._require_order(order_id)
            if order.status == OrderStatus.PAID:
                raise AlreadyPaid("Order is already paid", {"order_id": order_id})
            if not order.is_payable():
                raise InvalidTransition(
                    f"Cannot take payment for an order that is {order.status.value}",
                    {"order_id": order_id, "status": order.status.value},
                )
            if bill is not None and bill.subtotal != order.subtotal:
                raise ValidationError(
                    "Bill does not match the order subtotal",
                    {"order_id": order_id, "bill_subtotal": bill.subtotal, "order_subtotal": order.subtotal},
                )

            amount_due = bill.total if bill is not None else order.total
            amount = to_money(amount)
            if amount < amount_due:
                raise ValidationError(
                    "Payment amount is below the amount due",
                    {"order_id": order_id, "amount": amount, "amount_due": amount_due},
                )

            now = self.now()
            if bill is not None:
                order.discount = bill.discount_amount
                order.tax = bill.tax
                order.tip = bill.tip
                order.total = bill.total
            order.mark_paid(
                PaymentRecord(method=method, amount=amount, transaction_id=transaction_id, processed_at=now),
                now,
            )

            logger.info(
                "order_paid",
                order_id=str(order.id),
                method=method.value,
                amount=str(amount),
                total=str(order.total),
            )
            events.append(PaymentRecorded(order_id=order.id, method=method.value, amount=amount, transaction_id=transaction_id))
            self._release_table(order, now, events)
            result = order.model_copy(deep=True)

        self._publish(events)
        return result

    def update_line_item_status(self, order_id: uuid.UUID, line_item_id: uuid.UUID, status: LineItemStatus) -> Order:
        """Advance one order line: pending -> preparing -> ready -> served"""
        with self._lock:
            order = self._require_order(order_id)
            if order.is_terminal():
                raise InvalidTransition(
                    f"Order is {order.status.value}, its lines can no longer change",
                    {"order_id": order_id},
                )
            line = order.find_item(line_item_id)
            if line is None:
                raise NotFound("Order line item not found", {"order_id": order_id, "line_item_id": line_item_id})
            can_transition, reason = line.can_transition_to(status)
            if not can_transition:
                raise InvalidTransition(reason, {"order_id": order_id, "line_item_id": line_item_id})

            previous = line.status
            line.status = status
            order.touch(self.now())
            logger.info(
                "order_line_status_changed",
                order_id=str(order_id),
                line_item_id=str(line_item_id),
                previous_status=previous.value,
                status=status.value,
            )
            return order.model_copy(deep=True)

    def order_history_stats(self, order_filter: Optional[OrderFilter] = None) -> HistoryStats:
        return history_stats(self.list_orders(order_filter))

    # ------------------------------------------------------------------
    # Kitchen tickets
    # ------------------------------------------------------------------

    def get_ticket(self, ticket_id: uuid.UUID) -> KitchenTicket:
        with self._lock:
            return self._require_ticket(ticket_id).model_copy(deep=True)

    def get_ticket_for_order(self, order_id: uuid.UUID) -> Optional[KitchenTicket]:
        """The order's ticket, or None for all-beverage orders"""
        with self._lock:
            self._require_order(order_id)
            ticket_id = self._ticket_by_order.get(order_id)
            if ticket_id is None:
                return None
            return self._tickets[ticket_id].model_copy(deep=True)

    def list_kitchen_tickets(
        self,
        station: Optional[Station] = None,
        include_completed: bool = True,
    ) -> List[KitchenTicket]:
        """Tickets with at least one item at the station, most urgent first"""
        with self._lock:
            tickets = [
                ticket.model_copy(deep=True)
                for ticket in self._tickets.values()
                if (station is None or ticket.has_station(station))
                and (include_completed or not ticket.is_complete())
            ]
        return sort_by_urgency(tickets, self.now(), self.priority_thresholds)

    def tickets_by_priority(
        self,
        station: Optional[Station] = None,
        include_completed: bool = False,
    ) -> Dict[TicketPriority, List[KitchenTicket]]:
        tickets = self.list_kitchen_tickets(station=station, include_completed=include_completed)
        return group_by_priority(tickets, self.now(), self.priority_thresholds)

    def ticket_priority(self, ticket_id: uuid.UUID) -> TicketPriority:
        with self._lock:
            ticket = self._require_ticket(ticket_id)
            return ticket.priority_at(self.now(), self.priority_thresholds)

    def update_kitchen_item_status(
        self,
        ticket_id: uuid.UUID,
        item_id: uuid.UUID,
        status: TicketItemStatus,
    ) -> KitchenTicket:
        """Advance one ticket item; the parent order's status is left alone"""
        events: List[DomainEvent] = []
        with self._lock:
            ticket = self._require_ticket(ticket_id)
            item = ticket.find_item(item_id)
            if item is None:
                raise NotFound("Ticket item not found", {"ticket_id": ticket_id, "item_id": item_id})
            previous = item.status
            ticket.advance_item(item_id, status, self.now())

            logger.info(
                "kitchen_item_status_changed",
                ticket_id=str(ticket_id),
                item_id=str(item_id),
                station=item.station.value,
                previous_status=previous.value,
                status=status.value,
                ticket_completed=ticket.is_complete(),
            )
            events.append(KitchenItemStatusChanged(
                ticket_id=ticket.id,
                item_id=item.id,
                station=item.station.value,
                previous_status=previous.value,
                status=status.value,
                ticket_completed=ticket.is_complete(),
            ))
            result = ticket.model_copy(deep=True)

        self._publish(events)
        return result

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def add_table(self, table: Table) -> Table:
        with self._lock:
            if any(existing.number == table.number for existing in self._tables.values()):
                raise ValidationError("Table number already in use", {"number": table.number})
            if table.id in self._tables:
                raise ValidationError("Table id already exists", {"table_id": table.id})
            stored = table.model_copy(deep=True)
            self._tables[stored.id] = stored
        logger.info("table_added", table_id=str(stored.id), number=stored.number, section=stored.section)
        return stored.model_copy(deep=True)

    def get_table(self, table_id: uuid.UUID) -> Table:
        with self._lock:
            return self._require_table(table_id).model_copy(deep=True)

    def get_table_by_number(self, number: int) -> Table:
        with self._lock:
            for table in self._tables.values():
                if table.number == number:
                    return table.model_copy(deep=True)
        raise NotFound("Table not found", {"number": number})

    def list_tables(self, section: Optional[str] = None, status: Optional[TableStatus] = None) -> List[Table]:
        with self._lock:
            tables = [
                table.model_copy(deep=True)
                for table in self._tables.values()
                if (section is None or table.section == section)
                and (status is None or table.status == status)
            ]
        return sorted(tables, key=lambda table: table.number)

    def update_table_status(self, table_id: uuid.UUID, status: TableStatus) -> Table:
        """Manual override from the floor plan; always allowed"""
        events: List[DomainEvent] = []
        with self._lock:
            table = self._require_table(table_id)
            previous = table.status
            table.status = status
            if status == TableStatus.AVAILABLE:
                table.current_order_id = None
            table.updated_at = self.now()
            logger.info(
                "table_status_changed",
                table_id=str(table_id),
                number=table.number,
                previous_status=previous.value,
                status=status.value,
            )
            events.append(TableStatusChanged(
                table_id=table.id,
                table_number=table.number,
                previous_status=previous.value,
                status=status.value,
                order_id=table.current_order_id,
            ))
            result = table.model_copy(deep=True)

        self._publish(events)
        return result

    # ------------------------------------------------------------------
    # Deliveries
    # ------------------------------------------------------------------

    def get_delivery_order(self, order_id: uuid.UUID) -> DeliveryOrder:
        with self._lock:
            return self._require_delivery(order_id).model_copy(deep=True)

    def list_delivery_orders(
        self,
        delivery_status: Optional[DeliveryStatus] = None,
        search: Optional[str] = None,
    ) -> List[DeliveryOrder]:
        """Delivery orders, newest first; search matches order id, customer id or tracking code"""
        needle = search.lower() if search else None
        with self._lock:
            orders = [
                order.model_copy(deep=True)
                for order in self._orders.values()
                if isinstance(order, DeliveryOrder)
                and (delivery_status is None or order.delivery_status == delivery_status)
                and (
                    needle is None
                    or needle in str(order.id).lower()
                    or (order.customer_id is not None and needle in str(order.customer_id).lower())
                    or needle in order.tracking_code.lower()
                )
            ]
        return sorted(orders, key=lambda order: order.created_at, reverse=True)

    def active_deliveries(self) -> List[DeliveryOrder]:
        """Confirmed, preparing or out for delivery"""
        return [order for order in self.list_delivery_orders() if order.is_active_delivery()]

    def update_delivery_status(self, order_id: uuid.UUID, status: DeliveryStatus) -> DeliveryOrder:
        """Move the delivery state machine; the order status is not touched"""
        events: List[DomainEvent] = []
        with self._lock:
            order = self._require_delivery(order_id)
            can_transition, reason = order.can_transition_delivery_to(status)
            if not can_transition:
                raise InvalidTransition(reason, {"order_id": order_id, "delivery_status": order.delivery_status.value})

            previous = order.delivery_status
            order.delivery_status = status
            order.touch(self.now())
            logger.info(
                "delivery_status_changed",
                order_id=str(order_id),
                tracking_code=order.tracking_code,
                previous_status=previous.value,
                status=status.value,
            )
            events.append(DeliveryStatusChanged(
                order_id=order.id,
                tracking_code=order.tracking_code,
                previous_status=previous.value,
                status=status.value,
            ))
            result = order.model_copy(deep=True)

        self._publish(events)
        return result

    def assign_delivery_person(self, order_id: uuid.UUID, person: DeliveryPerson) -> DeliveryOrder:
        with self._lock:
            order = self._require_delivery(order_id)
            if order.delivery_status in (DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED):
                raise InvalidTransition(
                    f"Delivery is {order.delivery_status.value}, courier can no longer change",
                    {"order_id": order_id},
                )
            order.delivery_person = person.model_copy()
            order.touch(self.now())
            logger.info("delivery_person_assigned", order_id=str(order_id), delivery_person_id=person.id)
            return order.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop all orders and tickets and free every table"""
        with self._lock:
            self._orders.clear()
            self._tickets.clear()
            self._ticket_by_order.clear()
            for table in self._tables.values():
                table.status = TableStatus.AVAILABLE
                table.current_order_id = None
        logger.info("ledger_reset")

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _build_order(self, draft: OrderDraft, order_cls, **extra) -> Order:
        if not draft.items:
            raise ValidationError("Order must contain at least one item")

        table = None
        if draft.order_type == OrderType.DINE_IN:
            if draft.table_id is None:
                raise ValidationError("Dine-in orders require a table")
            table = self._require_table(draft.table_id)
        elif draft.table_id is not None:
            table = self._require_table(draft.table_id)

        customer = None
        if draft.customer_id is not None:
            customer = self.catalog.get_customer(draft.customer_id)

        delivery_address = draft.delivery_address
        if draft.order_type == OrderType.DELIVERY and delivery_address is None:
            delivery_address = customer.default_address() if customer else None
            if delivery_address is None:
                raise ValidationError("Delivery orders require a delivery address")

        lines: List[OrderLineItem] = []
        for line in draft.items:
            menu_item = self.catalog.get_menu_item(line.menu_item_id)
            if not menu_item.is_available:
                raise ValidationError(
                    f"{menu_item.name} is not available",
                    {"menu_item_id": menu_item.id},
                )
            lines.append(OrderLineItem(
                menu_item=menu_item.snapshot(),
                quantity=line.quantity,
                unit_price=menu_item.price,
                notes=line.notes,
                modifications=list(line.modifications),
            ))

        totals = compute_totals(
            lines,
            discount=draft.discount,
            discount_type=draft.discount_type,
            tax_rate=self.settings.SERVICE_TAX_RATE,
            tip=draft.tip,
        )
        now = self.now()
        order = order_cls(
            table_id=table.id if table else None,
            customer_id=customer.id if customer else None,
            waiter_id=draft.waiter_id,
            items=lines,
            order_type=draft.order_type,
            status=OrderStatus.PENDING,
            subtotal=totals.subtotal,
            discount=totals.discount_amount,
            tax=totals.tax,
            tip=totals.tip,
            total=totals.total,
            notes=draft.notes,
            estimated_time=max(line.menu_item.preparation_time for line in lines),
            delivery_address=delivery_address,
            created_at=now,
            updated_at=now,
            **extra,
        )
        return order

    def _commit_new_order(self, order: Order, events: List[DomainEvent]) -> None:
        table = self._tables.get(order.table_id) if order.table_id else None
        ticket = derive_ticket(order, table.number if table else None)

        self._orders[order.id] = order
        if ticket is not None:
            self._tickets[ticket.id] = ticket
            self._ticket_by_order[order.id] = ticket.id
        if order.customer_id is not None:
            self.catalog.record_customer_order(order.customer_id, order.id)

        logger.info(
            "order_created",
            order_id=str(order.id),
            order_type=order.order_type.value,
            table_number=table.number if table else None,
            item_count=order.item_count(),
            total=str(order.total),
            ticket_id=str(ticket.id) if ticket else None,
        )
        events.append(OrderCreated(
            order_id=order.id,
            order_type=order.order_type.value,
            table_id=order.table_id,
            total=order.total,
            item_count=order.item_count(),
        ))
        if ticket is not None:
            events.append(KitchenTicketCreated(
                ticket_id=ticket.id,
                order_id=order.id,
                table_number=ticket.table_number,
                stations=[station.value for station in ticket.stations()],
                estimated_time=ticket.estimated_time,
            ))

        if order.order_type == OrderType.DINE_IN:
            self._occupy_table(order, events)

    def _occupy_table(self, order: Order, events: List[DomainEvent]) -> None:
        if not self.settings.AUTO_OCCUPY_TABLES or order.table_id is None:
            return
        table = self._tables[order.table_id]
        previous = table.status
        table.status = TableStatus.OCCUPIED
        table.current_order_id = order.id
        table.updated_at = order.created_at
        events.append(TableStatusChanged(
            table_id=table.id,
            table_number=table.number,
            previous_status=previous.value,
            status=table.status.value,
            order_id=order.id,
        ))

    def _release_table(self, order: Order, at: datetime, events: List[DomainEvent]) -> None:
        if not self.settings.AUTO_OCCUPY_TABLES or order.table_id is None:
            return
        table = self._tables.get(order.table_id)
        if table is None or table.current_order_id != order.id:
            return
        previous = table.status
        table.status = TableStatus.AVAILABLE
        table.current_order_id = None
        table.updated_at = at
        events.append(TableStatusChanged(
            table_id=table.id,
            table_number=table.number,
            previous_status=previous.value,
            status=table.status.value,
            order_id=order.id,
        ))

    def _matches(self, order: Order, order_filter: OrderFilter) -> bool:
        if order_filter.status is not None and order.status != order_filter.status:
            return False
        if order_filter.order_type is not None and order.order_type != order_filter.order_type:
            return False
        if order_filter.table_id is not None and order.table_id != order_filter.table_id:
            return False
        if order_filter.created_from is not None and order.created_at < order_filter.created_from:
            return False
        if order_filter.created_to is not None and order.created_at > order_filter.created_to:
            return False
        if order_filter.search:
            needle = order_filter.search.strip().lower()
            table = self._tables.get(order.table_id) if order.table_id else None
            in_id = needle in str(order.id).lower()
            in_table = table is not None and needle in str(table.number)
            if not (in_id or in_table):
                return False
        return True

    def _new_tracking_code(self) -> str:
        existing = {
            order.tracking_code for order in self._orders.values()
            if isinstance(order, DeliveryOrder)
        }
        while True:
            code = f"TRK{secrets.randbelow(1_000_000):06d}"
            if code not in existing:
                return code

    def _require_order(self, order_id: uuid.UUID) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFound("Order not found", {"order_id": order_id})
        return order

    def _require_delivery(self, order_id: uuid.UUID) -> DeliveryOrder:
        order = self._require_order(order_id)
        if not isinstance(order, DeliveryOrder):
            raise NotFound("Delivery order not found", {"order_id": order_id})
        return order

    def _require_ticket(self, ticket_id: uuid.UUID) -> KitchenTicket:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            raise NotFound("Kitchen ticket not found", {"ticket_id": ticket_id})
        return ticket

    def _require_table(self, table_id: uuid.UUID) -> Table:
        table = self._tables.get(table_id)
        if table is None:
            raise NotFound("Table not found", {"table_id": table_id})
        return table

    def _publish(self, events: List[DomainEvent]) -> None:
        for event in events:
            self.event_bus.publish(event)
