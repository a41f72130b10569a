"""
Domain events system

Domain events represent important business events that can be published
and subscribed to by multiple parts of the system. The ledger publishes
them after a mutation has been applied.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
import uuid
import structlog

logger = structlog.get_logger(__name__)


class DomainEvent:
    """Base class for domain events"""

    def __init__(self, event_id: uuid.UUID = None):
        self.event_id = event_id or uuid.uuid4()
        self.occurred_at = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary"""
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.occurred_at.isoformat(),
            "event_type": self.__class__.__name__
        }


class OrderCreated(DomainEvent):
    """Event fired when an order is accepted by the ledger"""

    def __init__(
        self,
        order_id: uuid.UUID,
        order_type: str,
        table_id: Optional[uuid.UUID],
        total: Decimal,
        item_count: int,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.order_type = order_type
        self.table_id = table_id
        self.total = total
        self.item_count = item_count

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "order_type": self.order_type,
            "table_id": str(self.table_id) if self.table_id else None,
            "total": str(self.total),
            "item_count": self.item_count
        })
        return data


class OrderStatusChanged(DomainEvent):
    """Event fired when an order moves to a new status"""

    def __init__(
        self,
        order_id: uuid.UUID,
        previous_status: str,
        status: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.previous_status = previous_status
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "previous_status": self.previous_status,
            "status": self.status
        })
        return data


class PaymentRecorded(DomainEvent):
    """Event fired when an order is paid"""

    def __init__(
        self,
        order_id: uuid.UUID,
        method: str,
        amount: Decimal,
        transaction_id: Optional[str] = None,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.method = method
        self.amount = amount
        self.transaction_id = transaction_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "method": self.method,
            "amount": str(self.amount),
            "transaction_id": self.transaction_id
        })
        return data


class KitchenTicketCreated(DomainEvent):
    """Event fired when an order fans out into a kitchen ticket"""

    def __init__(
        self,
        ticket_id: uuid.UUID,
        order_id: uuid.UUID,
        table_number: Optional[int],
        stations: List[str],
        estimated_time: int,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.ticket_id = ticket_id
        self.order_id = order_id
        self.table_number = table_number
        self.stations = stations
        self.estimated_time = estimated_time

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "ticket_id": str(self.ticket_id),
            "order_id": str(self.order_id),
            "table_number": self.table_number,
            "stations": self.stations,
            "estimated_time": self.estimated_time
        })
        return data


class KitchenItemStatusChanged(DomainEvent):
    """Event fired when a cook advances a ticket item"""

    def __init__(
        self,
        ticket_id: uuid.UUID,
        item_id: uuid.UUID,
        station: str,
        previous_status: str,
        status: str,
        ticket_completed: bool,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.ticket_id = ticket_id
        self.item_id = item_id
        self.station = station
        self.previous_status = previous_status
        self.status = status
        self.ticket_completed = ticket_completed

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "ticket_id": str(self.ticket_id),
            "item_id": str(self.item_id),
            "station": self.station,
            "previous_status": self.previous_status,
            "status": self.status,
            "ticket_completed": self.ticket_completed
        })
        return data


class TableStatusChanged(DomainEvent):
    """Event fired when a table changes status"""

    def __init__(
        self,
        table_id: uuid.UUID,
        table_number: int,
        previous_status: str,
        status: str,
        order_id: Optional[uuid.UUID] = None,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.table_id = table_id
        self.table_number = table_number
        self.previous_status = previous_status
        self.status = status
        self.order_id = order_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "table_id": str(self.table_id),
            "table_number": self.table_number,
            "previous_status": self.previous_status,
            "status": self.status,
            "order_id": str(self.order_id) if self.order_id else None
        })
        return data


class DeliveryStatusChanged(DomainEvent):
    """Event fired when a delivery moves along its own state machine"""

    def __init__(
        self,
        order_id: uuid.UUID,
        tracking_code: str,
        previous_status: str,
        status: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.tracking_code = tracking_code
        self.previous_status = previous_status
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "tracking_code": self.tracking_code,
            "previous_status": self.previous_status,
            "status": self.status
        })
        return data


class EventBus:
    """Simple in-memory event bus for publishing domain events"""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, handler: Callable):
        """Subscribe to a specific event type"""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)
        logger.debug("event_handler_subscribed", event_type=event_type)

    def unsubscribe(self, event_type: str, handler: Callable):
        """Unsubscribe from an event type"""
        if event_type in self._subscribers:
            self._subscribers[event_type].remove(handler)
            logger.debug("event_handler_unsubscribed", event_type=event_type)

    def publish(self, event: DomainEvent):
        """Publish an event to all subscribers

        Handlers run synchronously; a failing handler is logged and does not
        affect the other handlers or the operation that published the event.
        """
        event_type = event.__class__.__name__
        handlers = list(self._subscribers.get(event_type, []))

        if not handlers:
            logger.debug("event_without_subscribers", event_type=event_type)
            return

        logger.info("event_published", payload=event.to_dict())

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    "event_handler_failed",
                    event_type=event_type,
                    error=str(e),
                    exc_info=True,
                )
