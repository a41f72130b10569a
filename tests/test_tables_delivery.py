"""
Unit tests for table occupancy sync and delivery orders
"""

import pytest
import re
import uuid
from decimal import Decimal

from restaurant_ledger.core.config import Settings
from restaurant_ledger.core.exceptions import InvalidTransition, NotFound, ValidationError
from restaurant_ledger.models import (
    DeliveryPerson, DeliveryStatus, OrderStatus, OrderType, PaymentMethod, Table, TableStatus
)
from restaurant_ledger.services.ledger import OrderDraft, OrderLedger
from tests.conftest import advance_to, line


class TestTables:
    """Test table registry"""

    def test_list_tables_sorted_and_filtered(self, ledger):
        ledger.add_table(Table(number=3, section="Varanda"))
        ledger.add_table(Table(number=1, section="Salão Principal"))
        ledger.add_table(Table(number=2, section="Varanda", status=TableStatus.RESERVED))

        assert [table.number for table in ledger.list_tables()] == [1, 2, 3]
        assert [table.number for table in ledger.list_tables(section="Varanda")] == [2, 3]
        assert [table.number for table in ledger.list_tables(status=TableStatus.RESERVED)] == [2]

    def test_duplicate_number_rejected(self, ledger, table):
        with pytest.raises(ValidationError):
            ledger.add_table(Table(number=5))

    def test_get_table_by_number(self, ledger, table):
        assert ledger.get_table_by_number(5).id == table.id
        with pytest.raises(NotFound):
            ledger.get_table_by_number(99)

    def test_manual_status_override(self, ledger, table, clock):
        clock.advance(3)

        updated = ledger.update_table_status(table.id, TableStatus.MAINTENANCE)

        assert updated.status == TableStatus.MAINTENANCE
        assert updated.updated_at == clock()

    def test_available_clears_current_order(self, ledger, table, dine_in_order):
        assert ledger.get_table(table.id).current_order_id == dine_in_order.id

        updated = ledger.update_table_status(table.id, TableStatus.AVAILABLE)

        assert updated.current_order_id is None

    def test_unknown_table(self, ledger):
        with pytest.raises(NotFound):
            ledger.update_table_status(uuid.uuid4(), TableStatus.OCCUPIED)


class TestTableSync:
    """Test tables following the order lifecycle"""

    def test_dine_in_order_occupies_table(self, ledger, table, dine_in_order):
        seated = ledger.get_table(table.id)

        assert seated.status == TableStatus.OCCUPIED
        assert seated.current_order_id == dine_in_order.id

    def test_payment_frees_table(self, ledger, table, dine_in_order):
        advance_to(ledger, dine_in_order.id, OrderStatus.PREPARING, OrderStatus.READY)

        ledger.record_payment(dine_in_order.id, PaymentMethod.CASH, Decimal("84.48"))

        freed = ledger.get_table(table.id)
        assert freed.status == TableStatus.AVAILABLE
        assert freed.current_order_id is None

    def test_cancellation_frees_table(self, ledger, table, dine_in_order):
        ledger.update_order_status(dine_in_order.id, OrderStatus.CANCELLED)

        assert ledger.get_table(table.id).status == TableStatus.AVAILABLE

    def test_table_left_alone_when_linked_to_another_order(self, ledger, menu, table, dine_in_order):
        """Test closing an older order does not free a table seated by a newer one"""
        newer = ledger.create_order(OrderDraft(table_id=table.id, items=[line(menu["pizza"])]))

        ledger.update_order_status(dine_in_order.id, OrderStatus.CANCELLED)

        seated = ledger.get_table(table.id)
        assert seated.status == TableStatus.OCCUPIED
        assert seated.current_order_id == newer.id

    def test_table_events(self, ledger, event_bus, menu, table):
        received = []
        event_bus.subscribe("TableStatusChanged", received.append)

        order = ledger.create_order(OrderDraft(table_id=table.id, items=[line(menu["burger"])]))
        ledger.update_order_status(order.id, OrderStatus.CANCELLED)

        assert [(event.previous_status, event.status) for event in received] == [
            ("available", "occupied"),
            ("occupied", "available"),
        ]

    def test_auto_occupy_disabled(self, catalog, event_bus, clock, menu):
        ledger = OrderLedger(catalog, settings=Settings(AUTO_OCCUPY_TABLES=False), event_bus=event_bus, clock=clock)
        table = ledger.add_table(Table(number=8))

        order = ledger.create_order(OrderDraft(table_id=table.id, items=[line(menu["burger"])]))
        assert ledger.get_table(table.id).status == TableStatus.AVAILABLE

        ledger.update_order_status(order.id, OrderStatus.CANCELLED)
        assert ledger.get_table(table.id).current_order_id is None

    def test_takeaway_does_not_touch_tables(self, ledger, menu, table):
        ledger.create_order(OrderDraft(order_type=OrderType.TAKEAWAY, items=[line(menu["pizza"])]))

        assert ledger.get_table(table.id).status == TableStatus.AVAILABLE


class TestDeliveryOrders:
    """Test delivery orders and their status machine"""

    def test_create_delivery_order(self, ledger, menu, address):
        draft = OrderDraft(
            order_type=OrderType.DELIVERY,
            items=[line(menu["burger"], 2), line(menu["soda"])],
            delivery_address=address,
        )

        order = ledger.create_delivery_order(draft, delivery_fee=Decimal("8.00"), delivery_time=40)

        assert order.order_type == OrderType.DELIVERY
        assert order.delivery_status == DeliveryStatus.PENDING
        assert order.delivery_fee == Decimal("8.00")
        assert order.delivery_time == 40
        assert order.total == Decimal("92.48")
        assert re.fullmatch(r"TRK\d{6}", order.tracking_code)
        assert ledger.get_ticket_for_order(order.id) is not None

    def test_tracking_codes_unique(self, ledger, menu, address):
        draft = OrderDraft(order_type=OrderType.DELIVERY, items=[line(menu["pizza"])], delivery_address=address)

        codes = {ledger.create_delivery_order(draft).tracking_code for _ in range(20)}

        assert len(codes) == 20

    def test_create_order_routes_delivery_drafts(self, ledger, menu, address):
        order = ledger.create_order(OrderDraft(
            order_type=OrderType.DELIVERY,
            items=[line(menu["pizza"])],
            delivery_address=address,
        ))

        delivery = ledger.get_delivery_order(order.id)
        assert delivery.tracking_code.startswith("TRK")
        assert delivery.delivery_fee == Decimal("0.00")

    def test_address_required(self, ledger, menu):
        with pytest.raises(ValidationError):
            ledger.create_delivery_order(OrderDraft(order_type=OrderType.DELIVERY, items=[line(menu["pizza"])]))

    def test_customer_default_address_used(self, ledger, menu, customer):
        order = ledger.create_delivery_order(OrderDraft(
            order_type=OrderType.DELIVERY,
            customer_id=customer.id,
            items=[line(menu["pizza"])],
        ))

        assert order.delivery_address.street == "Rua das Flores"

    def test_non_delivery_draft_rejected(self, ledger, menu, table):
        with pytest.raises(ValidationError):
            ledger.create_delivery_order(OrderDraft(table_id=table.id, items=[line(menu["pizza"])]))

    def test_negative_fee_rejected(self, ledger, menu, address):
        draft = OrderDraft(order_type=OrderType.DELIVERY, items=[line(menu["pizza"])], delivery_address=address)

        with pytest.raises(ValidationError):
            ledger.create_delivery_order(draft, delivery_fee=Decimal("-1"))

    def test_delivery_status_flow(self, ledger, menu, address):
        order = ledger.create_delivery_order(OrderDraft(
            order_type=OrderType.DELIVERY, items=[line(menu["pizza"])], delivery_address=address,
        ))

        for status in (
            DeliveryStatus.CONFIRMED,
            DeliveryStatus.PREPARING,
            DeliveryStatus.OUT_FOR_DELIVERY,
            DeliveryStatus.DELIVERED,
        ):
            order = ledger.update_delivery_status(order.id, status)

        assert order.delivery_status == DeliveryStatus.DELIVERED
        assert order.status == OrderStatus.PENDING

    def test_delivery_skip_rejected(self, ledger, menu, address):
        order = ledger.create_delivery_order(OrderDraft(
            order_type=OrderType.DELIVERY, items=[line(menu["pizza"])], delivery_address=address,
        ))

        with pytest.raises(InvalidTransition):
            ledger.update_delivery_status(order.id, DeliveryStatus.OUT_FOR_DELIVERY)

    def test_cancelled_delivery_is_final(self, ledger, menu, address):
        order = ledger.create_delivery_order(OrderDraft(
            order_type=OrderType.DELIVERY, items=[line(menu["pizza"])], delivery_address=address,
        ))
        ledger.update_delivery_status(order.id, DeliveryStatus.CANCELLED)

        with pytest.raises(InvalidTransition):
            ledger.update_delivery_status(order.id, DeliveryStatus.CONFIRMED)

    def test_delivery_status_on_dine_in_order(self, ledger, dine_in_order):
        with pytest.raises(NotFound):
            ledger.update_delivery_status(dine_in_order.id, DeliveryStatus.CONFIRMED)

    def test_assign_delivery_person(self, ledger, menu, address):
        order = ledger.create_delivery_order(OrderDraft(
            order_type=OrderType.DELIVERY, items=[line(menu["pizza"])], delivery_address=address,
        ))

        updated = ledger.assign_delivery_person(order.id, DeliveryPerson(id="moto-1", name="Carlos", phone="(11) 98888-0000"))

        assert updated.delivery_person.name == "Carlos"
        assert updated.version == order.version + 1

    def test_list_and_active_deliveries(self, ledger, menu, address, clock):
        draft = OrderDraft(order_type=OrderType.DELIVERY, items=[line(menu["pizza"])], delivery_address=address)
        first = ledger.create_delivery_order(draft)
        clock.advance(1)
        second = ledger.create_delivery_order(draft)
        ledger.update_delivery_status(second.id, DeliveryStatus.CONFIRMED)

        assert [order.id for order in ledger.list_delivery_orders()] == [second.id, first.id]
        assert [order.id for order in ledger.active_deliveries()] == [second.id]
        assert [order.id for order in ledger.list_delivery_orders(delivery_status=DeliveryStatus.PENDING)] == [first.id]
        assert [order.id for order in ledger.list_delivery_orders(search=first.tracking_code.lower())] == [first.id]

    def test_delivery_event(self, ledger, event_bus, menu, address):
        received = []
        event_bus.subscribe("DeliveryStatusChanged", received.append)
        order = ledger.create_delivery_order(OrderDraft(
            order_type=OrderType.DELIVERY, items=[line(menu["pizza"])], delivery_address=address,
        ))

        ledger.update_delivery_status(order.id, DeliveryStatus.CONFIRMED)

        assert received[0].tracking_code == order.tracking_code
        assert received[0].status == "confirmed"
