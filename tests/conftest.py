"""
Shared fixtures for the ledger tests
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["PAYMENT_SIMULATED_DELAY"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from fastapi.testclient import TestClient

from restaurant_ledger.core.config import Settings
from restaurant_ledger.core.events import EventBus
from restaurant_ledger.main import create_app
from restaurant_ledger.models import Address, Customer, MenuItem, Table
from restaurant_ledger.services.cashier import SimulatedPaymentGateway
from restaurant_ledger.services.catalog import Catalog
from restaurant_ledger.services.ledger import OrderDraft, OrderLedger, OrderLineDraft


class FakeClock:
    """Settable clock injected into the catalog and ledger"""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, minutes: float = 0, **kwargs) -> datetime:
        self.current += timedelta(minutes=minutes, **kwargs)
        return self.current


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 10, 12, 0, 0))


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def catalog(clock):
    return Catalog(clock=clock)


@pytest.fixture
def ledger(catalog, settings, event_bus, clock):
    return OrderLedger(catalog, settings=settings, event_bus=event_bus, clock=clock)


@pytest.fixture
def menu(catalog):
    """Menu items keyed by a short name"""
    items = {
        "burger": MenuItem(name="Hambúrguer Artesanal", category="Hambúrgueres", price=Decimal("35.90"), preparation_time=15, allergens=["glúten", "lactose"]),
        "pizza": MenuItem(name="Pizza Margherita", category="Pizzas", price=Decimal("45.00"), preparation_time=20),
        "salmon": MenuItem(name="Salmão Grelhado", category="Peixes", price=Decimal("65.90"), preparation_time=25, allergens=["peixe"]),
        "soda": MenuItem(name="Coca-Cola", category="Bebidas", price=Decimal("5.00"), preparation_time=2),
        "juice": MenuItem(name="Suco de Laranja", category="Bebidas", price=Decimal("8.00"), preparation_time=3),
        "salad": MenuItem(name="Salada Caesar", description="Alface, croutons, parmesão", category="Saladas", price=Decimal("28.90"), preparation_time=10),
    }
    return {key: catalog.add_menu_item(item) for key, item in items.items()}


@pytest.fixture
def table(ledger):
    return ledger.add_table(Table(number=5, capacity=4, section="Varanda"))


@pytest.fixture
def customer(catalog):
    return catalog.add_customer(Customer(
        name="João Silva",
        phone="(11) 99999-9999",
        addresses=[Address(
            street="Rua das Flores",
            number="123",
            neighborhood="Centro",
            city="São Paulo",
            state="SP",
            zip_code="01234-567",
            is_default=True,
        )],
    ))


@pytest.fixture
def address():
    return Address(
        street="Av. Paulista",
        number="1000",
        neighborhood="Bela Vista",
        city="São Paulo",
        state="SP",
        zip_code="01310-100",
    )


def line(item: MenuItem, quantity: int = 1, **kwargs) -> OrderLineDraft:
    return OrderLineDraft(menu_item_id=item.id, quantity=quantity, **kwargs)


@pytest.fixture
def dine_in_order(ledger, menu, table):
    """2x burger + 1x soda at table 5: subtotal 76.80, tax 7.68, total 84.48"""
    return ledger.create_order(OrderDraft(
        table_id=table.id,
        items=[line(menu["burger"], 2), line(menu["soda"])],
    ))


def advance_to(ledger: OrderLedger, order_id, *statuses):
    order = None
    for status in statuses:
        order = ledger.update_order_status(order_id, status)
    return order


@pytest.fixture
def app(ledger):
    return create_app(ledger=ledger, gateway=SimulatedPaymentGateway(delay=0))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
