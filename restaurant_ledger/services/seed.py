"""
Demo data loaded at startup when SEED_DEMO_DATA is enabled
"""

from datetime import date, timedelta
from decimal import Decimal
import structlog

from restaurant_ledger.models.customer import Address, Customer
from restaurant_ledger.models.inventory_item import InventoryItem
from restaurant_ledger.models.menu_item import MenuItem
from restaurant_ledger.models.table import Table
from restaurant_ledger.services.digital_menu import menu_url
from restaurant_ledger.services.ledger import OrderLedger

logger = structlog.get_logger(__name__)

TABLE_CAPACITIES = [2, 4, 6, 8]


def demo_menu_items() -> list[MenuItem]:
    return [
        MenuItem(
            name="Hambúrguer Artesanal",
            description="Hambúrguer 180g, queijo, alface, tomate, bacon",
            price=Decimal("35.90"),
            category="Hambúrgueres",
            preparation_time=15,
            ingredients=["carne", "queijo", "alface", "tomate", "bacon"],
            allergens=["glúten", "lactose"],
        ),
        MenuItem(
            name="Pizza Margherita",
            description="Molho de tomate, mussarela, manjericão",
            price=Decimal("45.00"),
            category="Pizzas",
            preparation_time=20,
            ingredients=["massa", "molho de tomate", "mussarela", "manjericão"],
            allergens=["glúten", "lactose"],
        ),
        MenuItem(
            name="Salmão Grelhado",
            description="Salmão grelhado com legumes e molho de ervas",
            price=Decimal("65.90"),
            category="Peixes",
            preparation_time=25,
            ingredients=["salmão", "brócolis", "cenoura", "molho de ervas"],
            allergens=["peixe"],
        ),
        MenuItem(
            name="Coca-Cola",
            description="Refrigerante 350ml",
            price=Decimal("5.00"),
            category="Bebidas",
            preparation_time=2,
            ingredients=["refrigerante"],
        ),
        MenuItem(
            name="Salada Caesar",
            description="Alface, croutons, parmesão, molho caesar",
            price=Decimal("28.90"),
            category="Saladas",
            preparation_time=10,
            ingredients=["alface", "croutons", "parmesão", "molho caesar"],
            allergens=["glúten", "lactose"],
        ),
    ]


def demo_inventory_items(today: date) -> list[InventoryItem]:
    return [
        InventoryItem(
            name="Carne Bovina",
            category="Carnes",
            unit="kg",
            current_stock=Decimal("15.5"),
            minimum_stock=Decimal("10"),
            maximum_stock=Decimal("50"),
            unit_cost=Decimal("25.90"),
            supplier="Frigorífico São Paulo",
            expiration_date=today + timedelta(days=7),
        ),
        InventoryItem(
            name="Queijo Mussarela",
            category="Laticínios",
            unit="kg",
            current_stock=Decimal("8.2"),
            minimum_stock=Decimal("5"),
            maximum_stock=Decimal("20"),
            unit_cost=Decimal("18.50"),
            supplier="Laticínios Bela Vista",
            expiration_date=today + timedelta(days=15),
        ),
        InventoryItem(
            name="Tomate",
            category="Vegetais",
            unit="kg",
            current_stock=Decimal("3.1"),
            minimum_stock=Decimal("5"),
            maximum_stock=Decimal("15"),
            unit_cost=Decimal("4.20"),
            supplier="Hortifruti Central",
            expiration_date=today + timedelta(days=3),
        ),
    ]


def demo_customers() -> list[Customer]:
    return [
        Customer(
            name="João Silva",
            phone="(11) 99999-9999",
            email="joao@email.com",
            addresses=[
                Address(
                    street="Rua das Flores",
                    number="123",
                    neighborhood="Centro",
                    city="São Paulo",
                    state="SP",
                    zip_code="01234-567",
                    is_default=True,
                )
            ],
            loyalty_points=150,
        )
    ]


def seed_demo_data(ledger: OrderLedger) -> None:
    """Load tables, menu, inventory and a customer into an empty ledger"""
    if ledger.list_tables() or ledger.catalog.list_menu_items():
        logger.info("seed_skipped", reason="ledger already has data")
        return

    for index in range(12):
        number = index + 1
        ledger.add_table(Table(
            number=number,
            capacity=TABLE_CAPACITIES[index % len(TABLE_CAPACITIES)],
            section="Salão Principal" if index < 6 else "Varanda",
            qr_code=menu_url(number, ledger.settings.PUBLIC_MENU_BASE_URL),
        ))

    for item in demo_menu_items():
        ledger.catalog.add_menu_item(item)

    for item in demo_inventory_items(ledger.now().date()):
        ledger.catalog.add_inventory_item(item)

    for customer in demo_customers():
        ledger.catalog.add_customer(customer)

    logger.info(
        "demo_data_seeded",
        tables=len(ledger.list_tables()),
        menu_items=len(ledger.catalog.list_menu_items()),
        inventory_items=len(ledger.catalog.list_inventory_items()),
        customers=len(ledger.catalog.list_customers()),
    )
