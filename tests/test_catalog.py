"""
Unit tests for the catalog: menu items, inventory and customers
"""

import pytest
import uuid
from datetime import date
from decimal import Decimal

from restaurant_ledger.core.exceptions import NotFound, ValidationError
from restaurant_ledger.models import Customer, InventoryItem, MenuItem, StockLevel


def inventory_item(**overrides):
    values = dict(
        name="Tomate",
        category="Vegetais",
        unit="kg",
        current_stock=Decimal("3.1"),
        minimum_stock=Decimal("5"),
        maximum_stock=Decimal("15"),
        unit_cost=Decimal("4.20"),
        expiration_date=date(2024, 5, 20),
    )
    values.update(overrides)
    return InventoryItem(**values)


class TestMenuItems:
    """Test menu item management"""

    def test_add_and_get(self, catalog):
        item = catalog.add_menu_item(MenuItem(name="Pudim", category="Sobremesas", price=Decimal("12.00")))

        assert catalog.get_menu_item(item.id).name == "Pudim"

    def test_allergens_deduplicated(self, catalog):
        item = catalog.add_menu_item(MenuItem(
            name="Lasanha", category="Massas", price=Decimal("39.00"),
            allergens=["glúten", "lactose", "glúten"],
        ))

        assert item.allergens == ["glúten", "lactose"]
        assert item.allergen_set() == {"glúten", "lactose"}

    def test_filter_by_category_and_availability(self, catalog, menu):
        catalog.update_menu_item(menu["pizza"].id, menu["pizza"].model_copy(update={"is_available": False}))

        drinks = catalog.list_menu_items(category="bebidas")
        available = catalog.list_menu_items(available_only=True)

        assert {item.name for item in drinks} == {"Coca-Cola", "Suco de Laranja"}
        assert "Pizza Margherita" not in {item.name for item in available}

    def test_update_keeps_id(self, catalog, menu):
        burger = menu["burger"]

        updated = catalog.update_menu_item(burger.id, MenuItem(name="Burger Duplo", category="Hambúrgueres", price=Decimal("42.00")))

        assert updated.id == burger.id
        assert catalog.get_menu_item(burger.id).price == Decimal("42.00")

    def test_delete(self, catalog, menu):
        catalog.delete_menu_item(menu["soda"].id)

        with pytest.raises(NotFound):
            catalog.get_menu_item(menu["soda"].id)
        with pytest.raises(NotFound):
            catalog.delete_menu_item(menu["soda"].id)

    def test_unknown_item_update(self, catalog):
        with pytest.raises(NotFound):
            catalog.update_menu_item(uuid.uuid4(), MenuItem(name="X", category="Y", price=Decimal("1.00")))

    def test_categories_in_catalog_order(self, catalog, menu):
        assert catalog.menu_categories() == ["Hambúrgueres", "Pizzas", "Peixes", "Bebidas", "Saladas"]

    def test_returned_items_are_copies(self, catalog, menu):
        item = catalog.get_menu_item(menu["burger"].id)
        item.price = Decimal("0.01")

        assert catalog.get_menu_item(menu["burger"].id).price == Decimal("35.90")


class TestInventory:
    """Test inventory and stock levels"""

    @pytest.mark.parametrize("stock, level", [
        ("0", StockLevel.OUT),
        ("3.1", StockLevel.LOW),
        ("5", StockLevel.LOW),
        ("8", StockLevel.NORMAL),
        ("15", StockLevel.HIGH),
    ])
    def test_stock_level(self, stock, level):
        assert inventory_item(current_stock=Decimal(stock)).stock_level == level

    def test_stock_value(self):
        assert inventory_item().stock_value() == Decimal("13.020")

    def test_low_and_out_of_stock(self, catalog):
        tomato = catalog.add_inventory_item(inventory_item())
        catalog.add_inventory_item(inventory_item(name="Carne Bovina", category="Carnes", current_stock=Decimal("15.5"), minimum_stock=Decimal("10"), maximum_stock=Decimal("50")))
        empty = catalog.add_inventory_item(inventory_item(name="Manjericão", current_stock=Decimal("0")))

        assert {item.id for item in catalog.low_stock_items()} == {tomato.id, empty.id}
        assert [item.id for item in catalog.out_of_stock_items()] == [empty.id]

    def test_update_refreshes_last_updated(self, catalog, clock):
        item = catalog.add_inventory_item(inventory_item())
        clock.advance(30)

        updated = catalog.update_inventory_item(item.id, item.model_copy(update={"current_stock": Decimal("12")}))

        assert updated.last_updated == clock()
        assert updated.stock_level == StockLevel.NORMAL

    def test_minimum_above_maximum_rejected(self, catalog):
        with pytest.raises(ValidationError):
            catalog.add_inventory_item(inventory_item(minimum_stock=Decimal("20"), maximum_stock=Decimal("10")))

    def test_search_and_category(self, catalog):
        catalog.add_inventory_item(inventory_item())
        catalog.add_inventory_item(inventory_item(name="Queijo Mussarela", category="Laticínios"))

        assert [item.name for item in catalog.list_inventory_items(search="queijo")] == ["Queijo Mussarela"]
        assert [item.name for item in catalog.list_inventory_items(category="Vegetais")] == ["Tomate"]
        assert catalog.inventory_categories() == ["Laticínios", "Vegetais"]

    def test_delete_unknown(self, catalog):
        with pytest.raises(NotFound):
            catalog.delete_inventory_item(uuid.uuid4())


class TestCustomers:
    """Test customer records"""

    def test_search_by_name_or_phone(self, catalog, customer):
        catalog.add_customer(Customer(name="Maria Souza", phone="(21) 98888-7777"))

        assert [c.id for c in catalog.list_customers(search="joão")] == [customer.id]
        assert [c.name for c in catalog.list_customers(search="98888")] == ["Maria Souza"]

    def test_default_address(self, customer):
        assert customer.default_address().city == "São Paulo"
        assert "Rua das Flores, 123" in customer.default_address().one_line()

    def test_record_order_unknown_customer(self, catalog):
        with pytest.raises(NotFound):
            catalog.record_customer_order(uuid.uuid4(), uuid.uuid4())
