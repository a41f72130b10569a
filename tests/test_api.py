"""
API tests through the FastAPI test client
"""

import csv
import io
from decimal import Decimal
from fastapi.testclient import TestClient

from restaurant_ledger.api.schemas import KitchenTicketRead
from restaurant_ledger.core.config import Settings
from restaurant_ledger.main import create_app
from restaurant_ledger.models import OrderStatus, PaymentMethod, TicketPriority
from restaurant_ledger.services.ledger import OrderDraft
from tests.conftest import advance_to, line

API = "/api/v1"


def order_payload(menu, table):
    return {
        "order_type": "dine-in",
        "table_id": str(table.id),
        "items": [
            {"menu_item_id": str(menu["burger"].id), "quantity": 2, "modifications": ["sem cebola"]},
            {"menu_item_id": str(menu["soda"].id), "quantity": 1},
        ],
    }


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestOrdersApi:
    """Test order endpoints"""

    def test_create_order(self, client, menu, table):
        response = client.post(f"{API}/orders/", json=order_payload(menu, table))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["subtotal"] == "76.80"
        assert data["total"] == "84.48"
        assert data["items"][0]["modifications"] == ["sem cebola"]

    def test_create_order_without_items(self, client, table):
        response = client.post(f"{API}/orders/", json={"table_id": str(table.id), "items": []})

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_get_unknown_order(self, client):
        response = client.get(f"{API}/orders/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_status_update(self, client, dine_in_order):
        response = client.patch(f"{API}/orders/{dine_in_order.id}/status", json={"status": "preparing"})

        assert response.status_code == 200
        assert response.json()["status"] == "preparing"
        assert response.json()["version"] == dine_in_order.version + 1

    def test_invalid_transition(self, client, dine_in_order):
        response = client.patch(f"{API}/orders/{dine_in_order.id}/status", json={"status": "served"})

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"
        assert "detail" in response.json()

    def test_list_orders_filtered(self, client, ledger, dine_in_order):
        advance_to(ledger, dine_in_order.id, OrderStatus.PREPARING)

        preparing = client.get(f"{API}/orders/", params={"status": "preparing"})
        pending = client.get(f"{API}/orders/", params={"status": "pending"})

        assert [order["id"] for order in preparing.json()] == [str(dine_in_order.id)]
        assert pending.json() == []

    def test_record_payment(self, client, ledger, dine_in_order, table):
        advance_to(ledger, dine_in_order.id, OrderStatus.PREPARING, OrderStatus.READY)

        response = client.post(
            f"{API}/orders/{dine_in_order.id}/payments",
            json={"method": "cash", "amount": "100.00"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "paid"
        assert client.get(f"{API}/tables/{table.id}").json()["status"] == "available"

    def test_pay_twice(self, client, ledger, dine_in_order):
        advance_to(ledger, dine_in_order.id, OrderStatus.PREPARING, OrderStatus.READY)
        payment = {"method": "pix", "amount": "84.48"}
        client.post(f"{API}/orders/{dine_in_order.id}/payments", json=payment)

        response = client.post(f"{API}/orders/{dine_in_order.id}/payments", json=payment)

        assert response.status_code == 409
        assert response.json()["error"] == "already_paid"

    def test_order_ticket(self, client, dine_in_order):
        response = client.get(f"{API}/orders/{dine_in_order.id}/ticket")

        assert response.status_code == 200
        assert response.json()["table_number"] == 5
        assert response.json()["priority"] == "low"


class TestPermissions:
    """Test role gating from the X-User-Role header"""

    def test_kitchen_cannot_create_orders(self, client, menu, table):
        response = client.post(
            f"{API}/orders/",
            json=order_payload(menu, table),
            headers={"X-User-Role": "kitchen"},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "permission_denied"

    def test_waiter_cannot_view_reports(self, client):
        response = client.get(f"{API}/reports/sales", headers={"X-User-Role": "waiter"})

        assert response.status_code == 403

    def test_unknown_role_has_no_permissions(self, client):
        response = client.get(f"{API}/orders/", headers={"X-User-Role": "guest"})

        assert response.status_code == 403

    def test_kitchen_updates_ticket_items(self, client, ledger, dine_in_order):
        ticket = ledger.get_ticket_for_order(dine_in_order.id)
        item = ticket.items[0]

        response = client.patch(
            f"{API}/kitchen/tickets/{ticket.id}/items/{item.id}/status",
            json={"status": "preparing"},
            headers={"X-User-Role": "kitchen"},
        )

        assert response.status_code == 200
        assert response.json()["items"][0]["status"] == "preparing"
        assert response.json()["started_at"] is not None


class TestKitchenApi:
    """Test kitchen display endpoints"""

    def test_list_tickets(self, client, dine_in_order):
        response = client.get(f"{API}/kitchen/tickets")

        assert response.status_code == 200
        assert [ticket["order_id"] for ticket in response.json()] == [str(dine_in_order.id)]

    def test_by_priority(self, client, clock, dine_in_order):
        clock.advance(25)

        response = client.get(f"{API}/kitchen/tickets/by-priority")

        assert [ticket["order_id"] for ticket in response.json()["high"]] == [str(dine_in_order.id)]

    def test_skip_rejected(self, client, ledger, dine_in_order):
        ticket = ledger.get_ticket_for_order(dine_in_order.id)

        response = client.patch(
            f"{API}/kitchen/tickets/{ticket.id}/items/{ticket.items[0].id}/status",
            json={"status": "ready"},
        )

        assert response.status_code == 409


class TestTablesApi:
    """Test table endpoints"""

    def test_create_table(self, client):
        response = client.post(f"{API}/tables/", json={"number": 9, "capacity": 6, "section": "Varanda"})

        assert response.status_code == 201
        assert response.json()["qr_code"].endswith("?table=9")
        assert response.json()["status"] == "available"

    def test_duplicate_table(self, client, table):
        response = client.post(f"{API}/tables/", json={"number": 5})

        assert response.status_code == 422

    def test_status_override(self, client, table):
        response = client.patch(f"{API}/tables/{table.id}/status", json={"status": "reserved"})

        assert response.json()["status"] == "reserved"

    def test_qr_code(self, client, table):
        response = client.get(f"{API}/tables/{table.id}/qr.svg")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert "<svg" in response.text


class TestCashierApi:
    """Test the cashier flow over HTTP"""

    def test_quote_and_checkout(self, client, ledger, dine_in_order):
        advance_to(ledger, dine_in_order.id, OrderStatus.PREPARING, OrderStatus.READY)

        quote = client.post(f"{API}/cashier/orders/{dine_in_order.id}/quote", json={"tip": "5.00", "split_count": 2})
        assert quote.json()["amount_due"] == "89.48"
        assert quote.json()["per_person"] == "44.74"

        response = client.post(
            f"{API}/cashier/orders/{dine_in_order.id}/checkout",
            json={"method": "credit", "tip": "5.00"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "paid"
        assert response.json()["payment"]["transaction_id"].startswith("SIM-")

    def test_payable_orders(self, client, ledger, dine_in_order):
        assert client.get(f"{API}/cashier/orders").json() == []

        advance_to(ledger, dine_in_order.id, OrderStatus.PREPARING, OrderStatus.READY)

        assert [order["id"] for order in client.get(f"{API}/cashier/orders").json()] == [str(dine_in_order.id)]

    def test_checkout_pending_order(self, client, dine_in_order):
        response = client.post(f"{API}/cashier/orders/{dine_in_order.id}/checkout", json={"method": "cash"})

        assert response.status_code == 409

    def test_printable_receipt(self, client, dine_in_order):
        response = client.get(f"{API}/cashier/orders/{dine_in_order.id}/receipt.txt")

        assert response.status_code == 200
        assert "TOTAL: BRL 84.48" in response.text

    def test_waiter_cannot_checkout(self, client, dine_in_order):
        response = client.get(f"{API}/cashier/orders", headers={"X-User-Role": "waiter"})

        assert response.status_code == 403


class TestDeliveryApi:
    """Test delivery endpoints"""

    def test_create_and_advance(self, client, menu, address):
        response = client.post(f"{API}/delivery/", json={
            "items": [{"menu_item_id": str(menu["pizza"].id), "quantity": 1}],
            "delivery_address": address.model_dump(mode="json"),
            "delivery_fee": "6.00",
        })

        assert response.status_code == 201
        delivery = response.json()
        assert delivery["order_type"] == "delivery"
        assert delivery["total"] == "55.50"
        assert delivery["tracking_code"].startswith("TRK")

        confirmed = client.patch(f"{API}/delivery/{delivery['id']}/status", json={"status": "confirmed"})
        assert confirmed.json()["delivery_status"] == "confirmed"
        assert [order["id"] for order in client.get(f"{API}/delivery/active").json()] == [delivery["id"]]

    def test_missing_address(self, client, menu):
        response = client.post(f"{API}/delivery/", json={
            "items": [{"menu_item_id": str(menu["pizza"].id), "quantity": 1}],
        })

        assert response.status_code == 422


class TestDigitalMenuApi:
    """Test the public QR menu"""

    def test_menu_for_table(self, client, menu, table):
        response = client.get(f"{API}/digital-menu/5", headers={"X-User-Role": "guest"})

        assert response.status_code == 200
        categories = [section["category"] for section in response.json()["sections"]]
        assert "Bebidas" in categories

    def test_guest_order(self, client, menu, table):
        response = client.post(f"{API}/digital-menu/5/orders", json={
            "items": [{"menu_item_id": str(menu["juice"].id), "quantity": 2}],
            "customer_name": "Ana",
        })

        assert response.status_code == 201
        assert response.json()["notes"] == "Customer: Ana"
        assert response.json()["table_id"] == str(table.id)

    def test_unknown_table(self, client, menu):
        response = client.get(f"{API}/digital-menu/77")

        assert response.status_code == 404


class TestCatalogApi:
    """Test menu and inventory endpoints"""

    def test_menu_categories(self, client, menu):
        response = client.get(f"{API}/menu-items/categories")

        assert response.json() == ["Hambúrgueres", "Pizzas", "Peixes", "Bebidas", "Saladas"]

    def test_waiter_cannot_edit_menu(self, client, menu):
        response = client.delete(f"{API}/menu-items/{menu['soda'].id}", headers={"X-User-Role": "waiter"})

        assert response.status_code == 403

    def test_inventory_alerts(self, client):
        client.post(f"{API}/inventory/", json={
            "name": "Tomate",
            "category": "Vegetais",
            "unit": "kg",
            "current_stock": "3.1",
            "minimum_stock": "5",
            "maximum_stock": "15",
            "unit_cost": "4.20",
        })
        client.post(f"{API}/inventory/", json={
            "name": "Manjericão",
            "category": "Vegetais",
            "unit": "maço",
            "current_stock": "0",
            "minimum_stock": "2",
            "maximum_stock": "10",
            "unit_cost": "3.00",
        })

        alerts = client.get(f"{API}/inventory/alerts").json()

        assert {item["name"] for item in alerts["low_stock"]} == {"Tomate", "Manjericão"}
        assert [item["name"] for item in alerts["out_of_stock"]] == ["Manjericão"]


class TestReportsApi:
    """Test reports and exports"""

    def test_sales_report(self, client, ledger, dine_in_order):
        advance_to(ledger, dine_in_order.id, OrderStatus.PREPARING, OrderStatus.READY)
        ledger.record_payment(dine_in_order.id, PaymentMethod.PIX, Decimal("84.48"))

        response = client.get(f"{API}/reports/sales", params={"range": "today"})

        assert response.status_code == 200
        assert response.json()["total_orders"] == 1
        assert response.json()["total_sales"] == "84.48"

    def test_unknown_range(self, client):
        response = client.get(f"{API}/reports/sales", params={"range": "1year"})

        assert response.status_code == 422

    def test_json_export_is_attachment(self, client):
        response = client.get(f"{API}/reports/sales/export", params={"range": "30days"})

        assert response.headers["content-disposition"] == 'attachment; filename="relatorio-30days-2024-05-10.json"'

    def test_orders_csv(self, client, dine_in_order):
        response = client.get(f"{API}/reports/orders.csv")

        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "ID"
        assert rows[1][0] == str(dine_in_order.id)
        assert rows[1][2] == "5"


def test_status_display_catalog(client):
    response = client.get(f"{API}/statuses/")

    data = response.json()
    assert [status["value"] for status in data["order"]] == [
        "pending", "preparing", "ready", "served", "paid", "cancelled",
    ]
    assert data["delivery"][3] == {"value": "out_for_delivery", "label": "Saiu para Entrega", "tone": "secondary"}
    assert data["kitchen_item"][0]["label"] == "Pendente"


def test_ticket_read_model_keeps_ticket_behaviour(ledger, clock, dine_in_order):
    ticket = ledger.get_ticket_for_order(dine_in_order.id)
    clock.advance(25)

    read = KitchenTicketRead.from_ticket(ticket, clock(), ledger.priority_thresholds)

    assert read.age_minutes == 25.0
    assert read.priority == TicketPriority.HIGH
    assert read.elapsed_minutes(clock()) == 25.0
    assert read.priority_at(clock()) == TicketPriority.HIGH


class TestAppSettings:
    """Test settings handed to create_app"""

    def test_default_role_from_app_settings(self, ledger, menu, table):
        app = create_app(app_settings=Settings(DEFAULT_USER_ROLE="kitchen"), ledger=ledger)

        with TestClient(app) as client:
            denied = client.post(f"{API}/orders/", json=order_payload(menu, table))
            allowed = client.get(f"{API}/kitchen/tickets")

        assert denied.status_code == 403
        assert allowed.status_code == 200

    def test_payment_delay_from_app_settings(self, ledger):
        app = create_app(app_settings=Settings(PAYMENT_SIMULATED_DELAY=0.25), ledger=ledger)

        assert app.state.cashier.gateway.delay == 0.25

    def test_quote_without_overrides_keeps_order_total(self, client, ledger, menu, table):
        order = ledger.create_order(OrderDraft(
            table_id=table.id,
            items=[line(menu["burger"], 2), line(menu["soda"])],
            discount=Decimal("10"),
            tip=Decimal("5.00"),
        ))
        advance_to(ledger, order.id, OrderStatus.PREPARING, OrderStatus.READY)

        response = client.post(f"{API}/cashier/orders/{order.id}/quote", json={})

        assert response.json()["amount_due"] == "81.03"
