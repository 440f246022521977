"""Integration tests for the order endpoints: placement, lookup and admin workflow."""

import pytest
from fastapi.testclient import TestClient
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain
from storefront.api import create_app
from storefront.domain import storefront
from storefront.order.order import Order
from storefront.wiring import build_services

CUSTOMER = {"X-User-Id": "user-1"}
OTHER_CUSTOMER = {"X-User-Id": "user-2"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


@pytest.fixture()
def services(catalogue):
    return build_services(storefront, catalogue=catalogue)


@pytest.fixture()
def client(services):
    return TestClient(create_app(services=services))


@pytest.fixture()
def order_payload(address):
    return {
        "items": [{"product_id": "saree-cotton", "size": "M", "quantity": 1}],
        "shipping_address": address,
        "payment_method": "upi",
    }


@pytest.fixture()
def placed_order(client, order_payload):
    response = client.post("/orders", json=order_payload, headers=CUSTOMER)
    assert response.status_code == 201
    return response.json()


class TestPlaceOrder:
    def test_place_order(self, client, order_payload, catalogue):
        response = client.post("/orders", json=order_payload, headers=CUSTOMER)
        assert response.status_code == 201
        data = response.json()
        assert data["order_status"] == "pending"
        assert data["payment_status"] == "pending"
        assert data["user_id"] == "user-1"
        assert data["order_number"].startswith("HF")
        assert data["pricing"]["total_minor"] == 186782
        assert data["total_items"] == 1
        assert [entry["status"] for entry in data["status_history"]] == ["pending"]
        assert catalogue.get_product("saree-cotton").stock_for("M") == 4

        stored = current_domain.repository_for(Order).get(data["order_id"])
        assert stored.order_number == data["order_number"]

    def test_client_price_is_ignored(self, client, order_payload):
        order_payload["items"][0]["unit_price_minor"] = 100
        data = client.post("/orders", json=order_payload, headers=CUSTOMER).json()
        assert data["lines"][0]["unit_price_minor"] == 149900

    def test_coupon(self, client, order_payload):
        order_payload["coupon_code"] = "festive15"
        data = client.post("/orders", json=order_payload, headers=CUSTOMER).json()
        assert data["coupon_code"] == "FESTIVE15"
        assert data["pricing"]["discount_minor"] == 22485

    def test_clears_session_cart(self, client, order_payload):
        client.post("/carts/sess-9/items", json={"product_id": "saree-cotton"})
        order_payload["session_key"] = "sess-9"
        client.post("/orders", json=order_payload, headers=CUSTOMER)
        assert client.get("/carts/sess-9").json()["items"] == []

    def test_requires_authentication(self, client, order_payload):
        response = client.post("/orders", json=order_payload)
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required", "kind": "http_error"}

    def test_validation_errors(self, client, order_payload):
        order_payload["items"] = [{"product_id": "saree-cotton", "size": "M", "quantity": 0}]
        order_payload["shipping_address"].pop("city")
        response = client.post("/orders", json=order_payload, headers=CUSTOMER)
        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "validation_failed"
        assert "items.0" in body["details"]

    def test_missing_address(self, client, order_payload):
        del order_payload["shipping_address"]
        response = client.post("/orders", json=order_payload, headers=CUSTOMER)
        assert response.status_code == 400
        assert "shipping_address" in response.json()["details"]

    def test_out_of_stock(self, client, order_payload, catalogue):
        order_payload["items"] = [{"product_id": "saree-silk", "size": "XL", "quantity": 1}]
        response = client.post("/orders", json=order_payload, headers=CUSTOMER)
        assert response.status_code == 409
        assert response.json()["kind"] == "insufficient_stock"
        assert client.get("/orders/my", headers=CUSTOMER).json()["pagination"]["total_orders"] == 0

    def test_unknown_product(self, client, order_payload):
        order_payload["items"][0]["product_id"] = "saree-missing"
        response = client.post("/orders", json=order_payload, headers=CUSTOMER)
        assert response.status_code == 404

    def test_storage_outage_hides_details(self, client, order_payload, catalogue):
        catalogue.configure(unavailable=True)
        response = client.post("/orders", json=order_payload, headers=CUSTOMER)
        assert response.status_code == 503
        assert response.json() == {
            "error": "We could not complete your request right now. Please try again.",
            "kind": "persistence_failure",
        }


class TestListMyOrders:
    def test_paginates_own_orders(self, client, order_payload):
        for _ in range(3):
            client.post("/orders", json=order_payload, headers=CUSTOMER)
        client.post("/orders", json=order_payload, headers=OTHER_CUSTOMER)

        response = client.get("/orders/my?page=1&limit=2", headers=CUSTOMER)
        assert response.status_code == 200
        data = response.json()
        assert len(data["orders"]) == 2
        assert data["pagination"] == {"current_page": 1, "total_pages": 2, "total_orders": 3}
        assert all(order["user_id"] == "user-1" for order in data["orders"])

    def test_empty(self, client):
        data = client.get("/orders/my", headers=CUSTOMER).json()
        assert data["orders"] == []
        assert data["pagination"]["total_orders"] == 0

    def test_requires_authentication(self, client):
        assert client.get("/orders/my").status_code == 401


class TestGetOrder:
    def test_owner_can_view(self, client, placed_order):
        response = client.get(f"/orders/{placed_order['order_id']}", headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["order_number"] == placed_order["order_number"]

    def test_admin_can_view(self, client, placed_order):
        assert client.get(f"/orders/{placed_order['order_id']}", headers=ADMIN).status_code == 200

    def test_other_customer_cannot_view(self, client, placed_order):
        response = client.get(f"/orders/{placed_order['order_id']}", headers=OTHER_CUSTOMER)
        assert response.status_code == 403

    def test_unknown_order(self, client):
        response = client.get("/orders/missing", headers=CUSTOMER)
        assert response.status_code == 404
        assert response.json()["kind"] == "order_not_found"


class TestAdminWorkflow:
    def test_advance_status(self, client, placed_order):
        response = client.patch(
            f"/orders/{placed_order['order_id']}/status",
            json={"status": "shipped", "tracking_number": "TRK42", "courier_service": "Delhivery"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["order_status"] == "shipped"
        assert data["tracking_number"] == "TRK42"
        assert data["status_history"][-1]["note"] == "Order shipped by admin"

    def test_deliver(self, client, placed_order):
        data = client.patch(
            f"/orders/{placed_order['order_id']}/status", json={"status": "delivered"}, headers=ADMIN
        ).json()
        assert data["is_delivered"] is True
        assert data["delivered_at"] is not None
        assert [entry["status"] for entry in data["status_history"]] == ["pending", "delivered"]

    def test_invalid_status(self, client, placed_order):
        response = client.patch(
            f"/orders/{placed_order['order_id']}/status", json={"status": "lost"}, headers=ADMIN
        )
        assert response.status_code == 400
        assert response.json()["kind"] == "validation_failed"

    def test_customer_cannot_advance(self, client, placed_order):
        response = client.patch(
            f"/orders/{placed_order['order_id']}/status", json={"status": "shipped"}, headers=CUSTOMER
        )
        assert response.status_code == 403

    def test_unknown_order(self, client):
        response = client.patch("/orders/missing/status", json={"status": "shipped"}, headers=ADMIN)
        assert response.status_code == 404

    def test_write_conflict_is_retryable(self, client, placed_order, monkeypatch):
        def process(command, asynchronous=True):
            raise ExpectedVersionError("Wrong expected version: 0")

        monkeypatch.setattr(storefront, "process", process)

        response = client.patch(
            f"/orders/{placed_order['order_id']}/status", json={"status": "shipped"}, headers=ADMIN
        )
        assert response.status_code == 503
        assert response.json() == {
            "error": "We could not complete your request right now. Please try again.",
            "kind": "persistence_failure",
        }

    def test_refund(self, client, placed_order):
        response = client.put(
            f"/orders/{placed_order['order_id']}/refund",
            json={"amount_minor": 50000, "reason": "Damaged"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["order_status"] == "refunded"
        assert data["payment_status"] == "refunded"
        assert data["refund_amount_minor"] == 50000

    def test_refund_over_total(self, client, placed_order):
        response = client.put(
            f"/orders/{placed_order['order_id']}/refund",
            json={"amount_minor": placed_order["pricing"]["total_minor"] + 1},
            headers=ADMIN,
        )
        assert response.status_code == 400
