"""Integration tests for the Orders API endpoints via TestClient."""

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from orders.api import conflict_error_handler, inventory_router, order_router, service_order_router
from orders.carrier import get_carrier
from orders.carrier.hmac_adapter import HmacCarrier
from orders.exceptions import ConflictError
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(service_order_router)
    app.include_router(inventory_router)
    register_exception_handlers(app)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    return TestClient(app)


def _register_stock(client, product_id="prod-api-1", quantity=10):
    response = client.post("/inventory/products", json={"product_id": product_id, "stock_quantity": quantity})
    assert response.status_code == 201


def _create_order(client, **overrides):
    _register_stock(client)
    payload = {
        "buyer_id": "buyer-api",
        "seller_id": "seller-api",
        "order_type": "product",
        "items": [{"product_id": "prod-api-1", "quantity": 2, "unit_price": 100.0}],
    }
    payload.update(overrides)
    response = client.post("/orders", json=payload)
    assert response.status_code == 201
    return response.json()


class TestCreateOrderAPI:
    def test_create_returns_201_with_order(self, client):
        order = _create_order(client)
        assert order["status"] == "pending"
        assert order["subtotal"] == 200.0
        assert order["total_amount"] == 286.0
        assert order["order_number"].startswith("VKR")

    def test_missing_items_rejected(self, client):
        response = client.post(
            "/orders",
            json={"buyer_id": "b", "seller_id": "s", "order_type": "product", "items": []},
        )
        assert response.status_code == 422

    def test_insufficient_stock_returns_400(self, client):
        _register_stock(client, "prod-api-2", 1)
        response = client.post(
            "/orders",
            json={
                "buyer_id": "b",
                "seller_id": "s",
                "order_type": "product",
                "items": [{"product_id": "prod-api-2", "quantity": 5, "unit_price": 10.0}],
            },
        )
        assert response.status_code == 400

    def test_unknown_product_returns_404(self, client):
        response = client.post(
            "/orders",
            json={
                "buyer_id": "b",
                "seller_id": "s",
                "order_type": "product",
                "items": [{"product_id": "prod-nope", "quantity": 1, "unit_price": 10.0}],
            },
        )
        assert response.status_code == 404


class TestReadOrderAPI:
    def test_get_by_id(self, client):
        order = _create_order(client)
        response = client.get(f"/orders/{order['id']}")
        assert response.status_code == 200
        assert response.json()["order_number"] == order["order_number"]

    def test_get_by_number(self, client):
        order = _create_order(client)
        response = client.get(f"/orders/number/{order['order_number']}")
        assert response.status_code == 200
        assert response.json()["id"] == order["id"]

    def test_get_missing_returns_404(self, client):
        assert client.get("/orders/does-not-exist").status_code == 404

    def test_list_with_envelope(self, client):
        _create_order(client)
        response = client.get("/orders", params={"buyer_id": "buyer-api", "page": 1, "limit": 5})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["total_pages"] == 1
        assert len(body["orders"]) == 1

    def test_analytics(self, client):
        _create_order(client)
        response = client.get("/orders/analytics", params={"seller_id": "seller-api"})
        assert response.status_code == 200
        assert response.json()["total_orders"] == 1


class TestTransitionsAPI:
    def test_update_status(self, client):
        order = _create_order(client)
        response = client.put(f"/orders/{order['id']}/status", json={"status": "processing", "notes": "Packed"})
        assert response.status_code == 200
        assert response.json()["status"] == "processing"

    def test_invalid_status_returns_400(self, client):
        order = _create_order(client)
        response = client.put(f"/orders/{order['id']}/status", json={"status": "lost"})
        assert response.status_code == 400

    def test_payment_callback_confirms_order(self, client):
        order = _create_order(client)
        response = client.put(f"/orders/{order['id']}/payment-status", json={"payment_status": "paid"})
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

    def test_cancel(self, client):
        order = _create_order(client)
        response = client.put(f"/orders/{order['id']}/cancel", json={"reason": "Changed mind"})
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_cancel_shipped_returns_409(self, client):
        order = _create_order(client)
        client.put(f"/orders/{order['id']}/status", json={"status": "shipped"})
        response = client.put(f"/orders/{order['id']}/cancel", json={"reason": "Too late"})
        assert response.status_code == 409
        assert response.json() == {"error": "Order cannot be cancelled in current status"}

    def test_stale_revision_returns_409(self, client):
        order = _create_order(client)
        client.put(f"/orders/{order['id']}/status", json={"status": "confirmed"})
        response = client.put(
            f"/orders/{order['id']}/status",
            json={"status": "processing", "expected_revision": order["revision"]},
        )
        assert response.status_code == 409


class TestTrackingAPI:
    def test_tracking_webhook_cascades(self, client):
        order = _create_order(client)
        response = client.post(
            f"/orders/{order['id']}/tracking",
            json={"status": "shipped", "provider": "BlueDart", "provider_tracking_id": "BD1"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["order"]["status"] == "shipped"
        assert body["cascade"] == {"attempted": True, "target_status": "shipped", "succeeded": True, "error": None}

    def test_tracking_lookup(self, client):
        order = _create_order(client)
        client.post(f"/orders/{order['id']}/tracking", json={"status": "in_transit", "location": "Pune"})
        response = client.get(f"/orders/{order['id']}/tracking")
        assert response.status_code == 200
        assert response.json()["tracking_history"][0]["location"] == "Pune"

    def test_rejected_signature_returns_401(self, client):
        get_carrier().configure(accept_signatures=False)
        order = _create_order(client)
        response = client.post(f"/orders/{order['id']}/tracking", json={"status": "shipped"})
        assert response.status_code == 401

    def test_hmac_signature(self, client, monkeypatch):
        monkeypatch.setenv("CARRIER_ADAPTER", "hmac")
        monkeypatch.setenv("CARRIER_WEBHOOK_SECRET", "s3cret")
        from orders.carrier import reset_carrier

        reset_carrier()
        order = _create_order(client)
        raw = b'{"status":"in_transit","provider":"bluedart"}'
        signature = HmacCarrier("s3cret").sign(raw.decode("utf-8"))
        headers = {"Content-Type": "application/json"}
        url = f"/orders/{order['id']}/tracking"

        assert client.post(url, content=raw, headers=headers).status_code == 401
        response = client.post(url, content=raw, headers={**headers, "X-Carrier-Signature": signature})
        assert response.status_code == 200
        assert response.json()["order"]["shipping_provider"] == "bluedart"

    def test_hmac_signature_over_reserialized_body_rejected(self, client, monkeypatch):
        monkeypatch.setenv("CARRIER_ADAPTER", "hmac")
        monkeypatch.setenv("CARRIER_WEBHOOK_SECRET", "s3cret")
        from orders.carrier import reset_carrier

        reset_carrier()
        order = _create_order(client)
        raw = b'{"status":"in_transit","provider":"bluedart"}'
        signature = HmacCarrier("s3cret").sign(json.dumps(json.loads(raw), indent=2))

        response = client.post(
            f"/orders/{order['id']}/tracking",
            content=raw,
            headers={"Content-Type": "application/json", "X-Carrier-Signature": signature},
        )
        assert response.status_code == 401


class TestServiceOrderAndStockAPI:
    def test_service_order_flow(self, client):
        response = client.post(
            "/orders",
            json={
                "buyer_id": "buyer-api",
                "seller_id": "seller-api",
                "order_type": "service",
                "items": [{"service_id": "svc-api", "quantity": 1, "unit_price": 800.0}],
            },
        )
        order = response.json()
        service_orders = client.get(f"/orders/{order['id']}/service-orders").json()
        assert len(service_orders) == 1

        response = client.put(
            f"/service-orders/{service_orders[0]['id']}/status",
            json={"status": "confirmed", "updated_by": "provider-1"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

    def test_adjust_stock(self, client):
        _register_stock(client, "prod-api-3", 4)
        response = client.put("/inventory/products/prod-api-3/adjust", json={"delta": 3})
        assert response.status_code == 200
        assert response.json()["stock_quantity"] == 7

    def test_duplicate_registration_returns_400(self, client):
        _register_stock(client, "prod-api-4", 4)
        response = client.post("/inventory/products", json={"product_id": "prod-api-4", "stock_quantity": 1})
        assert response.status_code == 400
