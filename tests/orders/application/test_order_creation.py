"""Application tests for order creation through the lifecycle."""

import re

import pytest
from orders.inventory.stock import ProductStock
from orders.order.order import Order
from orders.service_order.service_order import ServiceOrder
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _items():
    return [
        {"product_id": "prod-a", "quantity": 2, "unit_price": 100.0},
        {"product_id": "prod-b", "quantity": 1, "unit_price": 50.0},
    ]


def _stock_of(product_id):
    return current_domain.repository_for(ProductStock).get(product_id).stock_quantity


def _order_count():
    return current_domain.repository_for(Order)._dao.query.all().total


class TestCreateOrder:
    def test_returns_hydrated_order(self, lifecycle, stocked_products):
        order = lifecycle.create_order("buyer-001", "seller-001", "product", _items())
        assert order["status"] == "pending"
        assert order["payment_status"] == "pending"
        assert order["total_amount"] == 345.0
        assert len(order["items"]) == 2
        assert [row["status"] for row in order["status_history"]] == ["pending"]
        assert [row["action"] for row in order["audit_trail"]] == ["ORDER_CREATED"]

    def test_order_number_format(self, lifecycle, stocked_products):
        order = lifecycle.create_order("buyer-001", "seller-001", "product", _items())
        assert re.fullmatch(r"VKR\d{6}\d{4}", order["order_number"])

    def test_order_persisted(self, lifecycle, stocked_products):
        order = lifecycle.create_order("buyer-001", "seller-001", "product", _items())
        stored = current_domain.repository_for(Order).get(order["id"])
        assert stored.order_number == order["order_number"]
        assert len(stored.items) == 2

    def test_stock_drawn_for_product_items(self, lifecycle, stocked_products):
        lifecycle.create_order("buyer-001", "seller-001", "product", _items())
        assert _stock_of("prod-a") == 8
        assert _stock_of("prod-b") == 4

    def test_repeated_product_lines_drawn_together(self, lifecycle, stocked_products):
        items = [
            {"product_id": "prod-b", "quantity": 3, "unit_price": 10.0},
            {"product_id": "prod-b", "variant_id": "large", "quantity": 2, "unit_price": 12.0},
        ]
        lifecycle.create_order("buyer-001", "seller-001", "product", items)
        assert _stock_of("prod-b") == 0

    def test_insufficient_stock_writes_nothing(self, lifecycle, stocked_products):
        items = [
            {"product_id": "prod-a", "quantity": 2, "unit_price": 100.0},
            {"product_id": "prod-b", "quantity": 6, "unit_price": 50.0},
        ]
        with pytest.raises(ValidationError):
            lifecycle.create_order("buyer-001", "seller-001", "product", items)
        assert _stock_of("prod-a") == 10
        assert _stock_of("prod-b") == 5
        assert _order_count() == 0

    def test_unknown_product_writes_nothing(self, lifecycle, stocked_products):
        items = [
            {"product_id": "prod-a", "quantity": 1, "unit_price": 100.0},
            {"product_id": "prod-missing", "quantity": 1, "unit_price": 10.0},
        ]
        with pytest.raises(ObjectNotFoundError):
            lifecycle.create_order("buyer-001", "seller-001", "product", items)
        assert _stock_of("prod-a") == 10
        assert _order_count() == 0

    def test_invalid_item_rejected_before_any_write(self, lifecycle, stocked_products):
        with pytest.raises(ValidationError):
            lifecycle.create_order(
                "buyer-001",
                "seller-001",
                "product",
                [{"product_id": "prod-a", "quantity": 0, "unit_price": 100.0}],
            )
        assert _stock_of("prod-a") == 10
        assert _order_count() == 0

    @pytest.mark.parametrize("unit_price", [float("nan"), float("inf")])
    def test_non_finite_price_rejected_before_any_write(self, lifecycle, stocked_products, unit_price):
        with pytest.raises(ValidationError) as exc:
            lifecycle.create_order(
                "buyer-001",
                "seller-001",
                "product",
                [{"product_id": "prod-a", "quantity": 1, "unit_price": unit_price}],
            )
        assert "items" in exc.value.messages
        assert _stock_of("prod-a") == 10
        assert _order_count() == 0

    def test_empty_items_rejected(self, lifecycle):
        with pytest.raises(ValidationError):
            lifecycle.create_order("buyer-001", "seller-001", "product", [])

    def test_service_items_open_service_orders(self, lifecycle):
        order = lifecycle.create_order(
            "buyer-001",
            "seller-001",
            "service",
            [
                {"service_id": "svc-install", "quantity": 1, "unit_price": 1500.0},
                {"service_id": "svc-audit", "quantity": 2, "unit_price": 400.0},
            ],
        )
        service_orders = current_domain.repository_for(ServiceOrder).for_order(order["id"])
        assert len(service_orders) == 2
        assert {so.status for so in service_orders} == {"pending"}
        assert order["shipping_amount"] == 0.0

    def test_addresses_round_trip_as_dicts(self, lifecycle, stocked_products):
        address = {"name": "Asha", "city": "Pune", "postal_code": "411001"}
        order = lifecycle.create_order(
            "buyer-001",
            "seller-001",
            "product",
            _items(),
            delivery_address=address,
            billing_address=address,
        )
        assert order["delivery_address"] == address
        assert order["billing_address"] == address

    def test_created_notification_sent(self, lifecycle, notifier, stocked_products):
        order = lifecycle.create_order("buyer-001", "seller-001", "product", _items())
        assert notifier.kinds_for(order["id"]) == ["created"]
