"""End-to-end order journeys through the lifecycle."""

from orders.inventory.stock import ProductStock
from orders.service_order.service_order import ServiceOrder
from protean import current_domain


def _stock_of(product_id):
    return current_domain.repository_for(ProductStock).get(product_id).stock_quantity


class TestProductOrderJourney:
    def test_create_pay_cancel(self, lifecycle, stocked_products):
        order = lifecycle.create_order(
            "buyer-001",
            "seller-001",
            "product",
            [
                {"product_id": "prod-a", "quantity": 2, "unit_price": 100.0},
                {"product_id": "prod-b", "quantity": 1, "unit_price": 50.0},
            ],
        )
        assert (order["subtotal"], order["tax_amount"], order["shipping_amount"], order["total_amount"]) == (
            250.0,
            45.0,
            50.0,
            345.0,
        )
        assert order["status"] == "pending"
        audit_before = len(order["audit_trail"])

        paid = lifecycle.update_payment_status(order["id"], "paid")
        assert paid["status"] == "confirmed"
        assert len(paid["audit_trail"]) == audit_before + 2

        cancelled = lifecycle.cancel_order(paid["id"], reason="Buyer request")
        assert cancelled["status"] == "cancelled"
        assert _stock_of("prod-a") == 10
        assert _stock_of("prod-b") == 5

    def test_create_ship_deliver(self, lifecycle, stocked_products):
        order = lifecycle.create_order(
            "buyer-001",
            "seller-001",
            "product",
            [{"product_id": "prod-a", "quantity": 1, "unit_price": 100.0}],
        )
        lifecycle.update_payment_status(order["id"], "paid")
        lifecycle.update_order_status(order["id"], "processing", notes="Packed")
        lifecycle.add_tracking_event(order["id"], "shipped", provider="BlueDart", provider_tracking_id="BD9")
        lifecycle.add_tracking_event(order["id"], "out_for_delivery", provider="BlueDart")
        outcome = lifecycle.add_tracking_event(order["id"], "delivered", provider="BlueDart")

        final = outcome.order
        assert final["status"] == "delivered"
        assert [row["status"] for row in final["status_history"]] == [
            "pending",
            "pending",
            "confirmed",
            "processing",
            "shipped",
            "delivered",
        ]
        assert len(final["tracking_history"]) == 3
        assert len(final["delivery_tracking"]) == 1
        assert _stock_of("prod-a") == 9


class TestServiceOrderJourney:
    def test_create_and_cancel_without_stock(self, lifecycle):
        order = lifecycle.create_order(
            "buyer-001",
            "seller-001",
            "service",
            [{"service_id": "svc-install", "quantity": 1, "unit_price": 1500.0}],
        )
        service_orders = current_domain.repository_for(ServiceOrder).for_order(order["id"])
        assert [so.status for so in service_orders] == ["pending"]

        cancelled = lifecycle.cancel_order(order["id"])
        assert cancelled["status"] == "cancelled"
        assert current_domain.repository_for(ProductStock)._dao.query.all().total == 0
