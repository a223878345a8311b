"""Application tests for service-order updates by the appointment collaborator."""

from datetime import UTC, datetime

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError


@pytest.fixture()
def service_order_id(lifecycle):
    order = lifecycle.create_order(
        "buyer-001",
        "seller-001",
        "service",
        [{"service_id": "svc-install", "quantity": 1, "unit_price": 1500.0}],
    )
    return lifecycle.get_service_orders(order["id"])[0]["id"]


class TestUpdateServiceOrderStatus:
    def test_schedule_appointment(self, lifecycle, service_order_id):
        when = datetime(2025, 2, 1, 10, 0, tzinfo=UTC)
        updated = lifecycle.update_service_order_status(
            service_order_id,
            "scheduled",
            scheduled_date=when,
            provider_notes="Bring ladder",
            updated_by="provider-001",
        )
        assert updated["status"] == "scheduled"
        assert updated["provider_notes"] == "Bring ladder"
        assert updated["scheduled_date"] is not None

    def test_update_audited_on_parent_order(self, lifecycle, service_order_id):
        updated = lifecycle.update_service_order_status(service_order_id, "in_progress", updated_by="provider-001")
        order = lifecycle.get_order_by_id(updated["order_id"])
        entry = order["audit_trail"][-1]
        assert entry["action"] == "SERVICE_ORDER_STATUS"
        assert entry["details"] == f"Service order {service_order_id} set to in_progress"
        assert entry["user_id"] == "provider-001"

    def test_parent_order_status_untouched(self, lifecycle, service_order_id):
        updated = lifecycle.update_service_order_status(service_order_id, "completed")
        assert lifecycle.get_order_by_id(updated["order_id"])["status"] == "pending"

    def test_unknown_status_rejected(self, lifecycle, service_order_id):
        with pytest.raises(ValidationError):
            lifecycle.update_service_order_status(service_order_id, "postponed")

    def test_unknown_service_order(self, lifecycle):
        with pytest.raises(ObjectNotFoundError):
            lifecycle.update_service_order_status("missing", "confirmed")

    def test_list_for_unknown_order(self, lifecycle):
        with pytest.raises(ObjectNotFoundError):
            lifecycle.get_service_orders("missing")
