"""ServiceOrder aggregate — the appointment side of a service line item.

One ServiceOrder is opened per service item when an order is created. The
appointment collaborator moves it through its own status vocabulary; the
parent order only hears about it through its audit trail.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from orders.domain import orders


class ServiceOrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


@orders.aggregate
class ServiceOrder:
    order_id = Identifier(required=True)
    service_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    status = String(choices=ServiceOrderStatus, default=ServiceOrderStatus.PENDING.value)
    scheduled_date = DateTime()
    completed_date = DateTime()
    provider_notes = Text()
    customer_notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open_for(cls, order_id, item, customer_notes=None):
        now = datetime.now(UTC)
        return cls(
            order_id=order_id,
            service_id=item.service_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
            status=ServiceOrderStatus.PENDING.value,
            customer_notes=customer_notes,
            created_at=now,
            updated_at=now,
        )

    def update_status(self, new_status, scheduled_date=None, provider_notes=None, customer_notes=None):
        try:
            target = ServiceOrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                {"status": [f"Unknown service order status: {new_status}"]},
            ) from None

        now = datetime.now(UTC)
        self.status = target.value
        if scheduled_date is not None:
            self.scheduled_date = scheduled_date
        if provider_notes is not None:
            self.provider_notes = provider_notes
        if customer_notes is not None:
            self.customer_notes = customer_notes
        if target == ServiceOrderStatus.COMPLETED and self.completed_date is None:
            self.completed_date = now
        self.updated_at = now

    def cancel(self):
        if self.status in (ServiceOrderStatus.COMPLETED.value, ServiceOrderStatus.CANCELLED.value):
            return False
        self.status = ServiceOrderStatus.CANCELLED.value
        self.updated_at = datetime.now(UTC)
        return True


@orders.repository(part_of=ServiceOrder)
class ServiceOrderRepository:
    def for_order(self, order_id) -> list[ServiceOrder]:
        return self._dao.query.filter(order_id=str(order_id)).order_by("created_at").all().items
