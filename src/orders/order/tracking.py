"""Carrier tracking ingestion — command and handler.

Only the tracking ledger, the delivery summary and the audit row are
written here. Moving the order status for ``shipped``/``delivered``
happens afterwards, in its own unit of work (see ``OrderLifecycle``).
"""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from orders.domain import orders
from orders.order.order import Order

logger = structlog.get_logger(__name__)


@orders.command(part_of="Order")
class AddTrackingEvent:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    location = String(max_length=255)
    description = Text()
    provider = String(max_length=100)
    provider_tracking_id = String(max_length=100)
    provider_metadata = Text()  # JSON: arbitrary carrier payload
    recorded_by = Identifier()


@orders.command_handler(part_of=Order)
class AddTrackingEventHandler:
    @handle(AddTrackingEvent)
    def add_tracking_event(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_tracking_event(
            status=command.status,
            location=command.location,
            description=command.description,
            provider=command.provider,
            provider_tracking_id=command.provider_tracking_id,
            provider_metadata=command.provider_metadata,
            recorded_by=command.recorded_by,
        )
        repo.add(order)

        logger.info(
            "Tracking event recorded",
            order_id=str(order.id),
            status=command.status,
            provider=command.provider,
        )
        return str(order.id)
