"""Service-order status updates from the appointment collaborator."""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from orders.domain import orders
from orders.order.order import Order
from orders.service_order.service_order import ServiceOrder

logger = structlog.get_logger(__name__)


@orders.command(part_of="ServiceOrder")
class UpdateServiceOrderStatus:
    service_order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    scheduled_date = DateTime()
    provider_notes = Text()
    customer_notes = Text()
    updated_by = Identifier()


@orders.command_handler(part_of=ServiceOrder)
class ServiceOrderHandler:
    @handle(UpdateServiceOrderStatus)
    def update_service_order_status(self, command):
        service_orders = current_domain.repository_for(ServiceOrder)
        service_order = service_orders.get(command.service_order_id)
        service_order.update_status(
            command.status,
            scheduled_date=command.scheduled_date,
            provider_notes=command.provider_notes,
            customer_notes=command.customer_notes,
        )
        service_orders.add(service_order)

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(service_order.order_id)
        order.record_service_order_update(service_order.id, service_order.status, command.updated_by)
        order_repo.add(order)

        logger.info(
            "Service order status updated",
            service_order_id=str(service_order.id),
            order_id=str(service_order.order_id),
            status=service_order.status,
        )
        return str(service_order.id)
