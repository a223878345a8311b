"""Manual order status updates — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from orders.domain import orders
from orders.order.cancellation import release_cancelled_order
from orders.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@orders.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    notes = Text()
    updated_by = Identifier()
    expected_revision = Integer()


@orders.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_revision(command.expected_revision)
        previous = order.status
        order.update_status(command.status, notes=command.notes, updated_by=command.updated_by)
        if command.status == OrderStatus.CANCELLED.value:
            release_cancelled_order(order)
        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
        )
        return str(order.id)
