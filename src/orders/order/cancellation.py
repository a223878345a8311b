"""Order cancellation — command and handler.

The guard, the ledger rows, the stock restoration and the cancellation of
linked service orders all commit together.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from orders.domain import orders
from orders.inventory.coordinator import restore_for
from orders.order.order import Order
from orders.service_order.service_order import ServiceOrder

logger = structlog.get_logger(__name__)


@orders.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = Text()
    cancelled_by = Identifier()
    expected_revision = Integer()


def release_cancelled_order(order) -> int:
    """Give back the stock and service slots held by a just-cancelled order."""
    restored_units = restore_for(order)

    service_orders = current_domain.repository_for(ServiceOrder)
    for service_order in service_orders.for_order(order.id):
        if service_order.cancel():
            service_orders.add(service_order)

    return restored_units


@orders.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_revision(command.expected_revision)
        order.cancel(reason=command.reason, cancelled_by=command.cancelled_by)

        restored_units = release_cancelled_order(order)
        repo.add(order)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            reason=command.reason,
            restored_units=restored_units,
        )
        return str(order.id)
