"""Payment outcomes reported by the payment collaborator — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from orders.domain import orders
from orders.order.order import Order

logger = structlog.get_logger(__name__)


@orders.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, max_length=20)
    updated_by = Identifier()
    expected_revision = Integer()


@orders.command_handler(part_of=Order)
class UpdatePaymentStatusHandler:
    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_revision(command.expected_revision)

        changed = order.update_payment_status(command.payment_status, updated_by=command.updated_by)
        if not changed:
            logger.info(
                "Payment status unchanged, nothing recorded",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            return str(order.id)

        repo.add(order)
        logger.info(
            "Payment status updated",
            order_id=str(order.id),
            payment_status=order.payment_status,
            status=order.status,
        )
        return str(order.id)
