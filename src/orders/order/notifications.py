"""Order notifications — hands committed order changes to the notifier.

Runs only after the originating unit of work has committed. A failing
notifier is logged and forgotten; it never reaches the caller and never
undoes the order change.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from orders.domain import orders
from orders.notifier import get_notifier
from orders.notifier.port import NotificationKind
from orders.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderStatusUpdated,
    PaymentStatusUpdated,
)
from orders.order.order import Order
from orders.order.queries import order_to_dict

logger = structlog.get_logger(__name__)


def _dispatch(order_id: str, kind: NotificationKind) -> None:
    try:
        order = current_domain.repository_for(Order).get(order_id)
        get_notifier().notify(order_to_dict(order), kind.value)
    except Exception as exc:
        logger.warning(
            "Order notification failed",
            order_id=order_id,
            event_kind=kind.value,
            error=str(exc),
        )


@orders.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderCreated)
    def on_order_created(self, event: OrderCreated) -> None:
        _dispatch(str(event.order_id), NotificationKind.CREATED)

    @handle(OrderStatusUpdated)
    def on_status_updated(self, event: OrderStatusUpdated) -> None:
        _dispatch(str(event.order_id), NotificationKind.STATUS_UPDATED)

    @handle(PaymentStatusUpdated)
    def on_payment_updated(self, event: PaymentStatusUpdated) -> None:
        _dispatch(str(event.order_id), NotificationKind.PAYMENT_UPDATED)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        _dispatch(str(event.order_id), NotificationKind.CANCELLED)
