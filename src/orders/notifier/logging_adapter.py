"""Logging notifier — writes each notification as a structured log line."""

import structlog

from orders.notifier.port import NotifierPort

logger = structlog.get_logger(__name__)


class LoggingNotifier(NotifierPort):
    def notify(self, order: dict, event_kind: str) -> None:
        logger.info(
            "Order notification",
            event_kind=event_kind,
            order_id=order.get("id"),
            order_number=order.get("order_number"),
            buyer_id=order.get("buyer_id"),
            seller_id=order.get("seller_id"),
            status=order.get("status"),
            payment_status=order.get("payment_status"),
        )
