"""OrderLifecycle — the service contract the HTTP layer and collaborators call.

Each write is one command processed synchronously, so it runs in exactly
one unit of work. Reads return hydrated order dicts.

Tracking ingestion is the only two-step flow: the tracking event commits
first, then a ``shipped``/``delivered`` label that differs from the order
status moves the order in a second, best-effort unit of work. The outcome
of that second step comes back as a ``StatusCascade`` instead of an
exception, so a rejected cascade never loses the recorded carrier event.
"""

import json
from dataclasses import dataclass

import structlog
from protean.domain import Domain

from orders.inventory.management import AdjustProductStock, RegisterProductStock
from orders.order import queries
from orders.order.cancellation import CancelOrder
from orders.order.creation import CreateOrder
from orders.order.ledgers import STATUS_AFFECTING_MILESTONES
from orders.order.order import Order
from orders.order.payment import UpdatePaymentStatus
from orders.order.status import UpdateOrderStatus
from orders.order.tracking import AddTrackingEvent
from orders.service_order.scheduling import UpdateServiceOrderStatus

logger = structlog.get_logger(__name__)

TRACKING_CASCADE_NOTE = "Tracking event update"


@dataclass(frozen=True)
class StatusCascade:
    """What happened to the order status after a tracking event."""

    attempted: bool
    target_status: str | None = None
    succeeded: bool = False
    error: str | None = None

    @classmethod
    def skipped(cls):
        return cls(attempted=False)


@dataclass(frozen=True)
class TrackingOutcome:
    order: dict
    cascade: StatusCascade


class OrderLifecycle:
    def __init__(self, domain: Domain):
        self.domain = domain

    def _process(self, command):
        return self.domain.process(command, asynchronous=False)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def create_order(
        self,
        buyer_id,
        seller_id,
        order_type,
        items,
        quote_id=None,
        delivery_address=None,
        billing_address=None,
        notes=None,
        estimated_delivery=None,
        created_by=None,
    ) -> dict:
        with self.domain.domain_context():
            order_id = self._process(
                CreateOrder(
                    buyer_id=buyer_id,
                    seller_id=seller_id,
                    order_type=order_type,
                    items=json.dumps(items),
                    quote_id=quote_id,
                    delivery_address=json.dumps(delivery_address) if delivery_address is not None else None,
                    billing_address=json.dumps(billing_address) if billing_address is not None else None,
                    notes=notes,
                    estimated_delivery=estimated_delivery,
                    created_by=created_by,
                )
            )
            return queries.get_order_by_id(order_id)

    def update_order_status(self, order_id, new_status, notes=None, updated_by=None, expected_revision=None) -> dict:
        with self.domain.domain_context():
            self._process(
                UpdateOrderStatus(
                    order_id=order_id,
                    status=new_status,
                    notes=notes,
                    updated_by=updated_by,
                    expected_revision=expected_revision,
                )
            )
            return queries.get_order_by_id(order_id)

    def update_payment_status(self, order_id, new_payment_status, updated_by=None, expected_revision=None) -> dict:
        with self.domain.domain_context():
            self._process(
                UpdatePaymentStatus(
                    order_id=order_id,
                    payment_status=new_payment_status,
                    updated_by=updated_by,
                    expected_revision=expected_revision,
                )
            )
            return queries.get_order_by_id(order_id)

    def cancel_order(self, order_id, reason=None, cancelled_by=None, expected_revision=None) -> dict:
        with self.domain.domain_context():
            self._process(
                CancelOrder(
                    order_id=order_id,
                    reason=reason,
                    cancelled_by=cancelled_by,
                    expected_revision=expected_revision,
                )
            )
            return queries.get_order_by_id(order_id)

    def add_tracking_event(
        self,
        order_id,
        status,
        location=None,
        description=None,
        provider=None,
        provider_tracking_id=None,
        metadata=None,
        recorded_by=None,
    ) -> TrackingOutcome:
        with self.domain.domain_context():
            self._process(
                AddTrackingEvent(
                    order_id=order_id,
                    status=status,
                    location=location,
                    description=description,
                    provider=provider,
                    provider_tracking_id=provider_tracking_id,
                    provider_metadata=json.dumps(metadata) if metadata is not None else None,
                    recorded_by=recorded_by,
                )
            )
            cascade = self._cascade_status(order_id, status, recorded_by)
            return TrackingOutcome(order=queries.get_order_by_id(order_id), cascade=cascade)

    def _cascade_status(self, order_id, label, actor) -> StatusCascade:
        if label not in STATUS_AFFECTING_MILESTONES:
            return StatusCascade.skipped()

        order = self.domain.repository_for(Order).get(order_id)
        if order.status == label:
            return StatusCascade.skipped()

        try:
            self._process(
                UpdateOrderStatus(
                    order_id=order_id,
                    status=label,
                    notes=TRACKING_CASCADE_NOTE,
                    updated_by=actor,
                )
            )
        except Exception as exc:
            logger.warning(
                "Status cascade from tracking event failed",
                order_id=str(order_id),
                target_status=label,
                error=str(exc),
            )
            return StatusCascade(attempted=True, target_status=label, succeeded=False, error=str(exc))

        return StatusCascade(attempted=True, target_status=label, succeeded=True)

    def update_service_order_status(
        self,
        service_order_id,
        new_status,
        scheduled_date=None,
        provider_notes=None,
        customer_notes=None,
        updated_by=None,
    ) -> dict:
        with self.domain.domain_context():
            self._process(
                UpdateServiceOrderStatus(
                    service_order_id=service_order_id,
                    status=new_status,
                    scheduled_date=scheduled_date,
                    provider_notes=provider_notes,
                    customer_notes=customer_notes,
                    updated_by=updated_by,
                )
            )
            return queries.get_service_order(service_order_id)

    def register_product_stock(self, product_id, stock_quantity=0, name=None) -> dict:
        with self.domain.domain_context():
            self._process(RegisterProductStock(product_id=product_id, stock_quantity=stock_quantity, name=name))
            return queries.get_product_stock(product_id)

    def adjust_product_stock(self, product_id, delta) -> dict:
        with self.domain.domain_context():
            self._process(AdjustProductStock(product_id=product_id, delta=delta))
            return queries.get_product_stock(product_id)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_order_by_id(self, order_id) -> dict:
        with self.domain.domain_context():
            return queries.get_order_by_id(order_id)

    def get_order_by_number(self, order_number) -> dict:
        with self.domain.domain_context():
            return queries.get_order_by_number(order_number)

    def get_orders(self, page=1, limit=queries.DEFAULT_PAGE_SIZE, **criteria) -> dict:
        with self.domain.domain_context():
            return queries.get_orders(page=page, limit=limit, **criteria)

    def get_order_analytics(self, seller_id=None, date_from=None, date_to=None) -> dict:
        with self.domain.domain_context():
            return queries.get_order_analytics(seller_id=seller_id, date_from=date_from, date_to=date_to)

    def get_tracking(self, order_id) -> dict:
        with self.domain.domain_context():
            return queries.get_tracking(order_id)

    def get_service_orders(self, order_id) -> list[dict]:
        with self.domain.domain_context():
            return queries.get_service_orders(order_id)
