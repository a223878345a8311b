"""Order creation — command and handler."""

import json

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from orders.domain import orders
from orders.inventory.coordinator import reserve_for
from orders.order.numbering import allocate_order_number
from orders.order.order import Order, OrderType, validate_items
from orders.service_order.service_order import ServiceOrder

logger = structlog.get_logger(__name__)


@orders.command(part_of="Order")
class CreateOrder:
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    order_type = String(required=True, choices=OrderType)
    items = Text(required=True)  # JSON: list of item dicts
    quote_id = Identifier()
    delivery_address = Text()  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    notes = Text()
    estimated_delivery = DateTime()
    created_by = Identifier()


def _load(value):
    return json.loads(value) if isinstance(value, str) else value


@orders.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        items_data = _load(command.items) or []
        validate_items(items_data)

        # Stock moves first: an unknown product or a shortfall aborts before
        # the order number is allocated
        reserve_for(items_data)

        order = Order.create(
            order_number=allocate_order_number(),
            buyer_id=command.buyer_id,
            seller_id=command.seller_id,
            order_type=command.order_type,
            items_data=items_data,
            quote_id=command.quote_id,
            delivery_address=_load(command.delivery_address),
            billing_address=_load(command.billing_address),
            notes=command.notes,
            estimated_delivery=command.estimated_delivery,
            created_by=command.created_by,
        )
        current_domain.repository_for(Order).add(order)

        service_orders = current_domain.repository_for(ServiceOrder)
        for item in order.service_items():
            service_orders.add(ServiceOrder.open_for(order.id, item))

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=order.total_amount,
        )
        return str(order.id)
