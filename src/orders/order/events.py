"""Domain events for the Order aggregate.

Raised inside the unit of work, handed to event handlers only after it
commits. Notification dispatch hangs off these events, so a flaky
notifier can never roll back an order mutation.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from orders.domain import orders


@orders.event(part_of="Order")
class OrderCreated:
    """A new order was placed and its number allocated."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    order_type = String(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    tax_amount = Float(required=True)
    shipping_amount = Float(required=True)
    discount_amount = Float(required=True)
    total_amount = Float(required=True)
    created_at = DateTime(required=True)


@orders.event(part_of="Order")
class OrderStatusUpdated:
    """The fulfilment status of an order was set, manually or by cascade."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    notes = Text()
    updated_by = Identifier()
    updated_at = DateTime(required=True)


@orders.event(part_of="Order")
class PaymentStatusUpdated:
    """The payment collaborator reported a new payment outcome."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_payment_status = String(required=True)
    new_payment_status = String(required=True)
    cascaded_status = String()  # set when the change confirmed the order
    updated_at = DateTime(required=True)


@orders.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled and its product stock restored."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = Text()
    cancelled_by = Identifier()
    restored_units = Integer(default=0)
    cancelled_at = DateTime(required=True)


@orders.event(part_of="Order")
class TrackingEventRecorded:
    """A carrier event was appended to the order's tracking ledger."""

    __version__ = 1

    order_id = Identifier(required=True)
    status = String(required=True)
    location = String()
    provider = String()
    provider_tracking_id = String()
    is_milestone = Boolean(default=False)
    recorded_at = DateTime(required=True)
