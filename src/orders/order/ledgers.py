"""Append-only ledgers owned by the Order aggregate.

Three logs hang off every order and are only ever appended to:

* ``StatusHistoryEntry``   — one row per fulfilment-status change
* ``TrackingHistoryEntry`` — one row per ingested carrier event
* ``AuditEntry``           — one row per mutating action of any kind

``DeliveryTracking`` is the exception: it is the mutable per-carrier summary
derived from the tracking ledger, upserted as milestone events arrive.

Each ledger row carries a ``sequence`` number so insertion order survives
storage engines that do not preserve it.
"""

from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String, Text

from orders.domain import orders


class AuditAction(Enum):
    ORDER_CREATED = "ORDER_CREATED"
    STATUS_UPDATE = "STATUS_UPDATE"
    PAYMENT_STATUS = "PAYMENT_STATUS"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    TRACKING_EVENT = "TRACKING_EVENT"
    SERVICE_ORDER_STATUS = "SERVICE_ORDER_STATUS"


# Carrier labels that move the delivery-tracking summary
SHIPPING_MILESTONES = frozenset({"shipped", "in_transit", "out_for_delivery", "delivered"})

# Carrier labels that also map onto an order status
STATUS_AFFECTING_MILESTONES = frozenset({"shipped", "delivered"})


@orders.entity(part_of="Order")
class StatusHistoryEntry:
    """A fulfilment-status change: which status, why, and who made it."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, max_length=20)
    notes = Text()
    updated_by = Identifier()
    created_at = DateTime(required=True)


@orders.entity(part_of="Order")
class TrackingHistoryEntry:
    """A raw carrier event, kept verbatim in the carrier's own vocabulary."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, max_length=50)
    location = String(max_length=255)
    description = Text()
    provider = String(max_length=100)
    provider_tracking_id = String(max_length=100)
    provider_metadata = Text()  # JSON: arbitrary carrier payload
    recorded_by = Identifier()
    timestamp = DateTime(required=True)


@orders.entity(part_of="Order")
class DeliveryTracking:
    """Latest known shipment state for one carrier relationship of an order."""

    carrier = String(max_length=100, default="")
    tracking_number = String(max_length=100)
    status = String(required=True, max_length=50)
    notes = Text()
    actual_delivery = DateTime()
    created_at = DateTime(required=True)
    updated_at = DateTime(required=True)


@orders.entity(part_of="Order")
class AuditEntry:
    """General audit row used for dispute resolution."""

    sequence = Integer(required=True, min_value=1)
    action = String(required=True, max_length=30, choices=AuditAction)
    details = Text()
    user_id = Identifier()
    created_at = DateTime(required=True)
