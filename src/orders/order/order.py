"""Order aggregate (CQRS) — the root of the order lifecycle.

The Order owns its line items and the three append-only ledgers (status
history, tracking history, audit trail) plus the per-carrier delivery
summary, so every write that belongs to one order mutation lands in the
same unit of work as the order row itself.

Status axis:
    pending, confirmed, processing, shipped, delivered, cancelled

Payment axis (independent):
    pending, processing, paid, failed, refunded

The only rule linking the two: a payment becoming ``paid`` while the order
is still ``pending`` confirms the order ("Payment received").

``update_status`` deliberately accepts any recognised status, forwards or
backwards, so that operators can correct fulfilment state out of band.
Only cancellation is guarded (from pending/confirmed).
"""

import json
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from orders.domain import orders
from orders.exceptions import ConflictError
from orders.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderStatusUpdated,
    PaymentStatusUpdated,
    TrackingEventRecorded,
)
from orders.order.ledgers import (
    SHIPPING_MILESTONES,
    AuditAction,
    AuditEntry,
    DeliveryTracking,
    StatusHistoryEntry,
    TrackingHistoryEntry,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderType(Enum):
    PRODUCT = "product"
    SERVICE = "service"


# Flat GST rate fixed by jurisdiction
TAX_RATE = Decimal("0.18")

# Charged once per order, product orders only
FLAT_SHIPPING_FEE = Decimal("50")

_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# The natural forward flow. Not enforced by ``update_status``; kept as the
# reference table for a stricter policy and for documentation.
STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

_CENT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


def _money(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def _as_json(value):
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _is_number(value) -> bool:
    if not isinstance(value, (int, float, Decimal)) or isinstance(value, bool):
        return False
    return _to_decimal(value).is_finite()


def validate_items(items_data: list[dict]) -> None:
    """Reject malformed line items before anything is written.

    Each item must reference exactly one of a product or a service, carry an
    integer quantity of at least 1 and a finite, non-negative unit price.
    """
    if not items_data:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    errors = []
    for index, item in enumerate(items_data):
        product_id = item.get("product_id")
        service_id = item.get("service_id")
        if not product_id and not service_id:
            errors.append(f"Item {index}: must reference a product or a service")
        elif product_id and service_id:
            errors.append(f"Item {index}: cannot reference both a product and a service")

        quantity = item.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            errors.append(f"Item {index}: quantity must be a positive integer")

        unit_price = item.get("unit_price")
        if not _is_number(unit_price) or unit_price < 0:
            errors.append(f"Item {index}: unit price must be a finite, non-negative number")

    if errors:
        raise ValidationError({"items": errors})


def calculate_pricing(order_type: str, items_data: list[dict]) -> dict:
    """Price an order: line totals, subtotal, 18% tax, flat shipping for products.

    Discount is always zero for now; it is the hook coupons will use.
    Returns floats rounded half-up to 2 decimals, with
    ``total = subtotal + tax + shipping - discount``.
    """
    line_totals = [_to_decimal(item["unit_price"]) * item["quantity"] for item in items_data]
    subtotal = sum(line_totals, Decimal("0"))
    tax = (subtotal * TAX_RATE).quantize(_CENT, rounding=ROUND_HALF_UP)
    shipping = FLAT_SHIPPING_FEE if order_type == OrderType.PRODUCT.value else Decimal("0")
    discount = Decimal("0")
    total = subtotal.quantize(_CENT, rounding=ROUND_HALF_UP) + tax + shipping - discount

    return {
        "line_totals": [_money(line) for line in line_totals],
        "subtotal": _money(subtotal),
        "tax_amount": _money(tax),
        "shipping_amount": _money(shipping),
        "discount_amount": _money(discount),
        "total_amount": _money(total),
    }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@orders.entity(part_of="Order")
class OrderItem:
    """A line item referencing either a product (optionally a variant) or a service."""

    product_id = Identifier()
    service_id = Identifier()
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@orders.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    quote_id = Identifier()
    order_type = String(required=True, choices=OrderType)
    subtotal = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    shipping_amount = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    delivery_address = Text()  # JSON: opaque address blob
    billing_address = Text()  # JSON: opaque address blob
    notes = Text()
    estimated_delivery = DateTime()
    actual_delivery = DateTime()
    tracking_number = String(max_length=100)
    shipping_provider = String(max_length=100)
    cancellation_reason = Text()
    inventory_restored = Boolean(default=False)
    revision = Integer(default=0)
    items = HasMany(OrderItem)
    status_history = HasMany(StatusHistoryEntry)
    tracking_history = HasMany(TrackingHistoryEntry)
    delivery_tracking = HasMany(DeliveryTracking)
    audit_trail = HasMany(AuditEntry)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number,
        buyer_id,
        seller_id,
        order_type,
        items_data,
        quote_id=None,
        delivery_address=None,
        billing_address=None,
        notes=None,
        estimated_delivery=None,
        created_by=None,
    ):
        """Build a new pending order with priced items and its first ledger rows.

        Args:
            order_number: Pre-allocated human order number (see numbering).
            items_data: List of dicts with product_id or service_id,
                        optional variant_id, quantity, unit_price.
            delivery_address / billing_address: Dicts, stored as JSON.
        """
        if order_type not in {t.value for t in OrderType}:
            raise ValidationError({"order_type": [f"Unknown order type: {order_type}"]})
        validate_items(items_data)

        pricing = calculate_pricing(order_type, items_data)
        now = datetime.now(UTC)

        order = cls(
            order_number=order_number,
            buyer_id=buyer_id,
            seller_id=seller_id,
            quote_id=quote_id,
            order_type=order_type,
            subtotal=pricing["subtotal"],
            tax_amount=pricing["tax_amount"],
            shipping_amount=pricing["shipping_amount"],
            discount_amount=pricing["discount_amount"],
            total_amount=pricing["total_amount"],
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            delivery_address=_as_json(delivery_address),
            billing_address=_as_json(billing_address),
            notes=notes,
            estimated_delivery=estimated_delivery,
            created_at=now,
            updated_at=now,
        )
        for item, line_total in zip(items_data, pricing["line_totals"], strict=True):
            order.add_items(
                OrderItem(
                    product_id=item.get("product_id"),
                    service_id=item.get("service_id"),
                    variant_id=item.get("variant_id"),
                    quantity=item["quantity"],
                    unit_price=float(item["unit_price"]),
                    total_price=line_total,
                )
            )

        order._record_status(OrderStatus.PENDING, "Order created", created_by, now)
        order._record_audit(
            AuditAction.ORDER_CREATED,
            f"Order created with {len(items_data)} item(s)",
            created_by,
            now,
        )
        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order_number,
                buyer_id=str(buyer_id),
                seller_id=str(seller_id),
                order_type=order_type,
                item_count=len(items_data),
                subtotal=pricing["subtotal"],
                tax_amount=pricing["tax_amount"],
                shipping_amount=pricing["shipping_amount"],
                discount_amount=pricing["discount_amount"],
                total_amount=pricing["total_amount"],
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Ledger helpers (append-only)
    # -------------------------------------------------------------------
    def _record_status(self, status, notes, updated_by, at):
        self.add_status_history(
            StatusHistoryEntry(
                sequence=len(self.status_history or []) + 1,
                status=status.value,
                notes=notes,
                updated_by=updated_by,
                created_at=at,
            )
        )

    def _record_audit(self, action, details, user_id, at):
        self.add_audit_trail(
            AuditEntry(
                sequence=len(self.audit_trail or []) + 1,
                action=action.value,
                details=details,
                user_id=user_id,
                created_at=at,
            )
        )

    def _touch(self, at):
        self.updated_at = at
        self.revision = (self.revision or 0) + 1

    def _set_status(self, target, notes, updated_by, at):
        """Move the status axis and append the matching status-history row."""
        self.status = target.value
        if target == OrderStatus.DELIVERED and self.actual_delivery is None:
            self.actual_delivery = at
        self._record_status(target, notes, updated_by, at)

    def _apply_status_update(self, target, notes, updated_by, at):
        previous = self.status
        self._set_status(target, notes, updated_by, at)
        self._record_audit(
            AuditAction.STATUS_UPDATE,
            f"Status changed to {target.value}" + (f" - {notes}" if notes else ""),
            updated_by,
            at,
        )
        self.raise_(
            OrderStatusUpdated(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                notes=notes,
                updated_by=updated_by,
                updated_at=at,
            )
        )

    # -------------------------------------------------------------------
    # Concurrency guard
    # -------------------------------------------------------------------
    def assert_revision(self, expected_revision):
        """Optimistic check against the revision the caller last read."""
        if expected_revision is not None and expected_revision != self.revision:
            raise ConflictError(
                f"Order {self.order_number} was modified concurrently "
                f"(expected revision {expected_revision}, found {self.revision})"
            )

    # -------------------------------------------------------------------
    # Status axis
    # -------------------------------------------------------------------
    def update_status(self, new_status, notes=None, updated_by=None):
        """Set any recognised status. Backward moves are allowed on purpose.

        ``cancelled`` goes through ``cancel`` and its guard; the caller still
        owes the stock restoration and service-order cancellation.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                {"status": [f"Unknown order status: {new_status}"]},
            ) from None

        if target == OrderStatus.CANCELLED:
            self.cancel(reason=notes, cancelled_by=updated_by)
            return

        now = datetime.now(UTC)
        self._apply_status_update(target, notes, updated_by, now)
        self._touch(now)

    def cancel(self, reason=None, cancelled_by=None):
        """Cancel a pending or confirmed order."""
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise ConflictError("Order cannot be cancelled in current status")

        now = datetime.now(UTC)
        self.cancellation_reason = reason
        self._set_status(OrderStatus.CANCELLED, reason or "Order cancelled", cancelled_by, now)
        self._record_audit(AuditAction.ORDER_CANCELLED, reason or "Cancelled", cancelled_by, now)
        self._touch(now)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=current.value,
                reason=reason,
                cancelled_by=cancelled_by,
                restored_units=sum(item.quantity for item in self.product_items()),
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment axis
    # -------------------------------------------------------------------
    def update_payment_status(self, new_payment_status, updated_by=None):
        """Record a payment outcome, confirming a pending order once it is paid.

        Repeating the current payment status is a no-op, so a replayed
        ``paid`` callback neither duplicates ledger rows nor re-cascades.
        """
        try:
            target = PaymentStatus(new_payment_status)
        except ValueError:
            raise ValidationError(
                {"payment_status": [f"Unknown payment status: {new_payment_status}"]},
            ) from None

        if target.value == self.payment_status:
            return False

        now = datetime.now(UTC)
        previous = self.payment_status
        self.payment_status = target.value

        details = f"Payment status set to {target.value}"
        # The status ledger records the payment move against the unchanged status
        self._record_status(OrderStatus(self.status), details, updated_by, now)
        self._record_audit(AuditAction.PAYMENT_STATUS, details, updated_by, now)

        cascaded_status = None
        if target == PaymentStatus.PAID and self.status == OrderStatus.PENDING.value:
            self._apply_status_update(OrderStatus.CONFIRMED, "Payment received", updated_by, now)
            cascaded_status = OrderStatus.CONFIRMED.value

        self._touch(now)
        self.raise_(
            PaymentStatusUpdated(
                order_id=str(self.id),
                previous_payment_status=previous,
                new_payment_status=target.value,
                cascaded_status=cascaded_status,
                updated_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Inventory bookkeeping
    # -------------------------------------------------------------------
    def product_items(self):
        return [item for item in (self.items or []) if item.product_id]

    def service_items(self):
        return [item for item in (self.items or []) if item.service_id]

    def mark_inventory_restored(self):
        if self.inventory_restored:
            raise ConflictError("Inventory for this order has already been restored")
        self.inventory_restored = True

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------
    def record_tracking_event(
        self,
        status,
        location=None,
        description=None,
        provider=None,
        provider_tracking_id=None,
        provider_metadata=None,
        recorded_by=None,
    ):
        """Append a carrier event; milestones also upsert the delivery summary.

        Duplicated or out-of-order carrier callbacks simply grow the ledger.
        The summary row is keyed by carrier, so replaying a milestone
        updates the same row instead of creating another.
        """
        if not status:
            raise ValidationError({"status": ["Tracking status is required"]})

        now = datetime.now(UTC)
        self.add_tracking_history(
            TrackingHistoryEntry(
                sequence=len(self.tracking_history or []) + 1,
                status=status,
                location=location,
                description=description,
                provider=provider,
                provider_tracking_id=provider_tracking_id,
                provider_metadata=_as_json(provider_metadata),
                recorded_by=recorded_by,
                timestamp=now,
            )
        )

        if provider:
            self.shipping_provider = provider
        if provider_tracking_id:
            self.tracking_number = provider_tracking_id

        is_milestone = status in SHIPPING_MILESTONES
        if is_milestone:
            self._upsert_delivery_tracking(status, description, provider, provider_tracking_id, now)

        self._record_audit(
            AuditAction.TRACKING_EVENT,
            status + (f" - {description}" if description else ""),
            recorded_by,
            now,
        )
        self._touch(now)
        self.raise_(
            TrackingEventRecorded(
                order_id=str(self.id),
                status=status,
                location=location,
                provider=provider,
                provider_tracking_id=provider_tracking_id,
                is_milestone=is_milestone,
                recorded_at=now,
            )
        )

    def delivery_tracking_for(self, carrier):
        key = carrier or ""
        return next((row for row in (self.delivery_tracking or []) if (row.carrier or "") == key), None)

    def _upsert_delivery_tracking(self, status, description, carrier, provider_tracking_id, at):
        summary = self.delivery_tracking_for(carrier)
        if summary is None:
            self.add_delivery_tracking(
                DeliveryTracking(
                    carrier=carrier or "",
                    tracking_number=provider_tracking_id or self.tracking_number,
                    status=status,
                    notes=description,
                    actual_delivery=at if status == "delivered" else None,
                    created_at=at,
                    updated_at=at,
                )
            )
            return

        summary.status = status
        summary.notes = description
        if provider_tracking_id:
            summary.tracking_number = provider_tracking_id
        if status == "delivered" and summary.actual_delivery is None:
            summary.actual_delivery = at
        summary.updated_at = at
        # Re-adding an existing child marks it as updated
        self.add_delivery_tracking(summary)

    # -------------------------------------------------------------------
    # Collaborator audit rows
    # -------------------------------------------------------------------
    def record_service_order_update(self, service_order_id, status, user_id=None):
        """Audit a status change made by the service-appointment collaborator."""
        now = datetime.now(UTC)
        self._record_audit(
            AuditAction.SERVICE_ORDER_STATUS,
            f"Service order {service_order_id} set to {status}",
            user_id,
            now,
        )
        self.updated_at = now
