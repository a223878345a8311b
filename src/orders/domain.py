"""Orders bounded context — Order Lifecycle and Fulfillment Tracking.

Handles order creation, guarded status and payment transitions, the
append-only status/tracking/audit ledgers, inventory reconciliation on
creation and cancellation, and ingestion of carrier tracking events.
"""

from protean.domain import Domain

from orders.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
orders = Domain(name="orders")
