"""Carrier adapter abstraction — authenticity checks for tracking webhooks."""

import os

_carrier_instance = None


def get_carrier():
    """Return the configured carrier adapter (singleton).

    Uses FakeCarrier by default. ``CARRIER_ADAPTER=hmac`` verifies webhook
    signatures with the shared secret in ``CARRIER_WEBHOOK_SECRET``.
    """
    global _carrier_instance
    if _carrier_instance is None:
        adapter = os.environ.get("CARRIER_ADAPTER", "fake")
        if adapter == "fake":
            from orders.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        elif adapter == "hmac":
            from orders.carrier.hmac_adapter import HmacCarrier

            _carrier_instance = HmacCarrier(os.environ["CARRIER_WEBHOOK_SECRET"])
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def reset_carrier():
    """Reset the carrier singleton (useful for testing)."""
    global _carrier_instance
    _carrier_instance = None
