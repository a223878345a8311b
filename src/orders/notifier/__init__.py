"""Notifier adapter registry — where order notifications are handed off.

Uses the fake notifier by default. ``ORDERS_NOTIFIER=logging`` switches to
the structlog-backed adapter until a real dispatcher is wired in.
"""

import os

_notifier_instance = None


def get_notifier():
    """Return the configured notifier adapter (singleton)."""
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("ORDERS_NOTIFIER", "fake")
        if adapter == "fake":
            from orders.notifier.fake_adapter import FakeNotifier

            _notifier_instance = FakeNotifier()
        elif adapter == "logging":
            from orders.notifier.logging_adapter import LoggingNotifier

            _notifier_instance = LoggingNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _notifier_instance


def reset_notifier():
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
