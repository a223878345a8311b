"""Notifier port — hand-off point to the notification dispatcher.

Fire-and-forget: callers never rely on a return value, and a failing
adapter must not undo the order change it reports.
"""

from abc import ABC, abstractmethod
from enum import Enum


class NotificationKind(Enum):
    CREATED = "created"
    STATUS_UPDATED = "status_updated"
    PAYMENT_UPDATED = "payment_updated"
    CANCELLED = "cancelled"


class NotificationError(Exception):
    """Raised by an adapter that could not hand the notification off."""


class NotifierPort(ABC):
    @abstractmethod
    def notify(self, order: dict, event_kind: str) -> None:
        """Tell the dispatcher that ``order`` went through ``event_kind``."""
        ...
