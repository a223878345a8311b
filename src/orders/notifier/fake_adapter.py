"""Fake notifier — records notifications in memory for testing."""

from orders.notifier.port import NotificationError, NotifierPort


class FakeNotifier(NotifierPort):
    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification dispatch failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification dispatch failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, order: dict, event_kind: str) -> None:
        if not self.should_succeed:
            raise NotificationError(self.failure_reason)
        self.sent.append({"order": order, "event_kind": event_kind})

    def kinds_for(self, order_id: str) -> list[str]:
        return [record["event_kind"] for record in self.sent if record["order"]["id"] == order_id]

    def reset(self):
        """Clear recorded notifications (useful between tests)."""
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification dispatch failed"
