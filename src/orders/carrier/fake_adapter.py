"""Fake carrier adapter for development and testing."""

from orders.carrier.port import CarrierPort


class FakeCarrier(CarrierPort):
    def __init__(self):
        self.accept_signatures = True

    def configure(self, accept_signatures: bool = True):
        self.accept_signatures = accept_signatures

    def verify_webhook_signature(self, _payload: str, _signature: str) -> bool:
        return self.accept_signatures

    def reset(self):
        self.accept_signatures = True
