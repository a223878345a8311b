"""Carrier port — what tracking ingestion needs from a shipping carrier."""

from abc import ABC, abstractmethod


class CarrierPort(ABC):
    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook callback is authentic.

        Returns:
            True if the signature is valid, False otherwise.
        """
        ...
