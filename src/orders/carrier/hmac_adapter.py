"""Carrier adapter checking an HMAC-SHA256 signature over the raw webhook body."""

import hashlib
import hmac

from orders.carrier.port import CarrierPort


class HmacCarrier(CarrierPort):
    def __init__(self, secret: str):
        self._secret = secret.encode("utf-8")

    def sign(self, payload: str) -> str:
        return hmac.new(self._secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        if not signature:
            return False
        return hmac.compare_digest(self.sign(payload), signature)
