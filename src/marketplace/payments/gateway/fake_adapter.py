"""Configurable fake payment gateway for development and testing.

No network calls: intents get generated ids and signatures use a local test
secret, so tests can produce valid callbacks with ``sign_payment``. It can
be told to fail intent creation to exercise the unavailable-gateway path.
"""

from uuid import uuid4

from marketplace.payments.gateway.port import PaymentGateway, PaymentIntent
from marketplace.payments.gateway.signature import sign
from marketplace.shared.errors import GatewayUnavailable


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, key_id: str = "rzp_test_fake", key_secret: str = "fake-gateway-secret") -> None:
        super().__init__(key_id, key_secret)
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_intent(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            }
        )
        if not self.should_succeed:
            raise GatewayUnavailable(self.failure_reason)

        return PaymentIntent(
            gateway_order_id=f"order_fake_{uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )

    def sign_payment(self, intent_id: str, payment_id: str) -> str:
        """Produce the signature the real gateway would send for this payment."""
        return sign(self.key_secret, intent_id, payment_id)
