"""Payment gateway port (abstract interface).

Defines the contract that gateway adapters implement, so the settlement
workflow can run against FakeGateway in development and tests and against
RazorpayGateway in production without code changes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from marketplace.payments.gateway.signature import signature_matches


@dataclass(frozen=True)
class PaymentIntent:
    """A gateway-side order the buyer pays against."""

    gateway_order_id: str
    amount: int  # minor currency units
    currency: str
    receipt: str
    status: str = "created"


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    def __init__(self, key_id: str, key_secret: str) -> None:
        self.key_id = key_id
        self.key_secret = key_secret

    @abstractmethod
    def create_intent(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> PaymentIntent:
        """Create a payment intent for ``amount`` minor units.

        Raises GatewayUnavailable when the gateway cannot be reached or refuses.
        """
        ...

    def verify_signature(self, intent_id: str, payment_id: str, signature: str) -> bool:
        """Check the callback signature: HMAC-SHA256 over ``intent_id|payment_id``."""
        return signature_matches(self.key_secret, intent_id, payment_id, signature)
