"""Razorpay gateway adapter.

Creates orders through the Razorpay REST API with HTTP basic auth. Callback
signatures use the shared HMAC scheme from the port.
"""

import requests
import structlog

from marketplace import settings
from marketplace.payments.gateway.port import PaymentGateway, PaymentIntent
from marketplace.shared.errors import GatewayUnavailable

logger = structlog.get_logger(__name__)

RAZORPAY_API_URL = "https://api.razorpay.com/v1"


class RazorpayGateway(PaymentGateway):
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = RAZORPAY_API_URL,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(key_id, key_secret)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GATEWAY_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def create_intent(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> PaymentIntent:
        payload = {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes or {}}
        try:
            response = self.session.post(
                f"{self.base_url}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Payment gateway unreachable", receipt=receipt, error=str(exc))
            raise GatewayUnavailable("Payment gateway unreachable") from exc

        if not response.ok:
            detail = _error_description(response)
            logger.error("Payment gateway rejected intent", receipt=receipt, status=response.status_code, detail=detail)
            raise GatewayUnavailable(f"Payment gateway error: {detail}")

        body = response.json()
        return PaymentIntent(
            gateway_order_id=body["id"],
            amount=body.get("amount", amount),
            currency=body.get("currency", currency),
            receipt=body.get("receipt", receipt),
            status=body.get("status", "created"),
        )


def _error_description(response) -> str:
    try:
        return response.json()["error"]["description"]
    except (ValueError, KeyError, TypeError):
        return response.text[:300] or str(response.status_code)
