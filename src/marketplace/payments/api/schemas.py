"""Pydantic request/response schemas for the Payments API."""

from datetime import datetime

from pydantic import Field

from marketplace.ordering.api.schemas import ApiModel


class CreatePaymentIntentRequest(ApiModel):
    order_id: str


class PaymentIntentResponse(ApiModel):
    gateway_order_id: str
    amount: int
    currency: str
    key_id: str


class VerifyPaymentRequest(ApiModel):
    order_id: str
    gateway_order_id: str
    gateway_payment_id: str
    signature: str


class ReconciliationCaseResponse(ApiModel):
    id: str
    order_id: str
    kind: str
    status: str
    amount: float
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    detail: str | None = None
    resolution: str | None = None
    opened_at: datetime | None = None
    resolved_at: datetime | None = None

    @classmethod
    def from_case(cls, case) -> "ReconciliationCaseResponse":
        return cls(
            id=str(case.id),
            order_id=str(case.order_id),
            kind=case.kind,
            status=case.status,
            amount=case.amount,
            gateway_order_id=case.gateway_order_id,
            gateway_payment_id=case.gateway_payment_id,
            detail=case.detail,
            resolution=case.resolution,
            opened_at=case.opened_at,
            resolved_at=case.resolved_at,
        )


class ResolveCaseRequest(ApiModel):
    resolution: str = Field(min_length=1, max_length=2000)


class ConfigureGatewayRequest(ApiModel):
    should_succeed: bool = True
    failure_reason: str = "Gateway unavailable"


class GatewayConfigResponse(ApiModel):
    gateway: str
    should_succeed: bool
    failure_reason: str


class SignPaymentRequest(ApiModel):
    gateway_order_id: str
    gateway_payment_id: str


class SignPaymentResponse(ApiModel):
    signature: str
