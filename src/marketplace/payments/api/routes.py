"""FastAPI routes for the Payments domain: gateway intents, callbacks, reconciliation."""

from fastapi import APIRouter, Depends, HTTPException
from protean.utils.globals import current_domain

from marketplace import settings
from marketplace.ordering.api.schemas import OrderResponse
from marketplace.payments.api.schemas import (
    ConfigureGatewayRequest,
    CreatePaymentIntentRequest,
    GatewayConfigResponse,
    PaymentIntentResponse,
    ReconciliationCaseResponse,
    ResolveCaseRequest,
    SignPaymentRequest,
    SignPaymentResponse,
    VerifyPaymentRequest,
)
from marketplace.payments.gateway import get_gateway
from marketplace.payments.gateway.fake_adapter import FakeGateway
from marketplace.payments.reconciliation import ReconciliationCase, ResolveReconciliationCase
from marketplace.payments.settlement import create_payment_intent, verify_payment
from marketplace.shared.auth import Principal, admin_only, buyer_only

payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/create-order", response_model=PaymentIntentResponse)
def create_order(body: CreatePaymentIntentRequest, principal: Principal = Depends(buyer_only)):
    intent = create_payment_intent(body.order_id, principal.user_id)
    return PaymentIntentResponse(
        gateway_order_id=intent.gateway_order_id,
        amount=intent.amount,
        currency=intent.currency,
        key_id=intent.key_id,
    )


@payment_router.post("/verify-payment", response_model=OrderResponse)
async def verify(body: VerifyPaymentRequest, principal: Principal = Depends(buyer_only)) -> OrderResponse:
    order = verify_payment(
        order_id=body.order_id,
        buyer_id=principal.user_id,
        gateway_order_id=body.gateway_order_id,
        gateway_payment_id=body.gateway_payment_id,
        signature=body.signature,
    )
    return OrderResponse.from_order(order)


# ---------------------------------------------------------------------------
# Reconciliation queue (support staff)
# ---------------------------------------------------------------------------
@payment_router.get(
    "/reconciliation",
    response_model=list[ReconciliationCaseResponse],
    dependencies=[Depends(admin_only)],
)
async def open_cases() -> list[ReconciliationCaseResponse]:
    cases = current_domain.repository_for(ReconciliationCase).find_open()
    return [ReconciliationCaseResponse.from_case(case) for case in cases]


@payment_router.put(
    "/reconciliation/{case_id}/resolve",
    response_model=ReconciliationCaseResponse,
    dependencies=[Depends(admin_only)],
)
async def resolve_case(case_id: str, body: ResolveCaseRequest) -> ReconciliationCaseResponse:
    current_domain.process(ResolveReconciliationCase(case_id=case_id, resolution=body.resolution), asynchronous=False)
    return ReconciliationCaseResponse.from_case(current_domain.repository_for(ReconciliationCase).get(case_id))


# ---------------------------------------------------------------------------
# Fake gateway controls (non-production only)
# ---------------------------------------------------------------------------
def _fake_gateway() -> FakeGateway:
    if settings.is_production():
        raise HTTPException(status_code=403, detail="Gateway controls not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway controls only available for FakeGateway")
    return gateway


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Toggle FakeGateway success/failure for manual API testing."""
    gateway = _fake_gateway()
    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


@payment_router.post("/gateway/sign", response_model=SignPaymentResponse)
async def sign_payment(body: SignPaymentRequest) -> SignPaymentResponse:
    """Produce the callback signature the real gateway would send (FakeGateway only)."""
    gateway = _fake_gateway()
    return SignPaymentResponse(signature=gateway.sign_payment(body.gateway_order_id, body.gateway_payment_id))
