"""Payment settlement: gateway intent creation and callback verification.

Stock is committed once, when the order is placed, for every payment method.
Settlement therefore never touches stock: it records the gateway intent,
verifies the signed callback and flips the payment to paid.

Each step that writes runs in its own Unit of Work, and none of them is open
while the gateway is being called. A rejected callback is recorded as a
failed payment before the error is raised, so the failure survives the
rollback of the request.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace import settings
from marketplace.domain import marketplace
from marketplace.ordering.cart.cart import Cart
from marketplace.ordering.order.order import Order, OrderStatus, PaymentMethod
from marketplace.payments.gateway import get_gateway
from marketplace.payments.reconciliation import CaseKind, OpenReconciliationCase
from marketplace.shared.errors import ReconciliationRequired, SignatureMismatch, WrongPaymentMethod

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class RecordPaymentIntent:
    order_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=255)
    amount = Integer(required=True, min_value=0)
    currency = String(required=True, max_length=3)


@marketplace.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=255)
    gateway_order_id = String(max_length=255)
    gateway_payment_id = String(max_length=255)


@marketplace.command(part_of="Order")
class SettlePayment:
    order_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=255)
    gateway_payment_id = String(required=True, max_length=255)


@marketplace.command_handler(part_of=Order)
class SettlementHandler:
    @handle(RecordPaymentIntent)
    def record_payment_intent(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_intent(command.gateway_order_id, command.amount, command.currency)
        repo.add(order)

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_payment_failed(
            command.reason,
            gateway_order_id=command.gateway_order_id,
            gateway_payment_id=command.gateway_payment_id,
        )
        repo.add(order)

    @handle(SettlePayment)
    def settle_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        # A concurrent delivery of the same callback may have settled it already
        if order.is_paid:
            return

        if order.order_status == OrderStatus.CANCELLED.value:
            raise ReconciliationRequired(order.id, "Order was cancelled before the payment was captured")

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.find_for_buyer(order.buyer_id)
        purchased = [(item.product_id, item.size, item.color, item.quantity) for item in order.items]
        if cart is not None and cart.remove_purchased(purchased):
            cart_repo.add(cart)

        order.confirm_gateway_payment(command.gateway_order_id, command.gateway_payment_id)
        repo.add(order)


@dataclass(frozen=True)
class IntentDetails:
    gateway_order_id: str
    amount: int
    currency: str
    key_id: str


def amount_in_minor_units(amount: float) -> int:
    return int(round(amount * 100))


def create_payment_intent(order_id, buyer_id) -> IntentDetails:
    """Create the gateway intent the buyer will pay against."""
    order = current_domain.repository_for(Order).get(order_id)
    order.ensure_buyer(buyer_id)
    order.ensure_payable_online()

    gateway = get_gateway()
    amount = amount_in_minor_units(order.grand_total)
    intent = gateway.create_intent(
        amount=amount,
        currency=settings.CURRENCY,
        receipt=f"order_{order.id}",
        notes={"order_id": order.id, "buyer_id": str(order.buyer_id)},
    )

    current_domain.process(
        RecordPaymentIntent(
            order_id=order.id,
            gateway_order_id=intent.gateway_order_id,
            amount=intent.amount,
            currency=intent.currency,
        ),
        asynchronous=False,
    )
    logger.info("Payment intent created", order_id=order.id, gateway_order_id=intent.gateway_order_id, amount=amount)
    return IntentDetails(
        gateway_order_id=intent.gateway_order_id,
        amount=intent.amount,
        currency=intent.currency,
        key_id=gateway.key_id,
    )


def verify_payment(order_id, buyer_id, gateway_order_id, gateway_payment_id, signature) -> Order:
    """Verify a gateway callback and mark the order paid.

    Safe to call repeatedly: once the order is paid, later calls return it
    untouched.
    """
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.ensure_buyer(buyer_id)

    if order.is_paid:
        logger.info("Payment already verified", order_id=order.id, gateway_payment_id=gateway_payment_id)
        return order
    if order.payment_info.method != PaymentMethod.RAZORPAY.value:
        raise WrongPaymentMethod(order.payment_info.method)

    reason = None
    if gateway_order_id != order.payment_info.gateway_order_id:
        reason = "Gateway order does not match this order"
    elif not get_gateway().verify_signature(gateway_order_id, gateway_payment_id, signature):
        reason = "Signature mismatch"

    if reason:
        current_domain.process(
            RecordPaymentFailure(
                order_id=order.id,
                reason=reason,
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
            ),
            asynchronous=False,
        )
        logger.warning("Payment verification failed", order_id=order.id, reason=reason)
        raise SignatureMismatch()

    try:
        current_domain.process(
            SettlePayment(
                order_id=order.id,
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
            ),
            asynchronous=False,
        )
    except ReconciliationRequired as exc:
        case_id = current_domain.process(
            OpenReconciliationCase(
                order_id=order.id,
                kind=CaseKind.CAPTURED_UNALLOCATABLE.value,
                amount=order.grand_total,
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                detail=exc.reason,
            ),
            asynchronous=False,
        )
        logger.error(
            "Payment captured for an order that cannot be fulfilled",
            order_id=order.id,
            gateway_payment_id=gateway_payment_id,
            case_id=case_id,
            reason=exc.reason,
        )
        raise

    logger.info("Payment verified", order_id=order.id, gateway_payment_id=gateway_payment_id)
    return repo.get(order.id)
