"""Application tests for payment intents and callback verification."""

import pytest
from protean import current_domain

from marketplace.catalogue.product import Product
from marketplace.ordering.cart.cart import Cart
from marketplace.ordering.order.cancellation import CancelOrder
from marketplace.ordering.order.order import Order, PaymentStatus
from marketplace.payments.reconciliation import CaseKind, ReconciliationCase
from marketplace.payments.settlement import amount_in_minor_units, create_payment_intent, verify_payment
from marketplace.shared.errors import (
    GatewayUnavailable,
    InvalidOrderState,
    NotAuthorized,
    OrderAlreadyPaid,
    ReconciliationRequired,
    SignatureMismatch,
    WrongPaymentMethod,
)


@pytest.fixture()
def online_order(make_product, add_to_cart, place):
    add_to_cart(make_product(price=400.0, stock=5), 1)
    return place(payment_method="razorpay")


def _verify(order, buyer_id, gateway, payment_id="pay_001", signature=None):
    intent_id = current_domain.repository_for(Order).get(order.id).payment_info.gateway_order_id
    return verify_payment(
        order_id=order.id,
        buyer_id=buyer_id,
        gateway_order_id=intent_id,
        gateway_payment_id=payment_id,
        signature=signature if signature is not None else gateway.sign_payment(intent_id, payment_id),
    )


class TestAmountConversion:
    def test_minor_units(self):
        assert amount_in_minor_units(440.0) == 44000
        assert amount_in_minor_units(19.99) == 1999


class TestCreatePaymentIntent:
    def test_intent_recorded_on_order(self, online_order, buyer_id, fake_gateway):
        details = create_payment_intent(online_order.id, buyer_id)

        assert details.amount == 44000
        assert details.currency == "INR"
        assert details.key_id == fake_gateway.key_id
        order = current_domain.repository_for(Order).get(online_order.id)
        assert order.payment_info.gateway_order_id == details.gateway_order_id
        assert fake_gateway.calls[0]["receipt"] == f"order_{online_order.id}"

    def test_cod_order_rejected(self, make_product, add_to_cart, place, buyer_id):
        add_to_cart(make_product(), 1)
        order = place(payment_method="cod")
        with pytest.raises(WrongPaymentMethod):
            create_payment_intent(order.id, buyer_id)

    def test_other_buyer_rejected(self, online_order):
        with pytest.raises(NotAuthorized):
            create_payment_intent(online_order.id, "buyer-999")

    def test_paid_order_rejected(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)
        _verify(online_order, buyer_id, fake_gateway)
        with pytest.raises(OrderAlreadyPaid):
            create_payment_intent(online_order.id, buyer_id)

    def test_cancelled_order_rejected(self, online_order, buyer_id):
        current_domain.process(CancelOrder(order_id=online_order.id, buyer_id=buyer_id), asynchronous=False)
        with pytest.raises(InvalidOrderState):
            create_payment_intent(online_order.id, buyer_id)

    def test_gateway_down_leaves_order_untouched(self, online_order, buyer_id, fake_gateway):
        fake_gateway.configure(should_succeed=False)
        with pytest.raises(GatewayUnavailable):
            create_payment_intent(online_order.id, buyer_id)
        assert current_domain.repository_for(Order).get(online_order.id).payment_info.gateway_order_id is None


class TestVerifyPayment:
    def test_valid_signature_marks_paid(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)

        order = _verify(online_order, buyer_id, fake_gateway, payment_id="pay_123")

        assert order.payment_info.status == PaymentStatus.PAID.value
        assert order.payment_info.gateway_payment_id == "pay_123"
        assert order.payment_info.paid_at is not None

    def test_verify_does_not_touch_stock(self, make_product, add_to_cart, place, buyer_id, fake_gateway):
        product = make_product(stock=5)
        add_to_cart(product, 2)
        order = place(payment_method="razorpay")
        create_payment_intent(order.id, buyer_id)

        _verify(order, buyer_id, fake_gateway)

        assert current_domain.repository_for(Product).get(product.id).stock == 3

    def test_verify_is_idempotent(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)
        first = _verify(online_order, buyer_id, fake_gateway)
        second = _verify(online_order, buyer_id, fake_gateway)

        assert second.payment_info.status == PaymentStatus.PAID.value
        assert second.payment_info.paid_at == first.payment_info.paid_at
        assert second.payment_info.gateway_payment_id == first.payment_info.gateway_payment_id

    def test_tampered_signature_rejected(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)

        with pytest.raises(SignatureMismatch) as exc:
            _verify(online_order, buyer_id, fake_gateway, signature="0" * 64)

        assert exc.value.message == "Payment verification failed"
        order = current_domain.repository_for(Order).get(online_order.id)
        assert order.payment_info.status == PaymentStatus.FAILED.value

    def test_tampered_signature_keeps_stock(self, make_product, add_to_cart, place, buyer_id, fake_gateway):
        product = make_product(stock=5)
        add_to_cart(product, 1)
        order = place(payment_method="razorpay")
        create_payment_intent(order.id, buyer_id)

        with pytest.raises(SignatureMismatch):
            _verify(order, buyer_id, fake_gateway, signature="forged")

        assert current_domain.repository_for(Product).get(product.id).stock == 4

    def test_mismatched_gateway_order_rejected(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)
        with pytest.raises(SignatureMismatch):
            verify_payment(
                order_id=online_order.id,
                buyer_id=buyer_id,
                gateway_order_id="order_someone_else",
                gateway_payment_id="pay_1",
                signature=fake_gateway.sign_payment("order_someone_else", "pay_1"),
            )

    def test_retry_after_failure_succeeds(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)
        with pytest.raises(SignatureMismatch):
            _verify(online_order, buyer_id, fake_gateway, signature="forged")

        order = _verify(online_order, buyer_id, fake_gateway)
        assert order.payment_info.status == PaymentStatus.PAID.value

    def test_cod_order_rejected(self, make_product, add_to_cart, place, buyer_id, fake_gateway):
        add_to_cart(make_product(), 1)
        order = place(payment_method="cod")
        with pytest.raises(WrongPaymentMethod):
            verify_payment(order.id, buyer_id, "order_x", "pay_x", fake_gateway.sign_payment("order_x", "pay_x"))

    def test_verify_removes_purchased_lines_left_in_cart(
        self, make_product, add_to_cart, place, buyer_id, fake_gateway
    ):
        product = make_product(stock=5)
        add_to_cart(product, 1)
        order = place(payment_method="razorpay")
        create_payment_intent(order.id, buyer_id)
        # The buyer put the same product back before paying
        add_to_cart(product, 2)

        _verify(order, buyer_id, fake_gateway)

        cart = current_domain.repository_for(Cart).find_for_buyer(buyer_id)
        assert cart.items[0].quantity == 1


class TestCapturedForCancelledOrder:
    def test_payment_after_cancel_opens_case(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)
        current_domain.process(CancelOrder(order_id=online_order.id, buyer_id=buyer_id), asynchronous=False)

        with pytest.raises(ReconciliationRequired) as exc:
            _verify(online_order, buyer_id, fake_gateway, payment_id="pay_late")

        assert exc.value.message == "Payment captured; contact support for refund"
        cases = current_domain.repository_for(ReconciliationCase).find_for_order(online_order.id)
        assert len(cases) == 1
        assert cases[0].kind == CaseKind.CAPTURED_UNALLOCATABLE.value
        assert cases[0].gateway_payment_id == "pay_late"
        assert current_domain.repository_for(Order).get(online_order.id).is_paid is False

    def test_replayed_callback_opens_one_case(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)
        current_domain.process(CancelOrder(order_id=online_order.id, buyer_id=buyer_id), asynchronous=False)

        for _ in range(2):
            with pytest.raises(ReconciliationRequired):
                _verify(online_order, buyer_id, fake_gateway, payment_id="pay_late")

        assert len(current_domain.repository_for(ReconciliationCase).find_for_order(online_order.id)) == 1

    def test_cancelling_paid_order_opens_refund_case(self, online_order, buyer_id, fake_gateway):
        create_payment_intent(online_order.id, buyer_id)
        _verify(online_order, buyer_id, fake_gateway)

        current_domain.process(CancelOrder(order_id=online_order.id, buyer_id=buyer_id), asynchronous=False)

        order = current_domain.repository_for(Order).get(online_order.id)
        assert order.payment_info.status == PaymentStatus.REFUNDED.value
        cases = current_domain.repository_for(ReconciliationCase).find_for_order(online_order.id)
        assert [c.kind for c in cases] == [CaseKind.REFUND_DUE.value]
        assert cases[0].amount == order.grand_total
