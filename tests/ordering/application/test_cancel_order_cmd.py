"""Application tests for buyer cancellation and stock restitution."""

import pytest
from protean import current_domain

from marketplace.catalogue.product import Product
from marketplace.ordering.order.cancellation import CancelOrder
from marketplace.ordering.order.fulfillment import UpdateItemStatus
from marketplace.ordering.order.order import DEFAULT_CANCEL_REASON, Order, OrderStatus
from marketplace.ordering.projections.seller_order_lines import SellerOrderLine
from marketplace.payments.reconciliation import ReconciliationCase
from marketplace.shared.errors import InvalidOrderState, NotAuthorized


def _cancel(order_id, buyer_id, reason=None):
    current_domain.process(CancelOrder(order_id=order_id, buyer_id=buyer_id, reason=reason), asynchronous=False)
    return current_domain.repository_for(Order).get(order_id)


def _move(order, item, seller_id, *statuses):
    for status in statuses:
        current_domain.process(
            UpdateItemStatus(order_id=order.id, item_id=item.id, seller_id=seller_id, status=status),
            asynchronous=False,
        )


class TestCancelOrder:
    def test_cancel_marks_everything_cancelled(self, make_product, add_to_cart, place, buyer_id):
        add_to_cart(make_product(name="A"), 1)
        add_to_cart(make_product(name="B"), 2)
        order = place()

        cancelled = _cancel(order.id, buyer_id, reason="Changed my mind")

        assert cancelled.order_status == OrderStatus.CANCELLED.value
        assert cancelled.cancel_reason == "Changed my mind"
        assert cancelled.cancelled_at is not None
        assert all(item.status == "cancelled" for item in cancelled.items)
        assert all(item.cancel_reason == "Changed my mind" for item in cancelled.items)

    def test_default_reason(self, make_product, add_to_cart, place, buyer_id):
        add_to_cart(make_product(), 1)
        order = place()
        assert _cancel(order.id, buyer_id).cancel_reason == DEFAULT_CANCEL_REASON

    def test_cancel_restores_stock(self, make_product, add_to_cart, place, buyer_id):
        product = make_product(stock=5)
        add_to_cart(product, 3)
        order = place()

        _cancel(order.id, buyer_id)

        stored = current_domain.repository_for(Product).get(product.id)
        assert stored.stock == 5
        assert stored.total_sold == 0

    def test_cancel_restores_shipped_and_delivered_items(self, make_product, add_to_cart, place, buyer_id):
        first = make_product(name="Shipped", seller_id="seller-001", stock=5)
        second = make_product(name="Delivered", seller_id="seller-002", stock=5)
        add_to_cart(first, 1)
        add_to_cart(second, 2)
        order = place()
        shipped_item = next(i for i in order.items if str(i.product_id) == str(first.id))
        delivered_item = next(i for i in order.items if str(i.product_id) == str(second.id))
        _move(order, shipped_item, "seller-001", "confirmed", "shipped")
        _move(order, delivered_item, "seller-002", "confirmed", "shipped", "delivered")

        _cancel(order.id, buyer_id)

        repo = current_domain.repository_for(Product)
        assert repo.get(first.id).stock == 5
        assert repo.get(second.id).stock == 5

    def test_cancel_updates_seller_lines(self, make_product, add_to_cart, place, buyer_id):
        add_to_cart(make_product(), 1)
        order = place()
        _cancel(order.id, buyer_id)

        line = current_domain.repository_for(SellerOrderLine).get(str(order.items[0].id))
        assert line.item_status == "cancelled"

    def test_cancel_twice_rejected(self, make_product, add_to_cart, place, buyer_id):
        add_to_cart(make_product(), 1)
        order = place()
        _cancel(order.id, buyer_id)

        with pytest.raises(InvalidOrderState) as exc:
            _cancel(order.id, buyer_id)
        assert exc.value.message == "Cannot cancel this order"

    def test_delivered_order_cannot_be_cancelled(self, make_product, add_to_cart, place, buyer_id, seller_id):
        product = make_product(stock=5)
        add_to_cart(product, 1)
        order = place()
        _move(order, order.items[0], seller_id, "confirmed", "shipped", "delivered")

        with pytest.raises(InvalidOrderState):
            _cancel(order.id, buyer_id)
        assert current_domain.repository_for(Product).get(product.id).stock == 4

    def test_other_buyer_rejected(self, make_product, add_to_cart, place):
        add_to_cart(make_product(), 1)
        order = place()
        with pytest.raises(NotAuthorized):
            _cancel(order.id, "buyer-999")

    def test_missing_product_does_not_block_cancel(self, make_product, add_to_cart, place, buyer_id):
        product = make_product()
        add_to_cart(product, 1)
        order = place()
        current_domain.repository_for(Product)._dao.delete(current_domain.repository_for(Product).get(product.id))

        assert _cancel(order.id, buyer_id).order_status == OrderStatus.CANCELLED.value

    def test_unpaid_cancel_opens_no_refund_case(self, make_product, add_to_cart, place, buyer_id):
        add_to_cart(make_product(), 1)
        order = place(payment_method="razorpay")
        _cancel(order.id, buyer_id)
        assert current_domain.repository_for(ReconciliationCase).find_for_order(order.id) == []
