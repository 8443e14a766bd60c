"""Application tests for seller-driven item status updates."""

import pytest
from protean import current_domain

from marketplace.ordering.order.fulfillment import UpdateItemStatus
from marketplace.ordering.order.order import Order, OrderStatus, PaymentStatus
from marketplace.ordering.projections.seller_order_lines import SellerOrderLine
from marketplace.shared.errors import InvalidItemStatus, NotAuthorized


def _update(order_id, item_id, seller_id, status, tracking_id=None):
    current_domain.process(
        UpdateItemStatus(
            order_id=order_id,
            item_id=item_id,
            seller_id=seller_id,
            status=status,
            tracking_id=tracking_id,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Order).get(order_id)


class TestUpdateItemStatus:
    def test_confirm_item(self, make_product, add_to_cart, place, seller_id):
        add_to_cart(make_product(), 1)
        order = place()
        updated = _update(order.id, order.items[0].id, seller_id, "confirmed")
        assert updated.items[0].status == "confirmed"
        assert updated.order_status == OrderStatus.CONFIRMED.value

    def test_ship_with_tracking(self, make_product, add_to_cart, place, seller_id):
        add_to_cart(make_product(), 1)
        order = place()
        item_id = order.items[0].id
        _update(order.id, item_id, seller_id, "confirmed")
        updated = _update(order.id, item_id, seller_id, "shipped", tracking_id="DTDC-42")
        assert updated.items[0].tracking_id == "DTDC-42"
        assert updated.order_status == OrderStatus.SHIPPED.value

    def test_cod_paid_on_full_delivery(self, make_product, add_to_cart, place, seller_id):
        add_to_cart(make_product(), 1)
        order = place(payment_method="cod")
        item_id = order.items[0].id
        for status in ("confirmed", "shipped", "delivered"):
            updated = _update(order.id, item_id, seller_id, status)
        assert updated.order_status == OrderStatus.DELIVERED.value
        assert updated.payment_info.status == PaymentStatus.PAID.value

    def test_other_sellers_item_rejected(self, make_product, add_to_cart, place):
        add_to_cart(make_product(seller_id="seller-002"), 1)
        order = place()
        with pytest.raises(NotAuthorized):
            _update(order.id, order.items[0].id, "seller-001", "confirmed")

    def test_invalid_transition_rejected(self, make_product, add_to_cart, place, seller_id):
        add_to_cart(make_product(), 1)
        order = place()
        with pytest.raises(InvalidItemStatus):
            _update(order.id, order.items[0].id, seller_id, "shipped")
        assert current_domain.repository_for(Order).get(order.id).items[0].status == "pending"

    def test_seller_line_follows_item(self, make_product, add_to_cart, place, seller_id):
        add_to_cart(make_product(), 1)
        order = place()
        _update(order.id, order.items[0].id, seller_id, "confirmed")
        line = current_domain.repository_for(SellerOrderLine).get(str(order.items[0].id))
        assert line.item_status == "confirmed"
