"""Tests for the per-item fulfillment state machine and derived order status."""

import pytest

from marketplace.ordering.order.events import OrderItemStatusChanged, PaymentCaptured
from marketplace.ordering.order.order import Order, OrderItem, OrderStatus, PaymentStatus
from marketplace.shared.errors import InvalidItemStatus, NotAuthorized

ADDRESS = {
    "name": "Asha Rao",
    "phone": "9800000000",
    "address_line1": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "pincode": "560001",
}


def _order(payment_method="cod", sellers=("seller-001",)):
    items = [
        OrderItem(product_id=f"prod-{i}", seller_id=seller, name=f"Item {i}", price=100.0, quantity=1)
        for i, seller in enumerate(sellers)
    ]
    return Order.place(
        buyer_id="buyer-001",
        items=items,
        shipping_address=ADDRESS,
        payment_method=payment_method,
        subtotal=100.0 * len(items),
        shipping_charge=0.0,
    )


def _advance(order, item, *statuses):
    for status in statuses:
        order.update_item_status(item.id, item.seller_id, status)


class TestTransitions:
    def test_pending_to_confirmed(self):
        order = _order()
        item = order.items[0]
        order.update_item_status(item.id, "seller-001", "confirmed")
        assert item.status == "confirmed"
        assert order.order_status == OrderStatus.CONFIRMED.value

    def test_full_forward_path(self):
        order = _order()
        item = order.items[0]
        _advance(order, item, "confirmed", "shipped", "delivered", "returned")
        assert item.status == "returned"

    def test_cannot_skip_states(self):
        order = _order()
        item = order.items[0]
        with pytest.raises(InvalidItemStatus) as exc:
            order.update_item_status(item.id, "seller-001", "delivered")
        assert exc.value.message == "Cannot move item from pending to delivered"
        assert item.status == "pending"

    def test_cancelled_is_terminal(self):
        order = _order()
        item = order.items[0]
        _advance(order, item, "cancelled")
        with pytest.raises(InvalidItemStatus):
            order.update_item_status(item.id, "seller-001", "confirmed")

    def test_delivered_cannot_be_cancelled(self):
        order = _order()
        item = order.items[0]
        _advance(order, item, "confirmed", "shipped", "delivered")
        with pytest.raises(InvalidItemStatus):
            order.update_item_status(item.id, "seller-001", "cancelled")

    def test_unknown_status(self):
        order = _order()
        with pytest.raises(InvalidItemStatus) as exc:
            order.update_item_status(order.items[0].id, "seller-001", "teleported")
        assert exc.value.message == "Invalid status"

    def test_other_seller_rejected(self):
        order = _order()
        with pytest.raises(NotAuthorized):
            order.update_item_status(order.items[0].id, "seller-999", "confirmed")

    def test_tracking_id_and_timestamps(self):
        order = _order()
        item = order.items[0]
        order.update_item_status(item.id, "seller-001", "confirmed")
        order.update_item_status(item.id, "seller-001", "shipped", tracking_id="TRK-1")
        order.update_item_status(item.id, "seller-001", "delivered")
        assert item.tracking_id == "TRK-1"
        assert item.delivered_at is not None

    def test_status_change_event(self):
        order = _order()
        order._events.clear()
        order.update_item_status(order.items[0].id, "seller-001", "confirmed")
        event = order._events[0]
        assert isinstance(event, OrderItemStatusChanged)
        assert event.previous_status == "pending"
        assert event.new_status == "confirmed"


class TestDerivedOrderStatus:
    def test_any_shipped_wins_over_confirmed(self):
        order = _order(sellers=("seller-001", "seller-002"))
        first, second = order.items
        _advance(order, first, "confirmed", "shipped")
        _advance(order, second, "confirmed")
        assert order.order_status == OrderStatus.SHIPPED.value

    def test_all_cancelled(self):
        order = _order(sellers=("seller-001", "seller-002"))
        for item in order.items:
            _advance(order, item, "cancelled")
        assert order.order_status == OrderStatus.CANCELLED.value

    def test_partial_cancel_keeps_status(self):
        order = _order(sellers=("seller-001", "seller-002"))
        first, _ = order.items
        _advance(order, first, "cancelled")
        assert order.order_status == OrderStatus.PENDING.value

    def test_all_delivered_marks_cod_paid(self):
        order = _order(sellers=("seller-001", "seller-002"))
        for item in order.items:
            _advance(order, item, "confirmed", "shipped", "delivered")
        assert order.order_status == OrderStatus.DELIVERED.value
        assert order.payment_info.status == PaymentStatus.PAID.value
        assert order.payment_info.paid_at is not None
        assert any(isinstance(e, PaymentCaptured) for e in order._events)

    def test_all_delivered_leaves_online_payment_alone(self):
        order = _order(payment_method="razorpay")
        _advance(order, order.items[0], "confirmed", "shipped", "delivered")
        assert order.order_status == OrderStatus.DELIVERED.value
        assert order.payment_info.status == PaymentStatus.PENDING.value
