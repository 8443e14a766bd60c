"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    item_count = Integer(required=True)
    seller_ids = String(required=True)  # comma-separated
    payment_method = String(required=True)
    subtotal = Float(required=True)
    shipping_charge = Float(required=True)
    discount = Float(required=True)
    coupon = String()
    grand_total = Float(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderItemStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    order_status = String(required=True)
    tracking_id = String()
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    reason = String(required=True)
    payment_status = String(required=True)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class PaymentIntentCreated:
    __version__ = 1

    order_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    amount = Integer(required=True)  # minor units
    currency = String(required=True)


@marketplace.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    gateway_order_id = String()
    gateway_payment_id = String()
    reason = String(required=True)
    failed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class PaymentCaptured:
    __version__ = 1

    order_id = Identifier(required=True)
    method = String(required=True)
    amount = Float(required=True)
    gateway_payment_id = String()
    paid_at = DateTime(required=True)
