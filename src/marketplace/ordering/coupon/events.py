"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Coupon")
class CouponCreated:
    __version__ = 1

    code = String(required=True)
    coupon_type = String(required=True)
    value = Float(required=True)
    created_at = DateTime(required=True)


@marketplace.event(part_of="Coupon")
class CouponUpdated:
    __version__ = 1

    code = String(required=True)
    changed_fields = String(required=True)
    updated_at = DateTime(required=True)


@marketplace.event(part_of="Coupon")
class CouponRedeemed:
    __version__ = 1

    code = String(required=True)
    buyer_id = Identifier(required=True)
    used_count = Integer(required=True)
    redeemed_at = DateTime(required=True)
