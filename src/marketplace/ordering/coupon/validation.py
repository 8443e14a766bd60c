"""Coupon validation query behind ``POST /coupons/validate``."""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from marketplace.ordering.coupon.coupon import Coupon
from marketplace.shared.errors import CouponInvalid, CouponNotFound


@dataclass(frozen=True)
class CouponQuote:
    code: str
    coupon_type: str
    value: float
    discount: float
    description: str | None


def validate_coupon(code: str, buyer_id: str, order_amount: float) -> CouponQuote:
    """Quote the discount ``code`` would give ``buyer_id`` on ``order_amount``.

    Raises CouponNotFound for unknown or switched-off codes and CouponInvalid
    with the first failing check otherwise. Nothing is redeemed.
    """
    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None or not coupon.is_active:
        raise CouponNotFound(code)

    validity = coupon.check_validity(buyer_id, order_amount)
    if not validity.valid:
        raise CouponInvalid(validity.reason)

    return CouponQuote(
        code=coupon.code,
        coupon_type=coupon.coupon_type,
        value=coupon.value,
        discount=coupon.calculate_discount(order_amount),
        description=coupon.description,
    )


def list_coupons() -> list[Coupon]:
    return current_domain.repository_for(Coupon).find_all()
