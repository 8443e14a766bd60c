"""Coupon aggregate: discount codes with global and per-buyer usage limits.

Redemption is recorded on the coupon itself: ``used_by`` keeps one entry per
redemption (a buyer appears once for every use) and ``used_count`` counts
completed redemptions. Both only change through ``redeem``, which runs inside
the order placement Unit of Work.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.ordering.coupon.events import CouponCreated, CouponRedeemed
from marketplace.shared.errors import CouponInvalid


class CouponType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class CouponValidity:
    valid: bool
    reason: str | None = None


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@marketplace.aggregate
class Coupon:
    code = String(identifier=True, max_length=50)
    description = String(max_length=500)
    coupon_type = String(required=True, choices=CouponType)
    value = Float(required=True, min_value=0.0)
    min_order_amount = Float(default=0.0, min_value=0.0)
    max_discount = Float(default=0.0, min_value=0.0)
    usage_limit = Integer(default=0, min_value=0)
    used_count = Integer(default=0, min_value=0)
    per_user_limit = Integer(default=1, min_value=1)
    used_by = Text()  # JSON array of buyer ids, one entry per redemption
    valid_from = DateTime(required=True)
    valid_till = DateTime(required=True)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def percentage_must_not_exceed_100(self):
        if self.coupon_type == CouponType.PERCENTAGE.value and (self.value or 0.0) > 100:
            raise ValidationError({"value": ["Percentage coupons cannot exceed 100"]})

    @invariant.post
    def must_not_expire_before_it_starts(self):
        if self.valid_from and self.valid_till and _as_utc(self.valid_till) < _as_utc(self.valid_from):
            raise ValidationError({"valid_till": ["Coupon cannot expire before it starts"]})

    @classmethod
    def create(cls, code, coupon_type, value, valid_from, valid_till, **options):
        now = datetime.now(UTC)
        coupon = cls(
            code=code.strip().upper(),
            coupon_type=coupon_type,
            value=value,
            valid_from=valid_from,
            valid_till=valid_till,
            used_count=0,
            used_by=json.dumps([]),
            created_at=now,
            updated_at=now,
            **options,
        )
        coupon.raise_(
            CouponCreated(
                code=coupon.code,
                coupon_type=coupon.coupon_type,
                value=coupon.value,
                created_at=now,
            )
        )
        return coupon

    # -------------------------------------------------------------------
    # Usage
    # -------------------------------------------------------------------
    @property
    def redemptions(self) -> list[str]:
        return json.loads(self.used_by) if self.used_by else []

    def times_used_by(self, buyer_id) -> int:
        return sum(1 for entry in self.redemptions if entry == str(buyer_id))

    def check_validity(self, buyer_id, order_amount: float, now: datetime | None = None) -> CouponValidity:
        """Run the redemption checks in order and stop at the first failure."""
        now = _as_utc(now) or datetime.now(UTC)

        if not self.is_active:
            return CouponValidity(False, "Coupon is inactive")
        if now < _as_utc(self.valid_from):
            return CouponValidity(False, "Coupon is not yet valid")
        if now > _as_utc(self.valid_till):
            return CouponValidity(False, "Coupon has expired")
        if self.usage_limit and self.used_count >= self.usage_limit:
            return CouponValidity(False, "Coupon usage limit reached")
        if order_amount < (self.min_order_amount or 0.0):
            return CouponValidity(False, f"Minimum order amount is {self.min_order_amount:g}")
        if self.times_used_by(buyer_id) >= self.per_user_limit:
            return CouponValidity(False, "You have already used this coupon")
        return CouponValidity(True)

    def calculate_discount(self, order_amount: float) -> float:
        if self.coupon_type == CouponType.PERCENTAGE.value:
            discount = order_amount * self.value / 100
            if self.max_discount and self.max_discount > 0:
                discount = min(discount, self.max_discount)
        else:
            discount = self.value
        return round(max(min(discount, order_amount), 0.0), 2)

    def redeem(self, buyer_id) -> None:
        """Record one use by ``buyer_id``.

        Re-checks both limits so a stale validation cannot push the coupon
        past them.
        """
        if self.usage_limit and self.used_count >= self.usage_limit:
            raise CouponInvalid("Coupon usage limit reached")
        if self.times_used_by(buyer_id) >= self.per_user_limit:
            raise CouponInvalid("You have already used this coupon")

        now = datetime.now(UTC)
        self.used_by = json.dumps([*self.redemptions, str(buyer_id)])
        self.used_count += 1
        self.updated_at = now

        self.raise_(
            CouponRedeemed(
                code=self.code,
                buyer_id=str(buyer_id),
                used_count=self.used_count,
                redeemed_at=now,
            )
        )


@marketplace.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str | None) -> Coupon | None:
        if not code:
            return None
        return self._dao.query.filter(code=code.strip().upper()).all().first

    def find_all(self) -> list[Coupon]:
        return self._dao.query.order_by("code").all().items
