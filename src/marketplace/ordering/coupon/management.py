"""Coupon administration: commands and handler.

Updates go through an explicit allow-list: each updatable field maps to the
setter that applies it. Anything not in the map (the code, usage counters,
the redemption list) cannot be changed from outside. The whole batch is
applied inside ``atomic_change``, so the coupon's invariants are checked
against the final state rather than field by field.
"""

import json
from datetime import UTC, datetime

from protean import atomic_change, handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.ordering.coupon.coupon import Coupon, CouponType
from marketplace.ordering.coupon.events import CouponUpdated


def _setter(field_name):
    def apply(coupon, value):
        setattr(coupon, field_name, value)

    return apply


def _set_coupon_type(coupon, value):
    if value not in {t.value for t in CouponType}:
        raise ValidationError({"coupon_type": [f"Unknown coupon type '{value}'"]})
    coupon.coupon_type = value


UPDATABLE_FIELDS = {
    "description": _setter("description"),
    "coupon_type": _set_coupon_type,
    "value": _setter("value"),
    "min_order_amount": _setter("min_order_amount"),
    "max_discount": _setter("max_discount"),
    "usage_limit": _setter("usage_limit"),
    "per_user_limit": _setter("per_user_limit"),
    "valid_from": _setter("valid_from"),
    "valid_till": _setter("valid_till"),
    "is_active": _setter("is_active"),
}


@marketplace.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    description = String(max_length=500)
    coupon_type = String(required=True, choices=CouponType)
    value = Float(required=True, min_value=0.0)
    min_order_amount = Float(default=0.0, min_value=0.0)
    max_discount = Float(default=0.0, min_value=0.0)
    usage_limit = Integer(default=0, min_value=0)
    per_user_limit = Integer(default=1, min_value=1)
    valid_from = DateTime(required=True)
    valid_till = DateTime(required=True)
    is_active = Boolean(default=True)


@marketplace.command(part_of="Coupon")
class UpdateCoupon:
    code = String(required=True, max_length=50)
    changes = Text(required=True)  # JSON object of field -> new value


@marketplace.command_handler(part_of=Coupon)
class CouponManagementHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": ["Coupon code already exists"]})

        coupon = Coupon.create(
            code=command.code,
            coupon_type=command.coupon_type,
            value=command.value,
            valid_from=command.valid_from,
            valid_till=command.valid_till,
            description=command.description,
            min_order_amount=command.min_order_amount,
            max_discount=command.max_discount,
            usage_limit=command.usage_limit,
            per_user_limit=command.per_user_limit,
            is_active=command.is_active,
        )
        repo.add(coupon)
        return coupon.code

    @handle(UpdateCoupon)
    def update_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.find_by_code(command.code)
        if coupon is None:
            raise ObjectNotFoundError(f"Coupon {command.code} does not exist")

        requested = json.loads(command.changes)
        applied = sorted(field for field in requested if field in UPDATABLE_FIELDS)
        if not applied:
            return coupon.code

        now = datetime.now(UTC)
        with atomic_change(coupon):
            for field in applied:
                UPDATABLE_FIELDS[field](coupon, requested[field])
            coupon.updated_at = now

        coupon.raise_(CouponUpdated(code=coupon.code, changed_fields=",".join(applied), updated_at=now))
        repo.add(coupon)
        return coupon.code
