"""Marketplace domain: buyers, sellers, carts, orders and payment settlement.

A single Protean domain covers products, coupons, carts and orders so that
order placement can commit stock, redeem a coupon, clear the cart and persist
the order inside one Unit of Work.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
