"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state, with no cross-user
sharing. State tracks ids returned by creation endpoints so follow-up
requests can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class SellerState:
    """Tracks the seller identity and the products it has listed."""

    seller_id: str | None = None
    product_ids: list[str] = field(default_factory=list)


@dataclass
class CheckoutState:
    """Tracks a buyer's journey from cart to a settled order."""

    buyer_id: str | None = None
    order_id: str | None = None
    gateway_order_id: str | None = None
    item_ids: list[str] = field(default_factory=list)
    payment_status: str = "pending"
