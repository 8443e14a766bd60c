"""Order aggregate (CQRS): what was bought, from whom, at what price.

An order is created once by the placement workflow and never deleted. After
placement only two things move: per-item fulfillment status (driven by the
owning seller, or by the buyer cancelling) and the payment info (driven by
settlement). The order-level status is always derived from item statuses.

Item State Machine:
    PENDING → CONFIRMED → SHIPPED → DELIVERED → RETURNED
    PENDING / CONFIRMED / SHIPPED → CANCELLED

Order status derivation (first match wins):
    all items delivered  → DELIVERED (cod orders are marked paid)
    all items cancelled  → CANCELLED
    any item shipped     → SHIPPED
    any item confirmed   → CONFIRMED
    otherwise            → unchanged
"""

import secrets
import string
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from marketplace.domain import marketplace
from marketplace.ordering.order.events import (
    OrderCancelled,
    OrderItemStatusChanged,
    OrderPlaced,
    PaymentCaptured,
    PaymentFailed,
    PaymentIntentCreated,
)
from marketplace.shared.errors import (
    InvalidItemStatus,
    InvalidOrderState,
    NotAuthorized,
    OrderAlreadyPaid,
    WrongPaymentMethod,
)
from marketplace.shared.pagination import Page, offset_for


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ItemStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentMethod(Enum):
    COD = "cod"
    RAZORPAY = "razorpay"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


_ITEM_TRANSITIONS = {
    ItemStatus.PENDING: {ItemStatus.CONFIRMED, ItemStatus.CANCELLED},
    ItemStatus.CONFIRMED: {ItemStatus.SHIPPED, ItemStatus.CANCELLED},
    ItemStatus.SHIPPED: {ItemStatus.DELIVERED, ItemStatus.CANCELLED},
    ItemStatus.DELIVERED: {ItemStatus.RETURNED},
    ItemStatus.CANCELLED: set(),  # Terminal
    ItemStatus.RETURNED: set(),  # Terminal
}

# Buyers may cancel until the order is delivered or already cancelled
_BUYER_CANCELLABLE = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
}

DEFAULT_CANCEL_REASON = "Cancelled by buyer"

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_code(now: datetime | None = None) -> str:
    """Human-readable order code, e.g. ``MKT-20261018-7KQ2ZD``."""
    now = now or datetime.now(UTC)
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))
    return f"MKT-{now:%Y%m%d}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class ShippingAddress:
    """Where the order goes, captured at placement and never updated."""

    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    pincode = String(required=True, max_length=12)
    landmark = String(max_length=255)


@marketplace.value_object(part_of="Order")
class PaymentInfo:
    method = String(required=True, choices=PaymentMethod)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    gateway_order_id = String(max_length=255)
    gateway_payment_id = String(max_length=255)
    paid_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """One purchased line, with the product data copied at purchase time."""

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image = String(max_length=1000)
    price = Float(required=True, min_value=0.0)
    mrp = Float(default=0.0)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=50, default="")
    color = String(max_length=50, default="")
    status = String(choices=ItemStatus, default=ItemStatus.PENDING.value)
    tracking_id = String(max_length=255)
    delivered_at = DateTime()
    cancelled_at = DateTime()
    cancel_reason = String(max_length=500)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    id = String(identifier=True, max_length=32)
    buyer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    payment_info = ValueObject(PaymentInfo)
    subtotal = Float(required=True, min_value=0.0)
    shipping_charge = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    coupon = String(max_length=50, default="")
    grand_total = Float(required=True)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    notes = Text()
    placed_at = DateTime()
    updated_at = DateTime()
    cancelled_at = DateTime()
    cancel_reason = String(max_length=500)

    @invariant.post
    def grand_total_must_match_components(self):
        expected = (self.subtotal or 0.0) + (self.shipping_charge or 0.0) - (self.discount or 0.0)
        if abs((self.grand_total or 0.0) - expected) > 0.005:
            raise ValidationError({"grand_total": ["Grand total must equal subtotal + shipping - discount"]})

    @invariant.post
    def discount_must_not_exceed_subtotal(self):
        if (self.discount or 0.0) > (self.subtotal or 0.0):
            raise ValidationError({"discount": ["Discount cannot exceed the subtotal"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        buyer_id,
        items,
        shipping_address,
        payment_method,
        subtotal,
        shipping_charge,
        discount=0.0,
        coupon="",
        notes=None,
        order_id=None,
    ):
        """Build a new pending order.

        Args:
            buyer_id: The buyer placing the order.
            items: List of OrderItem entities (already priced).
            shipping_address: Dict matching ShippingAddress.
            payment_method: PaymentMethod value.
            subtotal, shipping_charge, discount: Money amounts; grand total is derived.
            coupon: Applied coupon code, empty when none.
            order_id: Pre-generated order code; generated when omitted.
        """
        if not items:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        subtotal = round(subtotal, 2)
        shipping_charge = round(shipping_charge, 2)
        discount = round(discount, 2)

        order = cls(
            id=order_id or generate_order_code(now),
            buyer_id=buyer_id,
            items=items,
            shipping_address=ShippingAddress(**shipping_address),
            payment_info=PaymentInfo(method=payment_method, status=PaymentStatus.PENDING.value),
            subtotal=subtotal,
            shipping_charge=shipping_charge,
            discount=discount,
            coupon=coupon or "",
            grand_total=round(subtotal + shipping_charge - discount, 2),
            order_status=OrderStatus.PENDING.value,
            notes=notes,
            placed_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=order.id,
                buyer_id=str(buyer_id),
                item_count=len(items),
                seller_ids=",".join(sorted({str(item.seller_id) for item in items})),
                payment_method=payment_method,
                subtotal=subtotal,
                shipping_charge=shipping_charge,
                discount=discount,
                coupon=coupon or "",
                grand_total=order.grand_total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_paid(self) -> bool:
        return self.payment_info.status == PaymentStatus.PAID.value

    @property
    def seller_ids(self) -> set[str]:
        return {str(item.seller_id) for item in self.items}

    def has_items_from(self, seller_id) -> bool:
        return str(seller_id) in self.seller_ids

    def find_item(self, item_id) -> OrderItem:
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ObjectNotFoundError("Order item not found")
        return item

    def ensure_buyer(self, buyer_id) -> None:
        if str(self.buyer_id) != str(buyer_id):
            raise NotAuthorized()

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def update_item_status(self, item_id, seller_id, status, tracking_id=None):
        """Move one item along the fulfillment state machine on behalf of its seller."""
        try:
            target = ItemStatus(status)
        except ValueError:
            raise InvalidItemStatus("Invalid status") from None

        item = self.find_item(item_id)
        if str(item.seller_id) != str(seller_id):
            raise NotAuthorized()

        current = ItemStatus(item.status)
        if target not in _ITEM_TRANSITIONS[current]:
            raise InvalidItemStatus(f"Cannot move item from {current.value} to {target.value}")

        now = datetime.now(UTC)
        item.status = target.value
        if tracking_id:
            item.tracking_id = tracking_id
        if target == ItemStatus.DELIVERED:
            item.delivered_at = now
        elif target == ItemStatus.CANCELLED:
            item.cancelled_at = now

        self._derive_order_status(now)
        self.updated_at = now

        self.raise_(
            OrderItemStatusChanged(
                order_id=self.id,
                item_id=str(item.id),
                seller_id=str(seller_id),
                previous_status=current.value,
                new_status=target.value,
                order_status=self.order_status,
                tracking_id=item.tracking_id,
                changed_at=now,
            )
        )

    def _derive_order_status(self, now):
        statuses = [ItemStatus(i.status) for i in self.items]

        if all(s == ItemStatus.DELIVERED for s in statuses):
            self.order_status = OrderStatus.DELIVERED.value
            if self.payment_info.method == PaymentMethod.COD.value and not self.is_paid:
                self._set_payment(status=PaymentStatus.PAID.value, paid_at=now)
                self.raise_(
                    PaymentCaptured(
                        order_id=self.id,
                        method=PaymentMethod.COD.value,
                        amount=self.grand_total,
                        paid_at=now,
                    )
                )
        elif all(s == ItemStatus.CANCELLED for s in statuses):
            self.order_status = OrderStatus.CANCELLED.value
        elif any(s == ItemStatus.SHIPPED for s in statuses):
            self.order_status = OrderStatus.SHIPPED.value
        elif any(s == ItemStatus.CONFIRMED for s in statuses):
            self.order_status = OrderStatus.CONFIRMED.value

    def cancel(self, buyer_id, reason=None):
        """Buyer cancellation: every item is cancelled, whatever its state.

        Returns the items whose stock must be restored, which is all of them.
        """
        self.ensure_buyer(buyer_id)
        if OrderStatus(self.order_status) not in _BUYER_CANCELLABLE:
            raise InvalidOrderState("Cannot cancel this order")

        now = datetime.now(UTC)
        reason = reason or DEFAULT_CANCEL_REASON
        for item in self.items:
            item.status = ItemStatus.CANCELLED.value
            item.cancelled_at = now
            item.cancel_reason = reason

        self.order_status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self.cancel_reason = reason
        if self.is_paid and self.payment_info.method == PaymentMethod.RAZORPAY.value:
            self._set_payment(status=PaymentStatus.REFUNDED.value)
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=self.id,
                buyer_id=str(self.buyer_id),
                reason=reason,
                payment_status=self.payment_info.status,
                cancelled_at=now,
            )
        )
        return list(self.items)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def _set_payment(self, **changes):
        current = {
            "method": self.payment_info.method,
            "status": self.payment_info.status,
            "gateway_order_id": self.payment_info.gateway_order_id,
            "gateway_payment_id": self.payment_info.gateway_payment_id,
            "paid_at": self.payment_info.paid_at,
        }
        current.update(changes)
        self.payment_info = PaymentInfo(**current)

    def ensure_payable_online(self) -> None:
        if self.is_paid:
            raise OrderAlreadyPaid()
        if self.payment_info.method != PaymentMethod.RAZORPAY.value:
            raise WrongPaymentMethod(self.payment_info.method)
        if self.order_status == OrderStatus.CANCELLED.value:
            raise InvalidOrderState("Cannot pay for a cancelled order")

    def record_payment_intent(self, gateway_order_id, amount, currency):
        self.ensure_payable_online()
        self._set_payment(gateway_order_id=gateway_order_id, status=PaymentStatus.PENDING.value)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PaymentIntentCreated(
                order_id=self.id,
                gateway_order_id=gateway_order_id,
                amount=amount,
                currency=currency,
            )
        )

    def mark_payment_failed(self, reason, gateway_order_id=None, gateway_payment_id=None):
        if self.is_paid:
            return
        now = datetime.now(UTC)
        self._set_payment(status=PaymentStatus.FAILED.value)
        self.updated_at = now
        self.raise_(
            PaymentFailed(
                order_id=self.id,
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                reason=reason,
                failed_at=now,
            )
        )

    def confirm_gateway_payment(self, gateway_order_id, gateway_payment_id):
        if self.is_paid:
            return
        now = datetime.now(UTC)
        self._set_payment(
            status=PaymentStatus.PAID.value,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            paid_at=now,
        )
        self.updated_at = now
        self.raise_(
            PaymentCaptured(
                order_id=self.id,
                method=self.payment_info.method,
                amount=self.grand_total,
                gateway_payment_id=gateway_payment_id,
                paid_at=now,
            )
        )


@marketplace.repository(part_of=Order)
class OrderRepository:
    """Order lookups backing the buyer, seller and admin listings.

    Listings are newest first.
    """

    def code_taken(self, order_id: str) -> bool:
        return self._dao.query.filter(id=order_id).all().total > 0

    def find_for_buyer(self, buyer_id, status=None, page=1, limit=10) -> Page:
        filters = {"buyer_id": str(buyer_id)}
        if status:
            filters["order_status"] = status
        return self._page(filters, page, limit)

    def find_all(self, status=None, search=None, page=1, limit=20) -> Page:
        filters = {}
        if status:
            filters["order_status"] = status
        if search:
            filters["id__contains"] = search.strip().upper()
        return self._page(filters, page, limit)

    def find_many(self, order_ids) -> list[Order]:
        return [self.get(order_id) for order_id in order_ids]

    def _page(self, filters, page, limit) -> Page:
        query = self._dao.query
        if filters:
            query = query.filter(**filters)
        result = query.order_by("-placed_at").offset(offset_for(page, limit)).limit(limit).all()
        return Page(items=result.items, page=page, limit=limit, total=result.total)
