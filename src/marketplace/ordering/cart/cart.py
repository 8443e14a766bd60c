"""Cart aggregate (CQRS): one per buyer, consumed by order placement.

Line items snapshot the product price and MRP for display when they are
added; placement charges the catalogue price current at checkout. Items
whose product was deactivated or removed are pruned whenever the cart is
read.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartItemsPruned,
    CartQuantityUpdated,
)
from marketplace.shared.errors import InsufficientStock, ProductUnavailable


@marketplace.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=50, default="")
    color = String(max_length=50, default="")
    price = Float(required=True, min_value=0.0)
    mrp = Float(min_value=0.0)
    added_at = DateTime()

    def matches(self, product_id, size="", color="") -> bool:
        return (
            str(self.product_id) == str(product_id)
            and (self.size or "") == (size or "")
            and (self.color or "") == (color or "")
        )


@marketplace.aggregate
class Cart:
    buyer_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, buyer_id):
        now = datetime.now(UTC)
        return cls(buyer_id=buyer_id, created_at=now, updated_at=now)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def _find(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity, size="", color=""):
        """Add ``quantity`` of ``product``, merging with a matching line.

        A merged line is capped at the product's current stock.
        """
        if product is None or not product.is_active:
            raise ProductUnavailable(product.name if product else "Product")
        if product.stock < quantity:
            raise InsufficientStock(product.name)

        existing = next((i for i in self.items if i.matches(product.id, size, color)), None)
        now = datetime.now(UTC)

        if existing:
            existing.quantity = min(existing.quantity + quantity, product.stock)
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product.id,
                quantity=quantity,
                size=size or "",
                color=color or "",
                price=product.price,
                mrp=product.mrp,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                buyer_id=str(self.buyer_id),
                item_id=item_id,
                product_id=str(product.id),
                quantity=quantity,
            )
        )

    def update_item_quantity(self, item_id, quantity, product):
        """Change a line's quantity and refresh its price from the catalogue."""
        item = self._find(item_id)
        if product is None or not product.is_active:
            raise ProductUnavailable(product.name if product else "Product")
        if quantity > product.stock:
            raise InsufficientStock(product.name)

        previous = item.quantity
        item.quantity = quantity
        item.price = product.price
        item.mrp = product.mrp
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item.id),
                previous_quantity=previous,
                new_quantity=quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._find(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self):
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), buyer_id=str(self.buyer_id)))

    def prune(self, available_product_ids) -> list[str]:
        """Drop lines whose product is no longer available. Returns their product ids."""
        available = {str(pid) for pid in available_product_ids}
        stale = [item for item in self.items if str(item.product_id) not in available]
        if not stale:
            return []

        for item in stale:
            self.remove_items(item)
        removed = [str(item.product_id) for item in stale]
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemsPruned(cart_id=str(self.id), product_ids=",".join(removed)))
        return removed

    def remove_purchased(self, purchased) -> bool:
        """Take purchased quantities out of matching lines.

        ``purchased`` is an iterable of (product_id, size, color, quantity).
        Returns True when anything changed.
        """
        changed = False
        for product_id, size, color, quantity in purchased:
            item = next((i for i in self.items if i.matches(product_id, size, color)), None)
            if item is None:
                continue
            if item.quantity > quantity:
                item.quantity -= quantity
            else:
                self.remove_items(item)
            changed = True

        if changed:
            self.updated_at = datetime.now(UTC)
        return changed


@marketplace.repository(part_of=Cart)
class CartRepository:
    def find_for_buyer(self, buyer_id) -> Cart | None:
        return self._dao.query.filter(buyer_id=str(buyer_id)).all().first

    def for_buyer(self, buyer_id) -> Cart:
        """Return the buyer's cart, creating an unsaved empty one if needed."""
        return self.find_for_buyer(buyer_id) or Cart.create(buyer_id)
