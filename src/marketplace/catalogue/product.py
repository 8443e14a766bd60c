"""Product aggregate: the slice of the catalogue that order placement needs.

Product CRUD and approval live elsewhere; this aggregate owns the stock
counter and the price/shipping data that carts and orders snapshot.
Stock only moves through ``commit_stock`` (guarded) and ``restore_stock``
(unguarded reversal of an earlier commit).
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, ValueObject

from marketplace.catalogue.events import ProductDeactivated, ProductListed, StockRestocked
from marketplace.domain import marketplace
from marketplace.shared.errors import InsufficientStock


@marketplace.value_object(part_of="Product")
class ShippingInfo:
    free_shipping = Boolean(default=False)
    shipping_cost = Float(default=0.0, min_value=0.0)


@marketplace.aggregate
class Product:
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image = String(max_length=1000)
    price = Float(required=True, min_value=0.0)
    mrp = Float(min_value=0.0)
    stock = Integer(default=0)
    total_sold = Integer(default=0)
    is_active = Boolean(default=True)
    shipping_info = ValueObject(ShippingInfo)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_must_not_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

    @classmethod
    def create(cls, seller_id, name, price, stock, mrp=None, image=None, free_shipping=False, shipping_cost=0.0):
        now = datetime.now(UTC)
        product = cls(
            seller_id=seller_id,
            name=name,
            price=price,
            mrp=mrp if mrp is not None else price,
            image=image,
            stock=stock,
            total_sold=0,
            is_active=True,
            shipping_info=ShippingInfo(free_shipping=free_shipping, shipping_cost=shipping_cost),
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductListed(
                product_id=str(product.id),
                seller_id=str(seller_id),
                name=name,
                price=price,
                stock=stock,
                listed_at=now,
            )
        )
        return product

    @property
    def is_available(self) -> bool:
        return bool(self.is_active)

    @property
    def ships_free(self) -> bool:
        return bool(self.shipping_info and self.shipping_info.free_shipping)

    def commit_stock(self, quantity: int) -> None:
        """Take ``quantity`` units out of stock, or fail without touching state."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if self.stock < quantity:
            raise InsufficientStock(self.name)

        self.stock -= quantity
        self.total_sold = (self.total_sold or 0) + quantity
        self.updated_at = datetime.now(UTC)

    def restore_stock(self, quantity: int) -> None:
        self.stock += quantity
        self.total_sold = max((self.total_sold or 0) - quantity, 0)
        self.updated_at = datetime.now(UTC)

    def restock(self, quantity: int) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Restock quantity must be at least 1"]})
        self.stock += quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(StockRestocked(product_id=str(self.id), quantity=quantity, stock=self.stock))

    def deactivate(self) -> None:
        if not self.is_active:
            return
        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(ProductDeactivated(product_id=str(self.id), seller_id=str(self.seller_id), deactivated_at=now))


@marketplace.repository(part_of=Product)
class ProductRepository:
    """Catalog accessor used by the cart and order workflows.

    ``decrement_stock`` and ``restore_stock`` load, mutate and re-add the
    product inside the caller's Unit of Work. Protean checks the aggregate
    version on save, so two transactions that read the same stock cannot
    both commit a decrement.
    """

    def find_by_id(self, product_id) -> Product | None:
        try:
            return self.get(product_id)
        except ObjectNotFoundError:
            return None

    def find_many(self, product_ids) -> dict[str, Product]:
        found = {}
        for product_id in {str(pid) for pid in product_ids}:
            product = self.find_by_id(product_id)
            if product is not None:
                found[product_id] = product
        return found

    def decrement_stock(self, product_id, quantity: int) -> Product:
        product = self.get(product_id)
        product.commit_stock(quantity)
        self.add(product)
        return product

    def restore_stock(self, product_id, quantity: int) -> Product | None:
        product = self.find_by_id(product_id)
        if product is None:
            return None
        product.restore_stock(quantity)
        self.add(product)
        return product