"""Cart item management: commands and handler.

Every cart write goes through a command so the cart, like the order, only
changes inside a Unit of Work. ``SyncCart`` is processed on every read: it
creates the cart on first use and prunes lines whose product went away.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.domain import marketplace
from marketplace.ordering.cart.cart import Cart

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Cart")
class SyncCart:
    buyer_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class AddToCart:
    buyer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=50, default="")
    color = String(max_length=50, default="")


@marketplace.command(part_of="Cart")
class UpdateCartItem:
    buyer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    buyer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class ClearCart:
    buyer_id = Identifier(required=True)


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(SyncCart)
    def sync_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.find_for_buyer(command.buyer_id)
        if cart is None:
            repo.add(Cart.create(command.buyer_id))
            return

        products = current_domain.repository_for(Product).find_many(item.product_id for item in cart.items)
        available = [pid for pid, product in products.items() if product.is_active]
        removed = cart.prune(available)
        if removed:
            logger.info("Pruned unavailable products from cart", buyer_id=str(command.buyer_id), product_ids=removed)
            repo.add(cart)

    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_buyer(command.buyer_id)
        product = current_domain.repository_for(Product).find_by_id(command.product_id)
        cart.add_item(product, command.quantity, size=command.size, color=command.color)
        repo.add(cart)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_buyer(command.buyer_id)
        item = next((i for i in cart.items if str(i.id) == str(command.item_id)), None)
        product = current_domain.repository_for(Product).find_by_id(item.product_id) if item else None
        cart.update_item_quantity(command.item_id, command.quantity, product)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_buyer(command.buyer_id)
        cart.remove_item(command.item_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_buyer(command.buyer_id)
        cart.clear()
        repo.add(cart)


def load_cart(buyer_id) -> Cart:
    """Read the buyer's cart after pruning unavailable products."""
    current_domain.process(SyncCart(buyer_id=buyer_id), asynchronous=False)
    return current_domain.repository_for(Cart).find_for_buyer(buyer_id)
