"""Product listing: commands and handler.

Sellers manage their catalogue in a separate service; these commands are the
narrow write surface the marketplace core needs to seed and retire products.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.domain import marketplace


@marketplace.command(part_of="Product")
class ListProduct:
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    mrp = Float(min_value=0.0)
    stock = Integer(required=True, min_value=0)
    image = String(max_length=1000)
    free_shipping = Boolean(default=False)
    shipping_cost = Float(default=0.0, min_value=0.0)


@marketplace.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)


@marketplace.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command_handler(part_of=Product)
class ProductListingHandler:
    @handle(ListProduct)
    def list_product(self, command):
        product = Product.create(
            seller_id=command.seller_id,
            name=command.name,
            price=command.price,
            mrp=command.mrp,
            stock=command.stock,
            image=command.image,
            free_shipping=command.free_shipping,
            shipping_cost=command.shipping_cost,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restock(command.quantity)
        repo.add(product)
