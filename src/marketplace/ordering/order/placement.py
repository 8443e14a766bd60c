"""Order placement: command, handler and application entry point.

The handler runs as one Unit of Work: it reads the cart and products, prices
the order, redeems the coupon, commits stock, persists the order and clears
the cart. Every check happens before the first write, and any failure
raised from the handler rolls the Unit of Work back, so a failed placement
leaves stock, coupon and cart exactly as they were.
"""

import json
from collections import defaultdict

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.domain import marketplace
from marketplace.ordering.cart.cart import Cart
from marketplace.ordering.coupon.coupon import Coupon
from marketplace.ordering.order.order import Order, OrderItem, PaymentMethod, generate_order_code
from marketplace.ordering.order.post_commit import POST_PLACEMENT_STEPS, run_post_commit
from marketplace.ordering.order.pricing import compute_shipping, compute_subtotal
from marketplace.ordering.projections.seller_order_lines import record_order_lines
from marketplace.shared.errors import CartEmpty, InsufficientStock, ProductUnavailable

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON object matching ShippingAddress
    payment_method = String(required=True, choices=PaymentMethod)
    coupon_code = String(max_length=50)
    notes = Text()


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        buyer_id = str(command.buyer_id)
        cart_repo = current_domain.repository_for(Cart)
        product_repo = current_domain.repository_for(Product)
        order_repo = current_domain.repository_for(Order)

        # 1. Cart with current product data
        cart = cart_repo.find_for_buyer(buyer_id)
        if cart is None or cart.is_empty:
            raise CartEmpty()
        products = product_repo.find_many(item.product_id for item in cart.items)

        # 2-3. Availability and stock pre-checks
        available = [item for item in cart.items if _is_available(products.get(str(item.product_id)))]
        if not available:
            raise CartEmpty()

        lines = []
        requested = defaultdict(int)
        for item in cart.items:
            product = products.get(str(item.product_id))
            if not _is_available(product):
                raise ProductUnavailable(product.name if product else "unknown")
            if item.quantity > product.stock:
                raise InsufficientStock(product.name)
            requested[str(product.id)] += item.quantity
            lines.append((item, product))

        for product_id, quantity in requested.items():
            if quantity > products[product_id].stock:
                raise InsufficientStock(products[product_id].name)

        # 4. Pricing
        priced = [(product, item.quantity) for item, product in lines]
        subtotal = compute_subtotal(priced)
        shipping_charge = compute_shipping(priced, subtotal)

        # 5. Coupon (never fatal)
        discount, applied_code, coupon = _apply_coupon(command.coupon_code, buyer_id, subtotal)

        # 6. Stock commitment
        for product_id, quantity in requested.items():
            product_repo.decrement_stock(product_id, quantity)

        # 7. Persist the order and its seller index rows
        order_id = generate_order_code()
        while order_repo.code_taken(order_id):
            order_id = generate_order_code()

        order = Order.place(
            buyer_id=buyer_id,
            items=[
                OrderItem(
                    product_id=product.id,
                    seller_id=product.seller_id,
                    name=product.name,
                    image=product.image,
                    price=product.price,
                    mrp=product.mrp or 0.0,
                    quantity=item.quantity,
                    size=item.size or "",
                    color=item.color or "",
                )
                for item, product in lines
            ],
            shipping_address=json.loads(command.shipping_address),
            payment_method=command.payment_method,
            subtotal=subtotal,
            shipping_charge=shipping_charge,
            discount=discount,
            coupon=applied_code,
            notes=command.notes,
            order_id=order_id,
        )
        order_repo.add(order)
        record_order_lines(order)
        if coupon is not None:
            current_domain.repository_for(Coupon).add(coupon)

        # 8. Empty the cart
        cart.clear()
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=order.id,
            buyer_id=buyer_id,
            items=len(order.items),
            grand_total=order.grand_total,
            payment_method=command.payment_method,
        )
        return order.id


def _is_available(product) -> bool:
    return product is not None and product.is_active


def _apply_coupon(code, buyer_id, subtotal):
    """Return (discount, applied code, redeemed coupon or None).

    An unknown or invalid coupon gives no discount and does not fail the order.
    """
    if not code:
        return 0.0, "", None

    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None:
        logger.info("Coupon ignored at checkout", code=code, buyer_id=buyer_id, reason="unknown code")
        return 0.0, "", None

    validity = coupon.check_validity(buyer_id, subtotal)
    if not validity.valid:
        logger.info("Coupon ignored at checkout", code=coupon.code, buyer_id=buyer_id, reason=validity.reason)
        return 0.0, "", None

    discount = coupon.calculate_discount(subtotal)
    coupon.redeem(buyer_id)
    return discount, coupon.code, coupon


def place_order(buyer_id, shipping_address: dict, payment_method: str, coupon_code=None, notes=None) -> Order:
    """Place an order from the buyer's cart, then run the post-placement steps."""
    order_id = current_domain.process(
        PlaceOrder(
            buyer_id=buyer_id,
            shipping_address=json.dumps(shipping_address),
            payment_method=payment_method,
            coupon_code=coupon_code,
            notes=notes,
        ),
        asynchronous=False,
    )
    order = current_domain.repository_for(Order).get(order_id)
    run_post_commit(POST_PLACEMENT_STEPS, order)
    return order
