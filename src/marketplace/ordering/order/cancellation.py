"""Buyer cancellation: command and handler.

Cancelling puts every unit back into stock, including units of items that
were already cancelled or delivered on their own; restitution is order-wide.
"""

from collections import defaultdict

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.domain import marketplace
from marketplace.ordering.order.order import Order, PaymentStatus
from marketplace.ordering.projections.seller_order_lines import sync_line_statuses
from marketplace.payments.reconciliation import CaseKind, ReconciliationCase

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    reason = String(max_length=500)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        cancelled_items = order.cancel(buyer_id=command.buyer_id, reason=command.reason)

        restored = defaultdict(int)
        for item in cancelled_items:
            restored[str(item.product_id)] += item.quantity

        product_repo = current_domain.repository_for(Product)
        for product_id, quantity in restored.items():
            if product_repo.restore_stock(product_id, quantity) is None:
                logger.warning(
                    "Cannot restore stock for missing product",
                    order_id=order.id,
                    product_id=product_id,
                    quantity=quantity,
                )

        repo.add(order)
        sync_line_statuses(order)

        if order.payment_info.status == PaymentStatus.REFUNDED.value:
            current_domain.repository_for(ReconciliationCase).add(
                ReconciliationCase.open(
                    order_id=order.id,
                    kind=CaseKind.REFUND_DUE.value,
                    amount=order.grand_total,
                    gateway_order_id=order.payment_info.gateway_order_id,
                    gateway_payment_id=order.payment_info.gateway_payment_id,
                    detail="Paid order cancelled by buyer",
                )
            )
            logger.warning("Refund due for cancelled order", order_id=order.id, amount=order.grand_total)

        logger.info("Order cancelled", order_id=order.id, reason=order.cancel_reason)
