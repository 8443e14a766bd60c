"""Seller fulfillment: command and handler for per-item status updates."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.ordering.order.order import Order
from marketplace.ordering.projections.seller_order_lines import sync_line_statuses


@marketplace.command(part_of="Order")
class UpdateItemStatus:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    tracking_id = String(max_length=255)


@marketplace.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(UpdateItemStatus)
    def update_item_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_item_status(
            item_id=command.item_id,
            seller_id=command.seller_id,
            status=command.status,
            tracking_id=command.tracking_id,
        )
        repo.add(order)
        sync_line_statuses(order)
