"""Seller order lines: one row per order item, keyed for seller lookups.

Rows are written by the order handlers themselves, inside the same Unit of
Work as the order change, so a seller never sees an order the buyer cannot.
"""

from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace


@marketplace.projection
class SellerOrderLine:
    line_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    item_status = String(required=True)
    placed_at = DateTime()


def record_order_lines(order) -> None:
    repo = current_domain.repository_for(SellerOrderLine)
    for item in order.items:
        repo.add(
            SellerOrderLine(
                line_id=str(item.id),
                order_id=str(order.id),
                seller_id=str(item.seller_id),
                item_status=item.status,
                placed_at=order.placed_at,
            )
        )


def sync_line_statuses(order) -> None:
    repo = current_domain.repository_for(SellerOrderLine)
    for item in order.items:
        line = repo.get(str(item.id))
        if line.item_status != item.status:
            line.item_status = item.status
            repo.add(line)
