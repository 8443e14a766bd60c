"""Read side for orders: listings per role and the authorized single view."""

from protean.utils.globals import current_domain

from marketplace.ordering.order.order import Order
from marketplace.ordering.projections.seller_order_lines import SellerOrderLine
from marketplace.shared.auth import Role
from marketplace.shared.errors import NotAuthorized
from marketplace.shared.pagination import Page, offset_for

# Index rows read per round trip while collecting a seller's order ids
_SCAN_BATCH = 500


def _status_filter(status):
    return None if not status or status == "all" else status


def list_buyer_orders(buyer_id, status=None, page=1, limit=10) -> Page:
    return current_domain.repository_for(Order).find_for_buyer(
        buyer_id, status=_status_filter(status), page=page, limit=limit
    )


def list_seller_orders(seller_id, status=None, page=1, limit=10) -> Page:
    """Orders holding at least one of the seller's items (in ``status``, when given)."""
    filters = {"seller_id": str(seller_id)}
    if _status_filter(status):
        filters["item_status"] = status

    order_ids = list(dict.fromkeys(_seller_order_ids(filters)))

    start = offset_for(page, limit)
    orders = current_domain.repository_for(Order).find_many(order_ids[start : start + limit])
    return Page(items=orders, page=page, limit=limit, total=len(order_ids))


def _seller_order_ids(filters):
    """Yield the order id of every matching index row, newest first, in batches."""
    query = current_domain.repository_for(SellerOrderLine)._dao.query.filter(**filters).order_by("-placed_at")
    offset = 0
    while True:
        lines = query.offset(offset).limit(_SCAN_BATCH).all().items
        for line in lines:
            yield str(line.order_id)
        if len(lines) < _SCAN_BATCH:
            return
        offset += _SCAN_BATCH


def list_all_orders(status=None, search=None, page=1, limit=20) -> Page:
    return current_domain.repository_for(Order).find_all(
        status=_status_filter(status), search=search, page=page, limit=limit
    )


def get_order_for(order_id, user_id, role) -> Order:
    """Load an order the caller may see: its buyer, a seller with items in it, or an admin."""
    order = current_domain.repository_for(Order).get(order_id)
    role = Role(role)

    if role == Role.ADMIN:
        return order
    if role == Role.BUYER and str(order.buyer_id) == str(user_id):
        return order
    if role == Role.SELLER and order.has_items_from(user_id):
        return order
    raise NotAuthorized()
