"""Steps that run after an order transaction has committed.

Each workflow owns an ordered tuple of steps. A failing step is logged and
skipped; it never undoes or fails the committed work.
"""

import structlog
from protean.utils.globals import current_domain

from marketplace.notifications.outbox import EnqueueNotification, NotificationKind, dispatch

logger = structlog.get_logger(__name__)


def send_order_confirmation(order) -> None:
    notification_id = current_domain.process(
        EnqueueNotification(
            kind=NotificationKind.ORDER_PLACED.value,
            order_id=order.id,
            buyer_id=str(order.buyer_id),
        ),
        asynchronous=False,
    )
    dispatch(notification_id)


POST_PLACEMENT_STEPS = (send_order_confirmation,)


def run_post_commit(steps, order) -> None:
    for step in steps:
        try:
            step(order)
        except Exception:
            logger.exception("Post-commit step failed", step=step.__name__, order_id=str(order.id))
