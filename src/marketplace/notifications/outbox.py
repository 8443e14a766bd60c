"""Outbound notification queue.

Notifications are enqueued after the owning transaction commits and then
dispatched. Each attempt is recorded, so a failed delivery stays visible
and can be replayed with ``replay_failed``.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.notifications import get_notifier
from marketplace.ordering.order.order import Order

logger = structlog.get_logger(__name__)


class NotificationKind(Enum):
    ORDER_PLACED = "order_placed"


class DeliveryStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@marketplace.aggregate
class OutboundNotification:
    kind = String(required=True, choices=NotificationKind)
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    status = String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    attempts = Integer(default=0)
    reference = String(max_length=255)
    last_error = Text()
    created_at = DateTime()
    sent_at = DateTime()

    def record_success(self, reference):
        self.attempts += 1
        self.status = DeliveryStatus.SENT.value
        self.reference = reference
        self.last_error = None
        self.sent_at = datetime.now(UTC)

    def record_failure(self, error):
        self.attempts += 1
        self.status = DeliveryStatus.FAILED.value
        self.last_error = error


@marketplace.repository(part_of=OutboundNotification)
class OutboundNotificationRepository:
    def find_failed(self) -> list[OutboundNotification]:
        return self._dao.query.filter(status=DeliveryStatus.FAILED.value).order_by("created_at").all().items

    def find_for_order(self, order_id) -> list[OutboundNotification]:
        return self._dao.query.filter(order_id=str(order_id)).all().items


@marketplace.command(part_of="OutboundNotification")
class EnqueueNotification:
    kind = String(required=True, choices=NotificationKind)
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)


@marketplace.command(part_of="OutboundNotification")
class RecordDeliveryAttempt:
    notification_id = Identifier(required=True)
    reference = String(max_length=255)
    error = Text()


@marketplace.command_handler(part_of=OutboundNotification)
class OutboundNotificationHandler:
    @handle(EnqueueNotification)
    def enqueue(self, command):
        notification = OutboundNotification(
            kind=command.kind,
            order_id=command.order_id,
            buyer_id=command.buyer_id,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(OutboundNotification).add(notification)
        return str(notification.id)

    @handle(RecordDeliveryAttempt)
    def record_attempt(self, command):
        repo = current_domain.repository_for(OutboundNotification)
        notification = repo.get(command.notification_id)
        if command.error:
            notification.record_failure(command.error)
        else:
            notification.record_success(command.reference)
        repo.add(notification)


def dispatch(notification_id) -> bool:
    """Deliver one queued notification. Returns True when it went out.

    Delivery errors are recorded on the row and logged, never raised.
    """
    notification = current_domain.repository_for(OutboundNotification).get(notification_id)
    order = current_domain.repository_for(Order).get(notification.order_id)

    try:
        reference = get_notifier().notify_order_placed(order)
    except Exception as exc:
        logger.warning(
            "Order notification delivery failed",
            notification_id=str(notification_id),
            order_id=str(order.id),
            error=str(exc),
        )
        current_domain.process(
            RecordDeliveryAttempt(notification_id=notification_id, error=str(exc) or exc.__class__.__name__),
            asynchronous=False,
        )
        return False

    current_domain.process(
        RecordDeliveryAttempt(notification_id=notification_id, reference=reference),
        asynchronous=False,
    )
    return True


def replay_failed() -> int:
    """Retry every failed notification. Returns how many were delivered."""
    failed = current_domain.repository_for(OutboundNotification).find_failed()
    delivered = sum(1 for notification in failed if dispatch(notification.id))
    logger.info("Replayed failed notifications", attempted=len(failed), delivered=delivered)
    return delivered
