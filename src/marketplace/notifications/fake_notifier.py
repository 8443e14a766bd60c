"""Fake notifier: records order confirmations in memory for test assertions."""

from uuid import uuid4

from marketplace.notifications.port import NotificationDeliveryError, OrderNotifier


class FakeNotifier(OrderNotifier):
    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify_order_placed(self, order) -> str:
        if not self.should_succeed:
            raise NotificationDeliveryError(self.failure_reason)

        reference = f"notice-{uuid4().hex[:12]}"
        self.sent.append(
            {
                "reference": reference,
                "kind": "order_placed",
                "order_id": str(order.id),
                "buyer_id": str(order.buyer_id),
                "grand_total": order.grand_total,
            }
        )
        return reference

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
