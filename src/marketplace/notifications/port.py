"""Order notifier port (abstract interface).

Actual delivery (email, SMS) belongs to an external service; the marketplace
only needs to tell it that an order was placed.
"""

from abc import ABC, abstractmethod


class NotificationDeliveryError(Exception):
    """The notifier accepted the call but could not deliver."""


class OrderNotifier(ABC):
    @abstractmethod
    def notify_order_placed(self, order) -> str:
        """Send the order confirmation. Returns a delivery reference.

        Raises NotificationDeliveryError when delivery fails.
        """
        ...
