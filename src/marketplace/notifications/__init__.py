"""Order notifier registry.

Provides get_notifier() / set_notifier() so the delivery adapter can be
swapped without touching the workflows. Defaults to FakeNotifier.
"""

from marketplace.notifications.fake_notifier import FakeNotifier
from marketplace.notifications.port import OrderNotifier

_current_notifier: OrderNotifier | None = None


def get_notifier() -> OrderNotifier:
    """Return the current notifier. Defaults to FakeNotifier."""
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = FakeNotifier()
    return _current_notifier


def set_notifier(notifier: OrderNotifier) -> None:
    """Override the active notifier (useful for tests)."""
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    """Reset to default notifier."""
    global _current_notifier
    _current_notifier = None
