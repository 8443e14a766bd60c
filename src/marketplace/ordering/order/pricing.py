"""Order pricing rules: line subtotal and shipping charge."""

from marketplace import settings


def compute_subtotal(lines) -> float:
    """``lines`` is an iterable of (product, quantity)."""
    return round(sum(product.price * quantity for product, quantity in lines), 2)


def compute_shipping(lines, subtotal: float) -> float:
    """Per-unit shipping for products that do not ship free.

    Waived entirely once the subtotal reaches the free-shipping threshold.
    """
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return 0.0

    charge = 0.0
    for product, quantity in lines:
        if product.ships_free:
            continue
        unit_cost = (product.shipping_info.shipping_cost if product.shipping_info else 0.0) or (
            settings.DEFAULT_SHIPPING_COST
        )
        charge += unit_cost * quantity
    return round(charge, 2)
