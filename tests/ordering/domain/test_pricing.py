"""Tests for subtotal and shipping charge rules."""

from marketplace.catalogue.product import Product
from marketplace.ordering.order.pricing import compute_shipping, compute_subtotal


def _product(price, free_shipping=False, shipping_cost=0.0):
    return Product.create(
        seller_id="seller-001",
        name="Item",
        price=price,
        stock=10,
        free_shipping=free_shipping,
        shipping_cost=shipping_cost,
    )


class TestSubtotal:
    def test_sums_lines(self):
        lines = [(_product(100.0), 2), (_product(49.5), 1)]
        assert compute_subtotal(lines) == 249.5


class TestShipping:
    def test_default_charge_below_threshold(self):
        lines = [(_product(400.0), 1)]
        assert compute_shipping(lines, 400.0) == 40.0

    def test_free_at_threshold(self):
        lines = [(_product(499.0), 1)]
        assert compute_shipping(lines, 499.0) == 0.0

    def test_free_above_threshold(self):
        lines = [(_product(600.0), 1)]
        assert compute_shipping(lines, 600.0) == 0.0

    def test_charged_per_unit(self):
        lines = [(_product(100.0), 3)]
        assert compute_shipping(lines, 300.0) == 120.0

    def test_product_shipping_cost_overrides_default(self):
        lines = [(_product(100.0, shipping_cost=25.0), 2)]
        assert compute_shipping(lines, 200.0) == 50.0

    def test_free_shipping_products_excluded(self):
        lines = [(_product(100.0, free_shipping=True), 1), (_product(100.0), 1)]
        assert compute_shipping(lines, 200.0) == 40.0
