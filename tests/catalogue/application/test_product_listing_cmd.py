"""Application tests for product listing commands and the stock repository."""

import pytest
from protean import current_domain

from marketplace.catalogue.listing import DeactivateProduct, RestockProduct
from marketplace.catalogue.product import Product
from marketplace.shared.errors import InsufficientStock


class TestListProduct:
    def test_list_persists(self, make_product):
        product = make_product(name="Desk Lamp", price=899.0, stock=3, shipping_cost=60.0)
        assert product.name == "Desk Lamp"
        assert product.stock == 3
        assert product.shipping_info.shipping_cost == 60.0

    def test_deactivate(self, make_product):
        product = make_product()
        current_domain.process(DeactivateProduct(product_id=product.id), asynchronous=False)
        assert current_domain.repository_for(Product).get(product.id).is_active is False

    def test_restock(self, make_product):
        product = make_product(stock=1)
        current_domain.process(RestockProduct(product_id=product.id, quantity=5), asynchronous=False)
        assert current_domain.repository_for(Product).get(product.id).stock == 6


class TestProductRepository:
    def test_find_by_id_missing_returns_none(self):
        assert current_domain.repository_for(Product).find_by_id("missing") is None

    def test_find_many_skips_missing(self, make_product):
        first = make_product(name="A")
        second = make_product(name="B")
        found = current_domain.repository_for(Product).find_many([first.id, second.id, "missing"])
        assert set(found) == {str(first.id), str(second.id)}

    def test_decrement_stock_persists(self, make_product):
        product = make_product(stock=4)
        repo = current_domain.repository_for(Product)
        repo.decrement_stock(product.id, 3)
        assert repo.get(product.id).stock == 1

    def test_decrement_stock_rejects_oversell(self, make_product):
        product = make_product(stock=1)
        repo = current_domain.repository_for(Product)
        with pytest.raises(InsufficientStock):
            repo.decrement_stock(product.id, 2)
        assert repo.get(product.id).stock == 1

    def test_restore_stock_missing_product(self):
        assert current_domain.repository_for(Product).restore_stock("missing", 2) is None
