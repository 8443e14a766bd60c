"""Shared BDD fixtures and step definitions for payment scenarios."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from marketplace.catalogue.product import Product
from marketplace.ordering.order.order import Order


@pytest.fixture()
def products():
    return {}


@pytest.fixture()
def payment():
    """Order under test plus the outcome of each verification attempt."""
    return {"order": None, "intent": None, "results": [], "error": None}


@given(parsers.cfparse('a product "{name}" priced {price:g} with stock {stock:d}'))
def _(make_product, products, name, price, stock):
    products[name] = make_product(name=name, price=price, stock=stock)


@given(parsers.cfparse('buyer "{buyer}" has placed an online order for {quantity:d} of "{name}"'))
def _(add_to_cart, place, products, payment, buyer, quantity, name):
    add_to_cart(products[name], quantity, buyer=buyer)
    payment["order"] = place(payment_method="razorpay", buyer=buyer)


@then(parsers.cfparse('the payment is "{status}"'))
def _(payment, status):
    order = current_domain.repository_for(Order).get(payment["order"].id)
    assert order.payment_info.status == status


@then(parsers.cfparse('the stock of "{name}" is {stock:d}'))
def _(products, name, stock):
    assert current_domain.repository_for(Product).get(products[name].id).stock == stock
