"""Shared BDD fixtures and step definitions for ordering scenarios."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then, when

from marketplace.catalogue.product import Product
from marketplace.ordering.cart.cart import Cart
from marketplace.ordering.order.fulfillment import UpdateItemStatus
from marketplace.shared.errors import BusinessRuleError

_FORWARD_PATH = ("confirmed", "shipped", "delivered")


@pytest.fixture()
def products():
    return {}


@pytest.fixture()
def outcomes():
    """Placed order or captured error per buyer."""
    return {"orders": {}, "errors": {}}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:g} with stock {stock:d}'))
def _(make_product, products, name, price, stock):
    products[name] = make_product(name=name, price=price, stock=stock)


@given(parsers.cfparse('seller "{seller}" lists a product "{name}" priced {price:g} with stock {stock:d}'))
def _(make_product, products, name, seller, price, stock):
    products[name] = make_product(name=name, price=price, stock=stock, seller_id=seller)


@given(parsers.cfparse('a percentage coupon "{code}" of {value:g}% capped at {cap:g}'))
def _(make_coupon, code, value, cap):
    make_coupon(code=code, coupon_type="percentage", value=value, max_discount=cap)


@given(parsers.cfparse('buyer "{buyer}" has {quantity:d} of "{name}" in their cart'))
def _(add_to_cart, products, buyer, quantity, name):
    add_to_cart(products[name], quantity, buyer=buyer)


@given(parsers.cfparse('buyer "{buyer}" has placed an order'))
def _(place, outcomes, buyer):
    outcomes["orders"][buyer] = place(buyer=buyer)


@given(parsers.cfparse('seller "{seller}" has moved "{name}" to "{status}"'))
def _(outcomes, products, seller, name, status):
    (order,) = outcomes["orders"].values()
    item = next(i for i in order.items if str(i.product_id) == str(products[name].id))
    for step in _FORWARD_PATH[: _FORWARD_PATH.index(status) + 1]:
        current_domain.process(
            UpdateItemStatus(order_id=order.id, item_id=item.id, seller_id=seller, status=step),
            asynchronous=False,
        )


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
def _attempt(place, outcomes, buyer, coupon_code=None):
    try:
        outcomes["orders"][buyer] = place(buyer=buyer, coupon_code=coupon_code)
    except BusinessRuleError as exc:
        outcomes["errors"][buyer] = exc


@when(parsers.cfparse('buyer "{buyer}" places an order'))
def _(place, outcomes, buyer):
    _attempt(place, outcomes, buyer)


@when(parsers.cfparse('buyer "{buyer}" places an order with coupon "{code}"'))
def _(place, outcomes, buyer, code):
    _attempt(place, outcomes, buyer, coupon_code=code)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order for "{buyer}" succeeds'))
def _(outcomes, buyer):
    assert buyer in outcomes["orders"]
    assert buyer not in outcomes["errors"]


@then(parsers.cfparse('the order for "{buyer}" fails with "{message}"'))
def _(outcomes, buyer, message):
    assert buyer not in outcomes["orders"]
    assert outcomes["errors"][buyer].message == message


@then(parsers.cfparse('the stock of "{name}" is {stock:d}'))
def _(products, name, stock):
    assert current_domain.repository_for(Product).get(products[name].id).stock == stock


@then(parsers.cfparse('the order for "{buyer}" has discount {discount:g} and grand total {total:g}'))
def _(outcomes, buyer, discount, total):
    order = outcomes["orders"][buyer]
    assert order.discount == discount
    assert order.grand_total == total


@then(parsers.cfparse('the order for "{buyer}" has shipping charge {charge:g}'))
def _(outcomes, buyer, charge):
    assert outcomes["orders"][buyer].shipping_charge == charge


@then(parsers.cfparse('buyer "{buyer}" still has {count:d} lines in their cart'))
def _(buyer, count):
    assert len(current_domain.repository_for(Cart).find_for_buyer(buyer).items) == count
