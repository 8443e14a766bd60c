import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests."""
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("PAYMENT_GATEWAY", "fake")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def marketplace_bed():
    # Route modules import every handler, repository and projection
    from marketplace.catalogue.api import routes as _catalogue_routes  # noqa: F401
    from marketplace.domain import marketplace
    from marketplace.notifications.api import routes as _notification_routes  # noqa: F401
    from marketplace.ordering.api import routes as _ordering_routes  # noqa: F401
    from marketplace.payments.api import routes as _payment_routes  # noqa: F401

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    from marketplace.notifications import reset_notifier
    from marketplace.payments.gateway import reset_gateway

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_notifier()


# ---------------------------------------------------------------------------
# Shared data
# ---------------------------------------------------------------------------
@pytest.fixture()
def buyer_id():
    return "buyer-001"


@pytest.fixture()
def seller_id():
    return "seller-001"


@pytest.fixture()
def shipping_address():
    return {
        "name": "Asha Rao",
        "phone": "9800000000",
        "address_line1": "12 MG Road",
        "city": "Bengaluru",
        "state": "KA",
        "pincode": "560001",
    }


@pytest.fixture()
def make_product(seller_id):
    """Factory: list a product and return the persisted aggregate."""
    from protean import current_domain

    from marketplace.catalogue.listing import ListProduct
    from marketplace.catalogue.product import Product

    def _make(name="Cotton Kurta", price=200.0, stock=10, **overrides):
        fields = {"seller_id": seller_id, "name": name, "price": price, "stock": stock}
        fields.update(overrides)
        product_id = current_domain.process(ListProduct(**fields), asynchronous=False)
        return current_domain.repository_for(Product).get(product_id)

    return _make


@pytest.fixture()
def make_coupon():
    """Factory: create an active coupon valid from yesterday until next month."""
    from protean import current_domain

    from marketplace.ordering.coupon.coupon import Coupon
    from marketplace.ordering.coupon.management import CreateCoupon

    def _make(code="SAVE10", coupon_type="percentage", value=10.0, **overrides):
        now = datetime.now(UTC)
        fields = {
            "code": code,
            "coupon_type": coupon_type,
            "value": value,
            "valid_from": now - timedelta(days=1),
            "valid_till": now + timedelta(days=30),
        }
        fields.update(overrides)
        current_domain.process(CreateCoupon(**fields), asynchronous=False)
        return current_domain.repository_for(Coupon).get(code.upper())

    return _make


@pytest.fixture()
def add_to_cart(buyer_id):
    """Factory: put ``quantity`` of a product into the buyer's cart."""
    from protean import current_domain

    from marketplace.ordering.cart.items import AddToCart

    def _add(product, quantity=1, buyer=None, size="", color=""):
        current_domain.process(
            AddToCart(
                buyer_id=buyer or buyer_id,
                product_id=product.id,
                quantity=quantity,
                size=size,
                color=color,
            ),
            asynchronous=False,
        )

    return _add


@pytest.fixture()
def place(buyer_id, shipping_address):
    """Factory: place an order from the buyer's cart."""
    from marketplace.ordering.order.placement import place_order

    def _place(payment_method="cod", coupon_code=None, buyer=None, notes=None):
        return place_order(
            buyer_id=buyer or buyer_id,
            shipping_address=shipping_address,
            payment_method=payment_method,
            coupon_code=coupon_code,
            notes=notes,
        )

    return _place


@pytest.fixture()
def fake_gateway():
    from marketplace.payments.gateway import get_gateway

    return get_gateway()


@pytest.fixture()
def fake_notifier():
    from marketplace.notifications import get_notifier

    return get_notifier()
