"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the API's Pydantic request
schemas, using the camelCase field names the API expects on the wire.
"""

import random
import uuid

from faker import Faker

fake = Faker("en_IN")


def user_id(role: str) -> str:
    """Generate unique principal ids like 'lt-buyer-a1b2c3d4'."""
    return f"lt-{role}-{uuid.uuid4().hex[:8]}"


def headers_for(principal_id: str, role: str) -> dict:
    """Headers the upstream auth layer would forward for this principal."""
    return {"X-User-Id": principal_id, "X-User-Role": role}


def product_data(stock: int = 10_000) -> dict:
    """Generate a ListProductRequest payload.

    Stock is generous so many concurrent buyers can check out the same
    product without tripping InsufficientStock.
    """
    price = round(random.uniform(99, 1499), 2)
    return {
        "name": f"{fake.color_name()} {random.choice(['Kurta', 'Saree', 'Dupatta', 'Stole', 'Lehenga'])}",
        "price": price,
        "mrp": round(price * random.uniform(1.0, 1.6), 2),
        "stock": stock,
        "freeShipping": random.random() < 0.3,
        "shippingCost": random.choice([0, 30, 40, 60]),
    }


def cart_item_data(product_id: str) -> dict:
    """Generate an AddCartItemRequest payload for the given product."""
    return {
        "productId": product_id,
        "quantity": random.randint(1, 3),
        "size": random.choice(["S", "M", "L", "XL", ""]),
        "color": random.choice(["red", "blue", "ivory", ""]),
    }


def shipping_address() -> dict:
    """Generate a ShippingAddress payload within the schema's length limits."""
    return {
        "name": fake.name()[:100],
        "phone": f"9{random.randint(100000000, 999999999)}",
        "addressLine1": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state()[:100],
        "pincode": f"{random.randint(110001, 855999)}",
    }


def gateway_payment_id() -> str:
    """Generate a payment id shaped like the ones the gateway issues."""
    return f"pay_{uuid.uuid4().hex[:14]}"
