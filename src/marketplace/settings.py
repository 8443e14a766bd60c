"""Runtime settings, read from environment variables."""

import os

PROTEAN_ENV = os.getenv("PROTEAN_ENV", "development")

FREE_SHIPPING_THRESHOLD = float(os.getenv("FREE_SHIPPING_THRESHOLD", "499"))
DEFAULT_SHIPPING_COST = float(os.getenv("DEFAULT_SHIPPING_COST", "40"))
CURRENCY = os.getenv("CURRENCY", "INR")

PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "fake")
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "10"))

_REQUIRED_IN_PRODUCTION = ("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET")


def is_production() -> bool:
    return os.getenv("PROTEAN_ENV", PROTEAN_ENV).lower() == "production"


def validate_environment() -> None:
    """Fail fast when production is missing the settings it cannot run without."""
    if not is_production():
        return

    missing = [name for name in _REQUIRED_IN_PRODUCTION if not os.getenv(name)]
    if os.getenv("PAYMENT_GATEWAY", PAYMENT_GATEWAY) != "razorpay":
        missing.append("PAYMENT_GATEWAY=razorpay")
    if missing:
        raise RuntimeError(f"Missing required environment configuration: {', '.join(missing)}")
