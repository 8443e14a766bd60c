"""Marketplace load testing: Locust entry point.

Discovers all user classes from the scenarios package.
Run specific scenarios with Locust's class selection.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py --host http://localhost:8000

    # Checkout journeys only:
    locust -f loadtests/locustfile.py MarketplaceUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py MarketplaceUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.checkout import MarketplaceUser  # noqa: F401
from loadtests.scenarios.contention import LastUnitContentionUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log the API's own error message for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, extract_error_detail(response))


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    """Check the target is up before users start."""
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    try:
        health = requests.get(f"{environment.host}/health", timeout=5).json()
        print(f"[LOADTEST] Environment: {health.get('environment')}\n")
    except (requests.RequestException, ValueError) as e:
        print(f"[LOADTEST] Health check failed: {e}\n")


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Report notification deliveries that still need a replay."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    try:
        failed = requests.get(
            f"{environment.host}/notifications/failed",
            headers={"X-User-Id": "loadtest-admin", "X-User-Role": "admin"},
            timeout=5,
        ).json()
        print(f"[LOADTEST] Undelivered notifications: {len(failed)}\n")
    except (requests.RequestException, ValueError) as e:
        print(f"[LOADTEST] Could not fetch failed notifications: {e}\n")
