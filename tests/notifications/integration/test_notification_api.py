"""Integration tests for the notification support endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from marketplace.notifications.api.routes import notification_router

ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "admin"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(notification_router)
    return TestClient(app)


class TestNotificationEndpoints:
    def test_failed_and_replay(self, client, make_product, add_to_cart, place, fake_notifier):
        fake_notifier.configure(should_succeed=False, failure_reason="SMTP timeout")
        add_to_cart(make_product(), 1)
        order = place()

        failed = client.get("/notifications/failed", headers=ADMIN).json()
        assert [(n["orderId"], n["lastError"]) for n in failed] == [(order.id, "SMTP timeout")]

        fake_notifier.configure(should_succeed=True)
        response = client.post("/notifications/replay", headers=ADMIN)
        assert response.json() == {"delivered": 1, "stillFailed": 0}

    def test_admin_only(self, client):
        buyer = {"X-User-Id": "buyer-001", "X-User-Role": "buyer"}
        assert client.get("/notifications/failed", headers=buyer).status_code == 403
