"""Checkout load test scenarios.

Three stateful SequentialTaskSet journeys, all run by one MarketplaceUser
that acts as its own seller so it never depends on pre-seeded data:

- COD checkout followed by the seller fulfilling every item
- Prepaid checkout settled through the fake gateway, verified twice
- Checkout followed by a buyer cancellation

Prepaid journeys need the API running with ``PAYMENT_GATEWAY=fake`` outside
production, since they sign the callback through ``/payments/gateway/sign``.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    cart_item_data,
    gateway_payment_id,
    headers_for,
    product_data,
    shipping_address,
    user_id,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CheckoutState, SellerState


class _CheckoutSteps(SequentialTaskSet):
    """Shared cart and placement steps for the checkout journeys."""

    payment_method = "cod"

    def on_start(self):
        self.state = CheckoutState(buyer_id=user_id("buyer"))
        self.buyer = headers_for(self.state.buyer_id, "buyer")

    def fill_cart(self):
        product_id = random.choice(self.user.seller.product_ids)
        with self.client.post(
            "/cart",
            json=cart_item_data(product_id),
            headers=self.buyer,
            catch_response=True,
            name="POST /cart",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Add to cart failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def place_order(self):
        with self.client.post(
            "/orders",
            json={"shippingAddress": shipping_address(), "paymentMethod": self.payment_method},
            headers=self.buyer,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                order = resp.json()
                self.state.order_id = order["id"]
                self.state.item_ids = [item["id"] for item in order["items"]]
            else:
                resp.failure(f"Place order failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()


class CodFulfillmentJourney(_CheckoutSteps):
    """Cart -> COD order -> seller confirms, ships and delivers each item."""

    @task
    def add_to_cart(self):
        self.fill_cart()

    @task
    def view_cart(self):
        self.client.get("/cart", headers=self.buyer, name="GET /cart")

    @task
    def checkout(self):
        self.place_order()

    @task
    def fulfil(self):
        seller = headers_for(self.user.seller.seller_id, "seller")
        for item_id in self.state.item_ids:
            for status in ("confirmed", "shipped", "delivered"):
                body = {"status": status}
                if status == "shipped":
                    body["trackingId"] = f"TRK{random.randint(100000, 999999)}"
                with self.client.put(
                    f"/orders/{self.state.order_id}/item/{item_id}/status",
                    json=body,
                    headers=seller,
                    catch_response=True,
                    name="PUT /orders/{id}/item/{itemId}/status",
                ) as resp:
                    if resp.status_code != 200:
                        resp.failure(f"Item -> {status} failed: {resp.status_code}: {extract_error_detail(resp)}")
                        self.interrupt()

    @task
    def view_order(self):
        self.client.get(f"/orders/{self.state.order_id}", headers=self.buyer, name="GET /orders/{id}")

    @task
    def done(self):
        self.interrupt()


class PrepaidSettlementJourney(_CheckoutSteps):
    """Cart -> prepaid order -> payment intent -> signed callback -> verify (twice)."""

    payment_method = "razorpay"

    @task
    def add_to_cart(self):
        self.fill_cart()

    @task
    def checkout(self):
        self.place_order()

    @task
    def create_intent(self):
        with self.client.post(
            "/payments/create-order",
            json={"orderId": self.state.order_id},
            headers=self.buyer,
            catch_response=True,
            name="POST /payments/create-order",
        ) as resp:
            if resp.status_code == 200:
                self.state.gateway_order_id = resp.json()["gatewayOrderId"]
            else:
                resp.failure(f"Create intent failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def verify(self):
        payment_id = gateway_payment_id()
        signed = self.client.post(
            "/payments/gateway/sign",
            json={"gatewayOrderId": self.state.gateway_order_id, "gatewayPaymentId": payment_id},
            name="POST /payments/gateway/sign",
        )
        if signed.status_code != 200:
            self.interrupt()

        body = {
            "orderId": self.state.order_id,
            "gatewayOrderId": self.state.gateway_order_id,
            "gatewayPaymentId": payment_id,
            "signature": signed.json()["signature"],
        }
        # The second call replays the same callback and must change nothing
        for attempt in ("first", "replay"):
            with self.client.post(
                "/payments/verify-payment",
                json=body,
                headers=self.buyer,
                catch_response=True,
                name=f"POST /payments/verify-payment ({attempt})",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Verify ({attempt}) failed: {resp.status_code}: {extract_error_detail(resp)}")
                    self.interrupt()
                self.state.payment_status = resp.json()["paymentInfo"]["status"]
                if self.state.payment_status != "paid":
                    resp.failure(f"Verify ({attempt}) left payment {self.state.payment_status}")

    @task
    def done(self):
        self.interrupt()


class BuyerCancellationJourney(_CheckoutSteps):
    """Cart -> COD order -> buyer cancels, restoring stock."""

    @task
    def add_to_cart(self):
        self.fill_cart()

    @task
    def checkout(self):
        self.place_order()

    @task
    def cancel(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/cancel",
            json={"reason": "Ordered by mistake"},
            headers=self.buyer,
            catch_response=True,
            name="PUT /orders/{id}/cancel",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Cancel failed: {resp.status_code}: {extract_error_detail(resp)}")
            elif resp.json()["orderStatus"] != "cancelled":
                resp.failure(f"Cancel left order {resp.json()['orderStatus']}")

    @task
    def done(self):
        self.interrupt()


class MarketplaceUser(HttpUser):
    """Lists a few products as a seller, then runs weighted buyer journeys against them."""

    wait_time = between(1, 3)
    tasks = {CodFulfillmentJourney: 5, PrepaidSettlementJourney: 3, BuyerCancellationJourney: 2}

    def on_start(self):
        self.seller = SellerState(seller_id=user_id("seller"))
        headers = headers_for(self.seller.seller_id, "seller")
        for _ in range(3):
            resp = self.client.post("/products", json=product_data(), headers=headers, name="POST /products")
            if resp.status_code == 201:
                self.seller.product_ids.append(resp.json()["id"])
        if not self.seller.product_ids:
            self.stop()
