"""Stock contention scenario.

Many buyers race to check out the same scarce product while its seller
trickles in restocks. A buyer that loses the race must get a clean 400
(InsufficientStock) or 409 (concurrent write), never an order that
oversells. Run alone to watch the ratio of wins to rejections:

    locust -f loadtests/locustfile.py LastUnitContentionUser
"""

from locust import HttpUser, between, events, task

from loadtests.data_generators import cart_item_data, headers_for, product_data, shipping_address, user_id
from loadtests.helpers.response import extract_error_detail

SCARCE_STOCK = 5
_shared = {"product_id": None, "seller_id": None}


@events.test_start.add_listener
def _reset_shared_product(**_kwargs):
    _shared.update(product_id=None, seller_id=None)


class LastUnitContentionUser(HttpUser):
    """Buyer hammering a single low-stock product."""

    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.buyer = headers_for(user_id("buyer"), "buyer")
        if _shared["product_id"] is None:
            seller_id = user_id("seller")
            resp = self.client.post(
                "/products",
                json=product_data(stock=SCARCE_STOCK),
                headers=headers_for(seller_id, "seller"),
                name="POST /products",
            )
            if resp.status_code != 201:
                self.stop()
                return
            # Another user may have won this race too; the last writer's product is used by everyone after it
            _shared.update(product_id=resp.json()["id"], seller_id=seller_id)

    @task(10)
    def grab_last_unit(self):
        item = cart_item_data(_shared["product_id"])
        item["quantity"] = 1
        self.client.delete("/cart", headers=self.buyer, name="DELETE /cart")
        added = self.client.post("/cart", json=item, headers=self.buyer, name="POST /cart")
        if added.status_code != 200:
            return

        with self.client.post(
            "/orders",
            json={"shippingAddress": shipping_address(), "paymentMethod": "cod"},
            headers=self.buyer,
            catch_response=True,
            name="POST /orders (contended)",
        ) as resp:
            if resp.status_code in (201, 400, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected placement result: {resp.status_code}: {extract_error_detail(resp)}")

    @task(1)
    def restock(self):
        self.client.put(
            f"/products/{_shared['product_id']}/restock",
            json={"quantity": 1},
            headers=headers_for(_shared["seller_id"], "seller"),
            name="PUT /products/{id}/restock",
        )

    @task(1)
    def audit_stock(self):
        with self.client.get(
            f"/products/{_shared['product_id']}",
            catch_response=True,
            name="GET /products/{id}",
        ) as resp:
            if resp.status_code == 200 and resp.json()["stock"] < 0:
                resp.failure(f"Stock went negative: {resp.json()['stock']}")
