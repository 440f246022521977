"""Checkout load test scenarios.

Two stateful SequentialTaskSet journeys: a shopper filling a cart and placing
an order, and an admin pushing placed orders through fulfillment. Many
shoppers competing for the same sizes exercise the stock reservation path;
409 insufficient-stock answers are expected and counted as successes.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import cart_item_data, checkout_data, product_ids, status_update
from loadtests.helpers.response import extract_error_detail, is_stock_rejection
from loadtests.helpers.state import CheckoutState, FulfillmentState

FULFILLMENT_PATH = ["confirmed", "processing", "shipped", "delivered"]


def _identity(user_id: str, role: str = "customer") -> dict:
    return {"X-User-Id": user_id, "X-User-Role": role}


class ShopAndCheckoutJourney(SequentialTaskSet):
    """Add Items -> Adjust Quantity -> View Cart -> Place Order -> View Order."""

    def on_start(self):
        self.state = CheckoutState()
        self.ids = product_ids()
        if not self.ids:
            self.interrupt(reschedule=False)

    @task
    def add_items(self):
        for _ in range(random.randint(1, 3)):
            item = cart_item_data(self.ids)
            with self.client.post(
                f"/carts/{self.state.session_key}/items",
                json=item,
                catch_response=True,
                name="POST /carts/{session}/items",
            ) as resp:
                if resp.status_code == 200:
                    self.state.cart_items = resp.json()["items"]
                else:
                    resp.failure(f"Add cart item failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def adjust_quantity(self):
        if not self.state.cart_items:
            return
        line = random.choice(self.state.cart_items)
        with self.client.put(
            f"/carts/{self.state.session_key}/items",
            json={"product_id": line["product_id"], "size": line["size"], "quantity": 1},
            catch_response=True,
            name="PUT /carts/{session}/items",
        ) as resp:
            if resp.status_code == 200:
                self.state.cart_items = resp.json()["items"]
            else:
                resp.failure(f"Set quantity failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def view_cart(self):
        self.client.get(f"/carts/{self.state.session_key}", name="GET /carts/{session}")

    @task
    def place_order(self):
        if not self.state.cart_items:
            self.interrupt()
            return
        with self.client.post(
            "/orders",
            json=checkout_data(self.state.cart_items, self.state.session_key),
            headers=_identity(self.state.user_id),
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_number = body["order_number"]
                self.user.placed_orders.append(body["order_id"])
            elif is_stock_rejection(resp):
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Place order failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def view_order(self):
        self.client.get(
            f"/orders/{self.state.order_id}",
            headers=_identity(self.state.user_id),
            name="GET /orders/{id}",
        )
        self.client.get("/orders/my", headers=_identity(self.state.user_id), name="GET /orders/my")

    @task
    def done(self):
        self.interrupt()


class FulfillOrderJourney(SequentialTaskSet):
    """Pick a placed order and move it through to delivery."""

    def on_start(self):
        self.state = FulfillmentState()
        if not self.user.placed_orders:
            self.interrupt()
            return
        self.state.order_id = self.user.placed_orders.pop(0)

    @task
    def advance_through_fulfillment(self):
        for status in FULFILLMENT_PATH:
            with self.client.patch(
                f"/orders/{self.state.order_id}/status",
                json=status_update(status),
                headers=_identity("lt-admin", role="admin"),
                catch_response=True,
                name="PATCH /orders/{id}/status",
            ) as resp:
                if resp.status_code == 200:
                    self.state.current_status = status
                else:
                    resp.failure(f"Advance to {status} failed: {resp.status_code} {extract_error_detail(resp)}")
                    break

    @task
    def done(self):
        self.interrupt()


class CheckoutUser(HttpUser):
    """Locust user simulating storefront shoppers and the odd admin.

    Weighted distribution:
    - 80% Shop and checkout
    - 20% Fulfill an order this user placed earlier
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        ShopAndCheckoutJourney: 8,
        FulfillOrderJourney: 2,
    }

    def on_start(self):
        self.placed_orders: list[str] = []
