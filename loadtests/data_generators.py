"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the storefront API's request schemas and
pass the placement service's validation rules.
"""

import os
import random

from faker import Faker

fake = Faker("en_IN")

SIZES = ["S", "M", "L", "XL"]
PAYMENT_METHODS = ["card", "upi", "cod", "wallet"]


def product_ids() -> list[str]:
    """Product ids to shop for, printed by ``python src/manage.py seed-catalogue``.

    Set ``STOREFRONT_PRODUCT_IDS`` to a comma-separated list.
    """
    raw = os.environ.get("STOREFRONT_PRODUCT_IDS", "")
    return [value.strip() for value in raw.split(",") if value.strip()]


def cart_item_data(ids: list[str] | None = None) -> dict:
    ids = ids or product_ids()
    return {
        "product_id": random.choice(ids),
        "size": random.choice(SIZES),
        "quantity": random.randint(1, 2),
    }


def shipping_address() -> dict:
    return {
        "full_name": fake.name()[:255],
        "phone": f"9{random.randint(100000000, 999999999)}",
        "email": fake.email(),
        "street": fake.street_address()[:255],
        "apartment": random.choice([None, f"Flat {random.randint(1, 40)}"]),
        "city": fake.city()[:100],
        "state": fake.state()[:100],
        "pincode": f"{random.randint(110000, 855999)}",
    }


def checkout_data(items: list[dict], session_key: str) -> dict:
    return {
        "items": [{"product_id": i["product_id"], "size": i["size"], "quantity": i["quantity"]} for i in items],
        "shipping_address": shipping_address(),
        "payment_method": random.choice(PAYMENT_METHODS),
        "coupon_code": random.choice([None, None, None, "FESTIVE15"]),
        "session_key": session_key,
    }


def status_update(status: str) -> dict:
    payload = {"status": status}
    if status == "shipped":
        payload["tracking_number"] = f"TRK{random.randint(10**9, 10**10 - 1)}"
        payload["courier_service"] = random.choice(["Delhivery", "Blue Dart", "India Post"])
    return payload
