"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
from storefront.cart.line_item import LineItem
from storefront.errors import StorefrontError
from storefront.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
)
from storefront.order.order import Order
from storefront.order.status import PermissiveTransitions
from storefront.pricing.engine import price_items
from storefront.pricing.rules import PricingRules

# Map event name strings to classes for dynamic lookup
_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderStatusChanged": OrderStatusChanged,
    "OrderDelivered": OrderDelivered,
    "OrderCancelled": OrderCancelled,
    "OrderRefunded": OrderRefunded,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


@pytest.fixture()
def workflow():
    """Transition policy in force and values remembered between steps."""
    return {"policy": PermissiveTransitions(), "delivered_at": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a placed order", target_fixture="order")
def placed_order(address):
    lines = [LineItem("saree-cotton", "Cotton Handloom Saree", 149900, "M", 1, "cotton.jpg")]
    order = Order.place(
        order_number="HF1700000000000000407AF",
        user_id="user-1",
        lines=lines,
        shipping_address=address,
        payment_method="upi",
        pricing=price_items(lines, PricingRules()),
    )
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then("the action fails with a validation error")
def action_fails_with_validation_error(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('the order is rejected as "{kind}"'))
def order_rejected_as(error, kind):
    assert isinstance(error["exc"], StorefrontError), f"Expected a rejection, got {error['exc']!r}"
    assert error["exc"].kind == kind


@then(parsers.cfparse("an {event_type} event is raised"))
def generic_event_raised_an(order, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"
