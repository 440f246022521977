"""Tests for Order placement: snapshot lines, locked pricing and the placed event."""

import json

import pytest
from storefront.cart.line_item import LineItem
from storefront.errors import ConsistencyViolation
from storefront.order.events import OrderPlaced
from storefront.order.order import Order, PaymentMethod, PaymentStatus
from storefront.order.status import OrderStatus
from storefront.pricing.engine import PricingBreakdown, price_items
from storefront.pricing.rules import PricingRules

LINES = [
    LineItem("saree-cotton", "Cotton Handloom Saree", 149900, "M", 2, "cotton.jpg"),
    LineItem("saree-silk", "Banarasi Silk Saree", 599900, "L", 1),
]


def _place_order(address, lines=LINES, **overrides):
    fields = {
        "order_number": "HF1700000000000000107AF",
        "user_id": "user-1",
        "lines": lines,
        "shipping_address": address,
        "payment_method": "upi",
        "pricing": price_items(lines, PricingRules()),
    }
    fields.update(overrides)
    return Order.place(**fields)


class TestOrderPlacement:
    def test_starts_pending(self, address):
        order = _place_order(address)
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.is_delivered is False

    def test_lines_are_snapshotted_in_order(self, address):
        order = _place_order(address)
        lines = order.ordered_lines
        assert [line.product_id for line in lines] == ["saree-cotton", "saree-silk"]
        assert lines[0].unit_price_minor == 149900
        assert lines[0].image_ref == "cotton.jpg"
        assert lines[1].size == "L"

    def test_pricing_is_locked(self, address):
        order = _place_order(address)
        assert order.pricing.subtotal_minor == 899700
        assert order.pricing.shipping_minor == 0
        assert order.pricing.tax_minor == 161946
        assert order.pricing.discount_minor == 89970
        assert order.pricing.total_minor == 971676
        assert order.pricing.currency == "INR"

    def test_total_items(self, address):
        assert _place_order(address).total_items == 3

    def test_shipping_address_is_captured(self, address):
        order = _place_order(address)
        assert order.shipping_address.city == "Bengaluru"
        assert order.shipping_address.apartment == "Flat 4B"
        assert order.shipping_address.country == "India"

    def test_initial_history_entry(self, address):
        history = _place_order(address).history
        assert len(history) == 1
        assert history[0].status == OrderStatus.PENDING.value
        assert history[0].note == "Order placed"
        assert history[0].sequence == 0

    def test_payment_method_is_normalized(self, address):
        order = _place_order(address, payment_method=PaymentMethod.COD)
        assert order.payment_method == "cod"

    def test_optional_fields(self, address):
        order = _place_order(address, coupon_code="FESTIVE15", order_notes="Gift wrap")
        assert order.coupon_code == "FESTIVE15"
        assert order.order_notes == "Gift wrap"

    def test_timestamps_are_set(self, address):
        order = _place_order(address)
        assert order.created_at is not None
        assert order.updated_at is not None


class TestOrderPlacedEvent:
    def test_raises_order_placed(self, address):
        order = _place_order(address)
        events = [event for event in order._events if isinstance(event, OrderPlaced)]
        assert len(events) == 1
        event = events[0]
        assert event.order_id == str(order.id)
        assert event.order_number == order.order_number
        assert event.total_minor == 971676
        assert event.payment_method == "upi"

    def test_event_carries_line_snapshot(self, address):
        order = _place_order(address)
        event = order._events[0]
        lines = json.loads(event.lines)
        assert [line["product_id"] for line in lines] == ["saree-cotton", "saree-silk"]


class TestReconciliation:
    def test_order_needs_lines(self, address):
        with pytest.raises(ConsistencyViolation):
            _place_order(address, lines=[], pricing=PricingBreakdown())

    def test_subtotal_must_match_lines(self, address):
        pricing = PricingBreakdown(
            subtotal_minor=100,
            shipping_minor=9900,
            tax_minor=18,
            discount_minor=0,
            total_minor=10018,
        )
        with pytest.raises(ConsistencyViolation):
            _place_order(address, pricing=pricing)

    def test_total_must_balance(self, address):
        good = price_items(LINES, PricingRules())
        pricing = PricingBreakdown(
            subtotal_minor=good.subtotal_minor,
            shipping_minor=good.shipping_minor,
            tax_minor=good.tax_minor,
            discount_minor=good.discount_minor,
            total_minor=good.total_minor + 1,
        )
        with pytest.raises(ConsistencyViolation):
            _place_order(address, pricing=pricing)
