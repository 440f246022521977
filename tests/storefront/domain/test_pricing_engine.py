"""Tests for the pricing engine: worked examples, thresholds and rounding."""

from decimal import Decimal

import pytest
from storefront.cart.line_item import LineItem
from storefront.errors import PricingConfigurationError
from storefront.pricing import engine
from storefront.pricing.engine import PricingBreakdown, price_items, total
from storefront.pricing.rules import DiscountRule, PricingRules


def _items(*prices_and_quantities):
    return [
        LineItem(f"p-{index}", f"Product {index}", price, "M", quantity)
        for index, (price, quantity) in enumerate(prices_and_quantities)
    ]


class TestWorkedExamples:
    def test_below_free_shipping_threshold(self, whole_rupee_rules):
        breakdown = price_items(_items((1499, 1)), whole_rupee_rules)
        assert breakdown == PricingBreakdown(
            subtotal_minor=1499,
            shipping_minor=99,
            tax_minor=270,
            discount_minor=0,
            total_minor=1868,
        )

    def test_above_discount_threshold(self, whole_rupee_rules):
        breakdown = price_items(_items((1600, 2)), whole_rupee_rules)
        assert breakdown == PricingBreakdown(
            subtotal_minor=3200,
            shipping_minor=0,
            tax_minor=576,
            discount_minor=320,
            total_minor=3456,
        )

    def test_default_rules_in_paise(self):
        breakdown = price_items(_items((149900, 1)), PricingRules())
        assert breakdown.shipping_minor == 9900
        assert breakdown.tax_minor == 26982
        assert breakdown.total_minor == 186782

    def test_total_shortcut(self, whole_rupee_rules):
        assert total(_items((1499, 1)), whole_rupee_rules) == 1868


class TestThresholds:
    def test_shipping_is_free_at_threshold(self, whole_rupee_rules):
        assert price_items(_items((2000, 1)), whole_rupee_rules).shipping_minor == 0

    def test_shipping_charged_just_below_threshold(self, whole_rupee_rules):
        assert price_items(_items((1999, 1)), whole_rupee_rules).shipping_minor == 99

    def test_discount_applies_at_threshold(self, whole_rupee_rules):
        assert price_items(_items((3000, 1)), whole_rupee_rules).discount_minor == 300

    def test_no_discount_just_below_threshold(self, whole_rupee_rules):
        assert price_items(_items((2999, 1)), whole_rupee_rules).discount_minor == 0


class TestRounding:
    def test_tax_rounds_half_up(self, whole_rupee_rules):
        # 25 * 0.18 = 4.5
        assert price_items(_items((25, 1)), whole_rupee_rules).tax_minor == 5

    def test_discount_rounds_half_up(self, whole_rupee_rules):
        # 3005 * 0.10 = 300.5
        assert price_items(_items((3005, 1)), whole_rupee_rules).discount_minor == 301


class TestDiscountOverride:
    def test_coupon_rule_replaces_default_discount(self, whole_rupee_rules):
        coupon = DiscountRule(rate="0.15")
        breakdown = price_items(_items((1000, 1)), whole_rupee_rules, discount_rule=coupon)
        assert breakdown.discount_minor == 150
        assert breakdown.is_balanced()

    def test_coupon_threshold_is_respected(self, whole_rupee_rules):
        coupon = DiscountRule(rate="0.20", threshold_minor=5000)
        breakdown = price_items(_items((3200, 1)), whole_rupee_rules, discount_rule=coupon)
        assert breakdown.discount_minor == 0


class TestEdgeCases:
    def test_empty_item_set_prices_to_zero(self, whole_rupee_rules):
        assert price_items([], whole_rupee_rules) == PricingBreakdown()

    def test_every_breakdown_balances(self, whole_rupee_rules):
        for quantity in range(1, 6):
            breakdown = price_items(_items((1499, quantity), (250, 2)), whole_rupee_rules)
            assert breakdown.is_balanced()

    def test_negative_total_is_rejected(self, whole_rupee_rules, monkeypatch):
        monkeypatch.setattr(engine, "discount", lambda *args, **kwargs: 10**9)
        with pytest.raises(PricingConfigurationError):
            price_items(_items((1499, 1)), whole_rupee_rules)

    def test_full_discount_never_goes_negative(self):
        rules = PricingRules(discount_threshold_minor=0, discount_rate=Decimal("1"))
        breakdown = price_items(_items((1000, 1)), rules)
        assert breakdown.total_minor == breakdown.shipping_minor + breakdown.tax_minor
