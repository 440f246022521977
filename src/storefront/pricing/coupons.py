"""Coupon lookup: resolves a coupon code to a discount rule.

Codes are matched case-insensitively. Configured coupons come from the
``[custom.coupons.<CODE>]`` tables of the domain configuration::

    [custom.coupons.FESTIVE15]
    rate = "0.15"
    threshold_minor = 0
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

import structlog

from storefront.errors import PricingConfigurationError, ValidationFailed
from storefront.pricing.rules import DiscountRule

logger = structlog.get_logger(__name__)


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CouponBook(ABC):
    @abstractmethod
    def resolve(self, code: str) -> DiscountRule | None:
        """Return the discount rule for ``code``, or None when it is unknown."""

    def rule_for(self, code: str | None) -> DiscountRule | None:
        """Resolve an optional coupon code. Unknown codes are rejected."""
        if code is None or not str(code).strip():
            return None
        rule = self.resolve(normalize_code(code))
        if rule is None:
            raise ValidationFailed(
                f"Coupon code {code} is not valid",
                errors={"coupon_code": ["Unknown coupon code"]},
            )
        return rule


class ConfiguredCouponBook(CouponBook):
    def __init__(self, rules: Mapping[str, DiscountRule] | None = None) -> None:
        self._rules = {normalize_code(code): rule for code, rule in (rules or {}).items()}

    @classmethod
    def from_mapping(cls, settings: Mapping | None) -> "ConfiguredCouponBook":
        rules = {}
        for code, entry in (settings or {}).items():
            try:
                rules[code] = DiscountRule(
                    rate=entry["rate"],
                    threshold_minor=entry.get("threshold_minor", 0),
                )
            except (KeyError, TypeError) as exc:
                raise PricingConfigurationError(f"Coupon {code} is misconfigured", coupon=code) from exc
        logger.debug("Loaded coupons", codes=sorted(rules))
        return cls(rules)

    def resolve(self, code: str) -> DiscountRule | None:
        return self._rules.get(normalize_code(code))

    @property
    def codes(self) -> list[str]:
        return sorted(self._rules)
