import os

import pytest


@pytest.fixture(scope="session")
def _storefront_domain(request):
    """Initialize the storefront domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def whole_rupee_rules():
    """Business rules expressed in whole rupees, matching the worked examples."""
    from storefront.pricing.rules import PricingRules

    return PricingRules(
        free_shipping_threshold_minor=2000,
        flat_shipping_fee_minor=99,
        discount_threshold_minor=3000,
    )


@pytest.fixture()
def address():
    return {
        "full_name": "Asha Rao",
        "phone": "9876543210",
        "email": "asha@example.com",
        "street": "12 MG Road",
        "apartment": "Flat 4B",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
    }


@pytest.fixture()
def catalogue():
    from storefront.catalogue.memory_adapter import InMemoryCatalogue
    from storefront.catalogue.port import ProductRecord, SizeStock

    return InMemoryCatalogue(
        [
            ProductRecord(
                product_id="saree-cotton",
                name="Cotton Handloom Saree",
                price_minor=149900,
                images=("cotton.jpg",),
                sizes=(SizeStock("M", 5), SizeStock("L", 2)),
                stock=7,
            ),
            ProductRecord(
                product_id="saree-silk",
                name="Banarasi Silk Saree",
                price_minor=599900,
                images=("silk.jpg",),
                sizes=(SizeStock("M", 3), SizeStock("XL", 0)),
                stock=3,
            ),
        ]
    )


@pytest.fixture()
def ledger():
    from storefront.order.ledger.memory_adapter import InMemoryOrderLedger

    return InMemoryOrderLedger()


@pytest.fixture()
def cart_storage():
    from storefront.cart.storage.memory_adapter import InMemoryCartStorage

    return InMemoryCartStorage()


@pytest.fixture()
def placement(catalogue, ledger, cart_storage):
    from storefront.order.placement import OrderPlacementService
    from storefront.pricing.coupons import ConfiguredCouponBook
    from storefront.pricing.rules import DiscountRule, PricingRules

    return OrderPlacementService(
        catalogue=catalogue,
        orders=ledger,
        carts=cart_storage,
        rules=PricingRules(),
        coupons=ConfiguredCouponBook({"FESTIVE15": DiscountRule(rate="0.15")}),
    )
