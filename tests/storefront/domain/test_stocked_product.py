import json

import pytest
from storefront.catalogue.port import ProductRecord, SizeStock
from storefront.catalogue.product import StockedProduct
from storefront.errors import InsufficientStock


def _make_product(**overrides):
    fields = {
        "name": "Cotton Handloom Saree",
        "price_minor": 149900,
        "sizes": {"M": 5, "L": 2},
        "images": ["cotton.jpg"],
    }
    fields.update(overrides)
    return StockedProduct.create(**fields)


class TestStockedProductCreation:
    def test_aggregate_stock_defaults_to_sum_of_sizes(self):
        assert _make_product().stock == 7

    def test_explicit_aggregate_stock(self):
        assert _make_product(stock=4).stock == 4

    def test_images_are_stored_as_json(self):
        assert json.loads(_make_product().images) == ["cotton.jpg"]

    def test_explicit_identifier(self):
        assert str(_make_product(product_id="saree-cotton").id) == "saree-cotton"


class TestStockReservation:
    def test_reserve_decrements_both_counters(self):
        product = _make_product()
        product.reserve("M", 2)
        record = product.to_record()
        assert record.stock_for("M") == 3
        assert record.stock == 5

    def test_reserve_more_than_size_stock(self):
        product = _make_product()
        with pytest.raises(InsufficientStock) as exc:
            product.reserve("L", 3)
        assert exc.value.available == 2
        assert product.stock == 7

    def test_reserve_bounded_by_aggregate_counter(self):
        product = _make_product(stock=1)
        with pytest.raises(InsufficientStock):
            product.reserve("M", 2)

    def test_reserve_unknown_size(self):
        with pytest.raises(InsufficientStock) as exc:
            _make_product().reserve("XXL", 1)
        assert exc.value.available == 0

    def test_release_returns_units(self):
        product = _make_product()
        product.reserve("M", 2)
        product.release("M", 2)
        assert product.to_record().stock_for("M") == 5
        assert product.stock == 7

    def test_release_unknown_size_adds_it(self):
        product = _make_product()
        product.release("S", 1)
        assert product.to_record().stock_for("S") == 1


class TestProductRecord:
    def test_to_record(self):
        record = _make_product(product_id="saree-cotton").to_record()
        assert record.product_id == "saree-cotton"
        assert record.price_minor == 149900
        assert record.images == ("cotton.jpg",)
        assert set(record.sizes) == {SizeStock("M", 5), SizeStock("L", 2)}

    def test_available_for(self):
        record = ProductRecord("p", "Saree", 100, sizes=(SizeStock("M", 5),), stock=3)
        assert record.available_for("M") == 3
        assert record.available_for("L") == 0

    def test_with_stock_change(self):
        record = ProductRecord("p", "Saree", 100, sizes=(SizeStock("M", 5),), stock=5)
        changed = record.with_stock_change("M", -2)
        assert changed.stock_for("M") == 3
        assert changed.stock == 3
        assert record.stock == 5
