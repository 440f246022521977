"""Tests for line item values and their persisted JSON form."""

import json

import pytest
from storefront.cart.line_item import LineItem, decode_line_items, encode_line_items
from storefront.errors import MalformedCartData


def _line(**overrides):
    fields = {
        "product_id": "saree-1",
        "name": "Cotton Handloom Saree",
        "unit_price_minor": 149900,
        "size": "M",
        "quantity": 2,
        "image_ref": "cotton.jpg",
    }
    fields.update(overrides)
    return LineItem(**fields)


class TestLineItem:
    def test_key_is_product_and_size(self):
        assert _line().key == ("saree-1", "M")

    def test_line_total(self):
        assert _line().line_total_minor == 299800

    def test_with_quantity_returns_new_value(self):
        line = _line()
        changed = line.with_quantity(5)
        assert changed.quantity == 5
        assert line.quantity == 2

    @pytest.mark.parametrize(
        "overrides",
        [
            {"quantity": 0},
            {"quantity": True},
            {"quantity": 1.5},
            {"unit_price_minor": -1},
            {"product_id": ""},
            {"size": "  "},
            {"name": None},
            {"image_ref": 12},
        ],
    )
    def test_rejects_invalid_fields(self, overrides):
        with pytest.raises(ValueError):
            _line(**overrides)

    def test_from_dict_requires_all_fields(self):
        data = _line().to_dict()
        del data["size"]
        with pytest.raises(ValueError, match="size"):
            LineItem.from_dict(data)

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(ValueError):
            LineItem.from_dict(["saree-1"])


class TestPayloads:
    def test_encoded_payload_is_a_json_array(self):
        payload = encode_line_items([_line()])
        assert json.loads(payload)[0]["product_id"] == "saree-1"

    def test_saved_cart_restores_to_equal_sequence(self):
        items = [_line(), _line(product_id="saree-2", size="L", quantity=1, image_ref=None)]
        assert decode_line_items(encode_line_items(items)) == items

    def test_empty_payload_decodes_to_empty_list(self):
        assert decode_line_items("") == []
        assert decode_line_items(None) == []

    def test_invalid_json_raises(self):
        with pytest.raises(MalformedCartData):
            decode_line_items("[{")

    def test_non_array_raises(self):
        with pytest.raises(MalformedCartData):
            decode_line_items('{"product_id": "saree-1"}')

    def test_invalid_entry_raises(self):
        with pytest.raises(MalformedCartData):
            decode_line_items('[{"product_id": "saree-1", "quantity": -1}]')
