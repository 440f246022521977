"""Line items: a product in one size, with a quantity, inside a cart or order.

Amounts are integers in the smallest currency unit (paise for INR).
"""

import json
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, replace

from storefront.errors import MalformedCartData

DEFAULT_SIZE = "M"


def _as_int(value, field: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{field} must be at least {minimum}, got {value}")
    return value


def _as_text(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return value


@dataclass(frozen=True)
class LineItem:
    product_id: str
    name: str
    unit_price_minor: int
    size: str
    quantity: int
    image_ref: str | None = None

    def __post_init__(self):
        _as_text(self.product_id, "product_id")
        _as_text(self.name, "name")
        _as_text(self.size, "size")
        _as_int(self.unit_price_minor, "unit_price_minor", 0)
        _as_int(self.quantity, "quantity", 1)
        if self.image_ref is not None and not isinstance(self.image_ref, str):
            raise ValueError("image_ref must be a string")

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.size)

    @property
    def line_total_minor(self) -> int:
        return self.unit_price_minor * self.quantity

    def with_quantity(self, quantity: int) -> "LineItem":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping) -> "LineItem":
        """Build a line item from a decoded mapping, raising ValueError when malformed."""
        if not isinstance(data, Mapping):
            raise ValueError(f"Line item must be a mapping, got {type(data).__name__}")
        try:
            return cls(
                product_id=data["product_id"],
                name=data["name"],
                unit_price_minor=data["unit_price_minor"],
                size=data["size"],
                quantity=data["quantity"],
                image_ref=data.get("image_ref"),
            )
        except KeyError as exc:
            raise ValueError(f"Line item is missing {exc.args[0]}") from None

    @classmethod
    def coerce(cls, value) -> "LineItem":
        return value if isinstance(value, cls) else cls.from_dict(value)


def encode_line_items(items: Iterable[LineItem]) -> str:
    return json.dumps([item.to_dict() for item in items])


def decode_line_items(payload: str | bytes | None) -> list[LineItem]:
    """Decode a persisted cart payload. Empty payloads decode to an empty list."""
    if not payload:
        return []
    try:
        raw = json.loads(payload)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as exc:
        raise MalformedCartData(f"Cart payload is not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise MalformedCartData("Cart payload must be a JSON array")

    try:
        return [LineItem.from_dict(entry) for entry in raw]
    except ValueError as exc:
        raise MalformedCartData(str(exc)) from exc
