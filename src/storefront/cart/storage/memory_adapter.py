"""In-process cart storage.

Carts are kept as encoded JSON payloads, the same shape the repository
adapter persists, so decoding failures surface the same way.
"""

import threading
from collections.abc import Sequence

from storefront.cart.line_item import LineItem, decode_line_items, encode_line_items
from storefront.cart.storage.port import CartStorage
from storefront.errors import PersistenceFailure


class InMemoryCartStorage(CartStorage):
    def __init__(self) -> None:
        self._payloads: dict[str, str] = {}
        self._lock = threading.Lock()
        self.fail_writes = False
        self.fail_reads = False

    def configure(self, fail_writes: bool = False, fail_reads: bool = False) -> None:
        """Simulate an unavailable backing store."""
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads

    def load_cart(self, session_key: str) -> list[LineItem]:
        if self.fail_reads:
            raise PersistenceFailure("Cart storage unavailable", session_key=session_key)
        with self._lock:
            payload = self._payloads.get(session_key)
        return decode_line_items(payload)

    def save_cart(self, session_key: str, items: Sequence[LineItem]) -> None:
        if self.fail_writes:
            raise PersistenceFailure("Cart storage unavailable", session_key=session_key)
        payload = encode_line_items(items)
        with self._lock:
            self._payloads[session_key] = payload

    def put_raw(self, session_key: str, payload: str) -> None:
        """Store a raw payload as-is, bypassing encoding."""
        with self._lock:
            self._payloads[session_key] = payload

    def raw(self, session_key: str) -> str | None:
        with self._lock:
            return self._payloads.get(session_key)
