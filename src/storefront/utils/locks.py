"""Per-key mutual exclusion with bounded waits."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from storefront.errors import PersistenceFailure


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0  # holder plus waiters


class KeyedLocks:
    """Hands out one lock per key, e.g. per product id.

    Acquisition is bounded by ``timeout`` seconds; a caller that cannot get
    the lock in time receives a ``PersistenceFailure`` instead of blocking.
    A key's lock is dropped once nobody holds or waits for it, so the
    registry only grows with the number of keys in use at the same time.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._guard = threading.Lock()
        self._slots: dict[str, _Slot] = {}

    def _check_out(self, key: str) -> _Slot:
        with self._guard:
            slot = self._slots.get(key)
            if slot is None:
                slot = self._slots[key] = _Slot()
            slot.users += 1
            return slot

    def _check_in(self, key: str, slot: _Slot) -> None:
        with self._guard:
            slot.users -= 1
            if slot.users == 0:
                self._slots.pop(key, None)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        key = str(key)
        slot = self._check_out(key)
        try:
            if not slot.lock.acquire(timeout=self.timeout):
                raise PersistenceFailure(f"Timed out after {self.timeout}s waiting for lock on {key}", key=key)
            try:
                yield
            finally:
                slot.lock.release()
        finally:
            self._check_in(key, slot)

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)
