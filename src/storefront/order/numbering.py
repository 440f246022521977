"""Order number generation.

Format: ``<prefix><epoch milliseconds><4-digit sequence><4 hex chars>``, e.g.
``HF17291234567890042A3F9``. The sequence is process-wide and the hex suffix
random, so two numbers generated in the same millisecond still differ; the
ledger remains the authority on uniqueness.
"""

import itertools
import secrets
import threading
import time

_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


def _next_sequence() -> int:
    with _sequence_lock:
        return next(_sequence) % 10000


def generate_order_number(prefix: str = "HF") -> str:
    millis = time.time_ns() // 1_000_000
    return f"{prefix}{millis}{_next_sequence():04d}{secrets.token_hex(2).upper()}"
