"""Response error extraction for load test observability.

Parses storefront API error responses into human-readable messages.
Every error body has the shape ``{"error": "...", "kind": "..."}``, with an
optional ``details`` mapping for validation failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a compact error message from an API error response.

    Gracefully handles unparseable bodies and missing fields.
    """
    try:
        body = response.json()
    except Exception:
        # Not JSON: return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if not isinstance(body, dict) or "error" not in body:
        return str(body)[:300]

    message = f"{body.get('kind', 'error')}: {body['error']}"
    details = body.get("details")
    if isinstance(details, dict):
        message += " | " + " | ".join(f"{field}: {problems}" for field, problems in details.items())
    elif isinstance(details, list):
        parts = []
        for err in details:
            loc = ".".join(str(p) for p in err.get("loc", []))
            parts.append(f"{loc}: {err.get('msg', err)}" if loc else str(err.get("msg", err)))
        message += " | " + " | ".join(parts)
    return message


def is_stock_rejection(response: Response) -> bool:
    """Insufficient stock is an expected outcome under load, not a failure."""
    if response.status_code != 409:
        return False
    try:
        return response.json().get("kind") == "insufficient_stock"
    except Exception:
        return False
