"""Storefront FastAPI application.

Web server for carts, checkout and the order workflow. Each request runs
inside the storefront domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay:
#   - unset / "test" → memory providers, synchronous processing
#   - "production"   → PostgreSQL via DATABASE_URL, asynchronous events
from storefront.api import create_app
from storefront.domain import storefront

storefront.init()

app = create_app()
