"""Storefront API package."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.errors import register_error_handlers
from storefront.api.routes import cart_router, order_router
from storefront.domain import storefront
from storefront.utils.logging import bind_request_context, clear_request_context
from storefront.wiring import Services, build_services

__all__ = ["cart_router", "order_router", "create_app"]


def create_app(services: Services | None = None) -> FastAPI:
    """Build the HTTP application.

    ``services`` defaults to repository-backed adapters wired from the
    storefront domain when the application starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services(storefront)
        yield

    app = FastAPI(
        title="Storefront API",
        description="Shopping cart, checkout pricing and order workflow",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the storefront domain context and bind request fields for logging."""
        bind_request_context(path=request.url.path, method=request.method)
        try:
            with storefront.domain_context():
                return await call_next(request)
        finally:
            clear_request_context()

    register_error_handlers(app)
    app.include_router(cart_router)
    app.include_router(order_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": storefront.name})

    return app
