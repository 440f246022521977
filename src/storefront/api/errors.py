"""Maps storefront and framework errors to HTTP responses.

Every error body has the shape ``{"error": <message>, "kind": <kind>}``;
validation errors add ``details``. Infrastructure and consistency errors
only ever show their generic public message.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.errors import (
    ConsistencyViolation,
    InsufficientStock,
    OrderNotFound,
    PersistenceFailure,
    ProductNotFound,
    StorefrontError,
    ValidationFailed,
)

logger = structlog.get_logger(__name__)

_STATUS_CODES = (
    (ValidationFailed, 400),
    (ProductNotFound, 404),
    (OrderNotFound, 404),
    (InsufficientStock, 409),
    (PersistenceFailure, 503),
    (ConsistencyViolation, 500),
)


def status_for(exc: StorefrontError) -> int:
    return next((status for error_type, status in _STATUS_CODES if isinstance(exc, error_type)), 500)


def error_body(exc: StorefrontError) -> dict:
    body = {"error": exc.user_message, "kind": exc.kind}
    if isinstance(exc, ValidationFailed) and exc.errors:
        body["details"] = exc.errors
    return body


async def handle_storefront_error(request: Request, exc: StorefrontError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            kind=exc.kind,
            error=exc.message,
            context=exc.context,
        )
    return JSONResponse(status_code=status, content=jsonable_encoder(error_body(exc)))


async def handle_domain_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            {"error": "Validation failed", "kind": ValidationFailed.kind, "details": exc.messages}
        ),
    )


async def handle_object_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Not found", "kind": "not_found"})


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation failed",
            "kind": ValidationFailed.kind,
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "kind": "http_error"},
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, handle_storefront_error)
    app.add_exception_handler(ValidationError, handle_domain_validation_error)
    app.add_exception_handler(ObjectNotFoundError, handle_object_not_found)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
