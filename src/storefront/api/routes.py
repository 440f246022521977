"""FastAPI routes for the storefront: carts and orders."""

import math

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.dependencies import Caller, get_caller, get_services, require_admin
from storefront.api.schemas import (
    AddCartItemRequest,
    AdvanceStatusRequest,
    CartResponse,
    OrderListResponse,
    OrderResponse,
    PaginationSchema,
    PlaceOrderRequest,
    RefundRequest,
    SetCartQuantityRequest,
)
from storefront.order.fulfillment import AdvanceOrderStatus, RefundOrder, submit
from storefront.wiring import Services

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("/{session_key}", response_model=CartResponse)
async def get_cart(session_key: str, services: Services = Depends(get_services)) -> CartResponse:
    store = services.cart_for(session_key)
    return CartResponse.from_store(store, services.rules)


@cart_router.post("/{session_key}/items", response_model=CartResponse)
async def add_cart_item(
    session_key: str,
    body: AddCartItemRequest,
    services: Services = Depends(get_services),
) -> CartResponse:
    product = services.catalogue.get_product(body.product_id)
    store = services.cart_for(session_key)
    store.add_item(product, size=body.size, quantity=body.quantity)
    return CartResponse.from_store(store, services.rules)


@cart_router.put("/{session_key}/items", response_model=CartResponse)
async def set_cart_item_quantity(
    session_key: str,
    body: SetCartQuantityRequest,
    services: Services = Depends(get_services),
) -> CartResponse:
    store = services.cart_for(session_key)
    store.set_quantity(body.product_id, body.size, body.quantity)
    return CartResponse.from_store(store, services.rules)


@cart_router.delete("/{session_key}/items/{product_id}/{size}", response_model=CartResponse)
async def remove_cart_item(
    session_key: str,
    product_id: str,
    size: str,
    services: Services = Depends(get_services),
) -> CartResponse:
    store = services.cart_for(session_key)
    store.remove_item(product_id, size)
    return CartResponse.from_store(store, services.rules)


@cart_router.delete("/{session_key}", response_model=CartResponse)
async def clear_cart(session_key: str, services: Services = Depends(get_services)) -> CartResponse:
    store = services.cart_for(session_key)
    store.clear()
    return CartResponse.from_store(store, services.rules)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(
    body: PlaceOrderRequest,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> OrderResponse:
    order = services.placement.place_order(
        user_id=caller.user_id,
        proposed_items=[item.model_dump() for item in body.items],
        shipping_address=body.shipping_address.model_dump() if body.shipping_address else None,
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
        session_key=body.session_key,
        order_notes=body.order_notes,
    )
    return OrderResponse.from_order(order)


@order_router.get("/my", response_model=OrderListResponse)
async def list_my_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> OrderListResponse:
    orders, total = services.orders.list_for_user(caller.user_id, page=page, limit=limit)
    return OrderListResponse(
        orders=[OrderResponse.from_order(order) for order in orders],
        pagination=PaginationSchema(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_orders=total,
        ),
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> OrderResponse:
    order = services.orders.get(order_id)
    if not caller.can_view(order):
        raise HTTPException(status_code=403, detail="Access denied")
    return OrderResponse.from_order(order)


@order_router.patch("/{order_id}/status", response_model=OrderResponse)
async def advance_order_status(
    order_id: str,
    body: AdvanceStatusRequest,
    caller: Caller = Depends(require_admin),
) -> OrderResponse:
    command = AdvanceOrderStatus(
        order_id=order_id,
        status=body.status,
        note=body.note,
        tracking_number=body.tracking_number,
        courier_service=body.courier_service,
        estimated_delivery_date=body.estimated_delivery_date,
    )
    order = submit(command)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/refund", response_model=OrderResponse)
async def refund_order(
    order_id: str,
    body: RefundRequest,
    caller: Caller = Depends(require_admin),
) -> OrderResponse:
    command = RefundOrder(
        order_id=order_id,
        amount_minor=body.amount_minor,
        reason=body.reason,
    )
    order = submit(command)
    return OrderResponse.from_order(order)
