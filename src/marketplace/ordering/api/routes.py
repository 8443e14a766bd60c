"""FastAPI routes for the Ordering domain: cart, orders and coupons."""

import json

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from marketplace.ordering.api.schemas import (
    AddCartItemRequest,
    CancelOrderRequest,
    CartResponse,
    CouponQuoteResponse,
    CouponResponse,
    CreateCouponRequest,
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
    UpdateCartItemRequest,
    UpdateCouponRequest,
    UpdateItemStatusRequest,
    ValidateCouponRequest,
)
from marketplace.ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem, load_cart
from marketplace.ordering.coupon.coupon import Coupon
from marketplace.ordering.coupon.management import CreateCoupon, UpdateCoupon
from marketplace.ordering.coupon.validation import list_coupons, validate_coupon
from marketplace.ordering.order.cancellation import CancelOrder
from marketplace.ordering.order.fulfillment import UpdateItemStatus
from marketplace.ordering.order.order import Order
from marketplace.ordering.order.placement import place_order
from marketplace.ordering.order.queries import (
    get_order_for,
    list_all_orders,
    list_buyer_orders,
    list_seller_orders,
)
from marketplace.shared.auth import Principal, admin_only, buyer_only, current_principal, seller_only

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(principal: Principal = Depends(buyer_only)) -> CartResponse:
    return CartResponse.from_cart(load_cart(principal.user_id))


@cart_router.post("", response_model=CartResponse)
async def add_to_cart(body: AddCartItemRequest, principal: Principal = Depends(buyer_only)) -> CartResponse:
    command = AddToCart(
        buyer_id=principal.user_id,
        product_id=body.product_id,
        quantity=body.quantity,
        size=body.size,
        color=body.color,
    )
    current_domain.process(command, asynchronous=False)
    return CartResponse.from_cart(load_cart(principal.user_id))


@cart_router.put("/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str, body: UpdateCartItemRequest, principal: Principal = Depends(buyer_only)
) -> CartResponse:
    command = UpdateCartItem(buyer_id=principal.user_id, item_id=item_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return CartResponse.from_cart(load_cart(principal.user_id))


@cart_router.delete("/{item_id}", response_model=CartResponse)
async def remove_cart_item(item_id: str, principal: Principal = Depends(buyer_only)) -> CartResponse:
    current_domain.process(RemoveFromCart(buyer_id=principal.user_id, item_id=item_id), asynchronous=False)
    return CartResponse.from_cart(load_cart(principal.user_id))


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(principal: Principal = Depends(buyer_only)) -> CartResponse:
    current_domain.process(ClearCart(buyer_id=principal.user_id), asynchronous=False)
    return CartResponse.from_cart(load_cart(principal.user_id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: PlaceOrderRequest, principal: Principal = Depends(buyer_only)) -> OrderResponse:
    order = place_order(
        buyer_id=principal.user_id,
        shipping_address=body.shipping_address.model_dump(),
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
        notes=body.notes,
    )
    return OrderResponse.from_order(order)


@order_router.get("/my", response_model=OrderListResponse)
async def my_orders(
    status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    principal: Principal = Depends(buyer_only),
) -> OrderListResponse:
    return OrderListResponse.from_page(list_buyer_orders(principal.user_id, status=status, page=page, limit=limit))


@order_router.get("/seller/orders", response_model=OrderListResponse)
async def seller_orders(
    status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    principal: Principal = Depends(seller_only),
) -> OrderListResponse:
    return OrderListResponse.from_page(list_seller_orders(principal.user_id, status=status, page=page, limit=limit))


@order_router.get("/admin/all", response_model=OrderListResponse, dependencies=[Depends(admin_only)])
async def all_orders(
    status: str | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> OrderListResponse:
    return OrderListResponse.from_page(list_all_orders(status=status, search=search, page=page, limit=limit))


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest | None = None, principal: Principal = Depends(buyer_only)
) -> OrderResponse:
    command = CancelOrder(
        order_id=order_id,
        buyer_id=principal.user_id,
        reason=body.reason if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))


@order_router.put("/{order_id}/item/{item_id}/status", response_model=OrderResponse)
async def update_item_status(
    order_id: str, item_id: str, body: UpdateItemStatusRequest, principal: Principal = Depends(seller_only)
) -> OrderResponse:
    command = UpdateItemStatus(
        order_id=order_id,
        item_id=item_id,
        seller_id=principal.user_id,
        status=body.status,
        tracking_id=body.tracking_id,
    )
    current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return OrderResponse.from_order(get_order_for(order_id, principal.user_id, principal.role.value))


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("/validate", response_model=CouponQuoteResponse)
async def validate(body: ValidateCouponRequest, principal: Principal = Depends(buyer_only)) -> CouponQuoteResponse:
    quote = validate_coupon(body.code, principal.user_id, body.order_amount)
    return CouponQuoteResponse(
        code=quote.code,
        coupon_type=quote.coupon_type,
        value=quote.value,
        discount=quote.discount,
        description=quote.description,
    )


@coupon_router.get("", response_model=list[CouponResponse], dependencies=[Depends(admin_only)])
async def get_coupons() -> list[CouponResponse]:
    return [CouponResponse.from_coupon(coupon) for coupon in list_coupons()]


@coupon_router.post("", status_code=201, response_model=CouponResponse, dependencies=[Depends(admin_only)])
async def create_coupon(body: CreateCouponRequest) -> CouponResponse:
    command = CreateCoupon(
        code=body.code,
        description=body.description,
        coupon_type=body.coupon_type,
        value=body.value,
        min_order_amount=body.min_order_amount,
        max_discount=body.max_discount,
        usage_limit=body.usage_limit,
        per_user_limit=body.per_user_limit,
        valid_from=body.valid_from,
        valid_till=body.valid_till,
        is_active=body.is_active,
    )
    code = current_domain.process(command, asynchronous=False)
    return CouponResponse.from_coupon(current_domain.repository_for(Coupon).get(code))


@coupon_router.put("/{code}", response_model=CouponResponse, dependencies=[Depends(admin_only)])
async def update_coupon(code: str, body: UpdateCouponRequest) -> CouponResponse:
    changes = body.model_dump(exclude_unset=True, mode="json")
    command = UpdateCoupon(code=code, changes=json.dumps(changes))
    code = current_domain.process(command, asynchronous=False)
    return CouponResponse.from_coupon(current_domain.repository_for(Coupon).get(code))
