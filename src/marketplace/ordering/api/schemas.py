"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Bodies use camelCase on the wire; snake_case
field names are accepted on input as well.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=1, max_length=20)
    address_line1: str = Field(min_length=1, max_length=255)
    address_line2: str | None = None
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    pincode: str = Field(min_length=1, max_length=12)
    landmark: str | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(ApiModel):
    shipping_address: ShippingAddressSchema
    payment_method: Literal["cod", "razorpay"] = "cod"
    coupon_code: str | None = None
    notes: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "shippingAddress": {
                        "name": "Asha Rao",
                        "phone": "9800000000",
                        "addressLine1": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "KA",
                        "pincode": "560001",
                    },
                    "paymentMethod": "razorpay",
                    "couponCode": "WELCOME10",
                }
            ]
        },
    )


class CancelOrderRequest(ApiModel):
    reason: str | None = Field(default=None, max_length=500)


class UpdateItemStatusRequest(ApiModel):
    status: str
    tracking_id: str | None = None


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(ApiModel):
    id: str
    product_id: str
    seller_id: str
    name: str
    image: str | None = None
    price: float
    mrp: float | None = None
    quantity: int
    size: str | None = None
    color: str | None = None
    status: str
    tracking_id: str | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None


class PaymentInfoResponse(ApiModel):
    method: str
    status: str
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    paid_at: datetime | None = None


class OrderResponse(ApiModel):
    id: str
    buyer_id: str
    items: list[OrderItemResponse]
    shipping_address: ShippingAddressSchema
    payment_info: PaymentInfoResponse
    subtotal: float
    shipping_charge: float
    discount: float
    coupon: str | None = None
    grand_total: float
    order_status: str
    notes: str | None = None
    placed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        address = order.shipping_address
        payment = order.payment_info
        return cls(
            id=str(order.id),
            buyer_id=str(order.buyer_id),
            items=[
                OrderItemResponse(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    seller_id=str(item.seller_id),
                    name=item.name,
                    image=item.image,
                    price=item.price,
                    mrp=item.mrp,
                    quantity=item.quantity,
                    size=item.size,
                    color=item.color,
                    status=item.status,
                    tracking_id=item.tracking_id,
                    delivered_at=item.delivered_at,
                    cancelled_at=item.cancelled_at,
                    cancel_reason=item.cancel_reason,
                )
                for item in order.items
            ],
            shipping_address=ShippingAddressSchema(
                name=address.name,
                phone=address.phone,
                address_line1=address.address_line1,
                address_line2=address.address_line2,
                city=address.city,
                state=address.state,
                pincode=address.pincode,
                landmark=address.landmark,
            ),
            payment_info=PaymentInfoResponse(
                method=payment.method,
                status=payment.status,
                gateway_order_id=payment.gateway_order_id,
                gateway_payment_id=payment.gateway_payment_id,
                paid_at=payment.paid_at,
            ),
            subtotal=order.subtotal,
            shipping_charge=order.shipping_charge,
            discount=order.discount,
            coupon=order.coupon,
            grand_total=order.grand_total,
            order_status=order.order_status,
            notes=order.notes,
            placed_at=order.placed_at,
            cancelled_at=order.cancelled_at,
            cancel_reason=order.cancel_reason,
        )


class OrderListResponse(ApiModel):
    orders: list[OrderResponse]
    pagination: Pagination

    @classmethod
    def from_page(cls, page) -> "OrderListResponse":
        return cls(
            orders=[OrderResponse.from_order(order) for order in page.items],
            pagination=Pagination(**page.meta()),
        )


# ---------------------------------------------------------------------------
# Cart Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(ApiModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    size: str = ""
    color: str = ""


class UpdateCartItemRequest(ApiModel):
    quantity: int = Field(ge=1)


class CartItemResponse(ApiModel):
    id: str
    product_id: str
    quantity: int
    size: str | None = None
    color: str | None = None
    price: float
    mrp: float | None = None


class CartResponse(ApiModel):
    buyer_id: str
    items: list[CartItemResponse]
    item_count: int
    total: float

    @classmethod
    def from_cart(cls, cart) -> "CartResponse":
        items = [
            CartItemResponse(
                id=str(item.id),
                product_id=str(item.product_id),
                quantity=item.quantity,
                size=item.size,
                color=item.color,
                price=item.price,
                mrp=item.mrp,
            )
            for item in cart.items
        ]
        return cls(
            buyer_id=str(cart.buyer_id),
            items=items,
            item_count=sum(item.quantity for item in items),
            total=round(sum(item.price * item.quantity for item in items), 2),
        )


# ---------------------------------------------------------------------------
# Coupon Schemas
# ---------------------------------------------------------------------------
class ValidateCouponRequest(ApiModel):
    code: str = Field(min_length=1, max_length=50)
    order_amount: float = Field(ge=0)


class CouponQuoteResponse(ApiModel):
    code: str
    coupon_type: str = Field(alias="type")
    value: float
    discount: float
    description: str | None = None


class CreateCouponRequest(ApiModel):
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    coupon_type: Literal["percentage", "fixed"] = Field(alias="type")
    value: float = Field(gt=0)
    min_order_amount: float = Field(ge=0, default=0.0)
    max_discount: float = Field(ge=0, default=0.0)
    usage_limit: int = Field(ge=0, default=0)
    per_user_limit: int = Field(ge=1, default=1)
    valid_from: datetime
    valid_till: datetime
    is_active: bool = True


class UpdateCouponRequest(ApiModel):
    description: str | None = None
    coupon_type: Literal["percentage", "fixed"] | None = Field(default=None, alias="type")
    value: float | None = Field(default=None, gt=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    max_discount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=0)
    per_user_limit: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    valid_till: datetime | None = None
    is_active: bool | None = None


class CouponResponse(ApiModel):
    code: str
    description: str | None = None
    coupon_type: str = Field(alias="type")
    value: float
    min_order_amount: float
    max_discount: float
    usage_limit: int
    used_count: int
    per_user_limit: int
    valid_from: datetime
    valid_till: datetime
    is_active: bool

    @classmethod
    def from_coupon(cls, coupon) -> "CouponResponse":
        return cls(
            code=coupon.code,
            description=coupon.description,
            coupon_type=coupon.coupon_type,
            value=coupon.value,
            min_order_amount=coupon.min_order_amount or 0.0,
            max_discount=coupon.max_discount or 0.0,
            usage_limit=coupon.usage_limit or 0,
            used_count=coupon.used_count or 0,
            per_user_limit=coupon.per_user_limit,
            valid_from=coupon.valid_from,
            valid_till=coupon.valid_till,
            is_active=coupon.is_active,
        )
