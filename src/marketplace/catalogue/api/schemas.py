"""Pydantic request/response schemas for the Catalogue API."""

from datetime import datetime

from pydantic import Field

from marketplace.ordering.api.schemas import ApiModel


class ListProductRequest(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)
    mrp: float | None = Field(default=None, ge=0)
    stock: int = Field(ge=0)
    image: str | None = None
    free_shipping: bool = False
    shipping_cost: float = Field(ge=0, default=0.0)


class RestockRequest(ApiModel):
    quantity: int = Field(ge=1)


class ProductResponse(ApiModel):
    id: str
    seller_id: str
    name: str
    price: float
    mrp: float | None = None
    stock: int
    total_sold: int
    is_active: bool
    free_shipping: bool
    shipping_cost: float
    created_at: datetime | None = None

    @classmethod
    def from_product(cls, product) -> "ProductResponse":
        shipping = product.shipping_info
        return cls(
            id=str(product.id),
            seller_id=str(product.seller_id),
            name=product.name,
            price=product.price,
            mrp=product.mrp,
            stock=product.stock,
            total_sold=product.total_sold or 0,
            is_active=product.is_active,
            free_shipping=bool(shipping and shipping.free_shipping),
            shipping_cost=(shipping.shipping_cost if shipping else 0.0) or 0.0,
            created_at=product.created_at,
        )
