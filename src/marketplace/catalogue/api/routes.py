"""FastAPI routes for the catalogue slice: sellers list, restock and retire products."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.catalogue.api.schemas import ListProductRequest, ProductResponse, RestockRequest
from marketplace.catalogue.listing import DeactivateProduct, ListProduct, RestockProduct
from marketplace.catalogue.product import Product
from marketplace.shared.auth import Principal, Role, require_role, seller_only
from marketplace.shared.errors import NotAuthorized

product_router = APIRouter(prefix="/products", tags=["products"])

seller_or_admin = require_role(Role.SELLER, Role.ADMIN)


def _owned_product(product_id: str, principal: Principal) -> Product:
    product = current_domain.repository_for(Product).get(product_id)
    if not principal.is_admin and str(product.seller_id) != principal.user_id:
        raise NotAuthorized()
    return product


@product_router.post("", status_code=201, response_model=ProductResponse)
async def list_product(
    body: ListProductRequest, principal: Principal = Depends(seller_only)
) -> ProductResponse:
    command = ListProduct(
        seller_id=principal.user_id,
        name=body.name,
        price=body.price,
        mrp=body.mrp,
        stock=body.stock,
        image=body.image,
        free_shipping=body.free_shipping,
        shipping_cost=body.shipping_cost,
    )
    product_id = current_domain.process(command, asynchronous=False)
    return ProductResponse.from_product(current_domain.repository_for(Product).get(product_id))


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    return ProductResponse.from_product(current_domain.repository_for(Product).get(product_id))


@product_router.put("/{product_id}/restock", response_model=ProductResponse)
async def restock_product(
    product_id: str, body: RestockRequest, principal: Principal = Depends(seller_or_admin)
) -> ProductResponse:
    _owned_product(product_id, principal)
    current_domain.process(RestockProduct(product_id=product_id, quantity=body.quantity), asynchronous=False)
    return ProductResponse.from_product(current_domain.repository_for(Product).get(product_id))


@product_router.put("/{product_id}/deactivate", response_model=ProductResponse)
async def deactivate_product(product_id: str, principal: Principal = Depends(seller_or_admin)) -> ProductResponse:
    _owned_product(product_id, principal)
    current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
    return ProductResponse.from_product(current_domain.repository_for(Product).get(product_id))
