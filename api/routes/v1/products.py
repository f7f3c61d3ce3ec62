"""
api/routes/v1/products.py -- Product CRUD endpoints, scoped to the caller.

Routes:
  POST   /api/v1/products               -- create a product owned by the caller
  GET    /api/v1/products               -- list the caller's products, newest first
  GET    /api/v1/products/{product_id}  -- fetch one product
  PATCH  /api/v1/products/{product_id}  -- partial update
  DELETE /api/v1/products/{product_id}  -- delete; 204

Every route requires a bearer access token. The owner is always the token's
subject; a product id belonging to another user yields 403, an unknown id 404.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import ProductCreate, ProductPatch, ProductResponse
from auth.dependencies import get_current_payload
from auth.tokens import TokenPayload
from inventory.models import Product
from inventory.service import ProductService

# Auth policy: every route requires a bearer access token (get_current_payload)
router = APIRouter()


def _service(request: Request) -> ProductService:
    return request.app.state.product_service


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(
    request: Request,
    body: ProductCreate,
    payload: TokenPayload = Depends(get_current_payload),
) -> ProductResponse:
    """Create a product. Barcodes are unique across all users (400 on conflict)."""
    product = Product(
        user_id=payload.user_id,
        category=body.category,
        price=body.price,
        cost=body.cost,
        name=body.name,
        description=body.description,
        barcode=body.barcode,
        expiration_date=body.expiration_date,
        size=body.size.value,
    )
    created = _service(request).create_product(product)
    return ProductResponse.from_product(created)


@router.get("/products", response_model=list[ProductResponse])
def list_products(
    request: Request,
    payload: TokenPayload = Depends(get_current_payload),
) -> list[ProductResponse]:
    return [ProductResponse.from_product(p) for p in _service(request).list_products(payload.user_id)]


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(
    request: Request,
    product_id: int,
    payload: TokenPayload = Depends(get_current_payload),
) -> ProductResponse:
    return ProductResponse.from_product(_service(request).get_product(payload.user_id, product_id))


@router.patch("/products/{product_id}", response_model=ProductResponse)
def update_product(
    request: Request,
    product_id: int,
    body: ProductPatch,
    payload: TokenPayload = Depends(get_current_payload),
) -> ProductResponse:
    """Apply the provided fields; omitted fields keep their current value."""
    changes = body.model_dump(exclude_none=True)
    if "size" in changes:
        changes["size"] = body.size.value
    updated = _service(request).update_product(payload.user_id, product_id, changes)
    return ProductResponse.from_product(updated)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    request: Request,
    product_id: int,
    payload: TokenPayload = Depends(get_current_payload),
) -> Response:
    _service(request).delete_product(payload.user_id, product_id)
    return Response(status_code=204)
