from typing import Optional
from uuid import UUID

from fastapi import APIRouter, status

from eshop.models.catalog import Product
from eshop.schemas.catalog import ProductRequest, ProductResponse, ProductUpdateRequest
from eshop.schemas.response import SuccessResponse
from eshop.services.catalog_service import (
    create_product,
    delete_product,
    get_product,
    get_products,
    update_product,
)

router = APIRouter()


def _product_data(product: Product) -> dict:
    return ProductResponse(
        id=product.id,
        name=product.name,
        category=product.category or [],
        description=product.description,
        image_file=product.image_file,
        price=product.price,
    ).model_dump(mode="json")


@router.post("/products", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_product_endpoint(request_data: ProductRequest):
    product = await create_product(request_data)
    return SuccessResponse(data=_product_data(product))


@router.get("/products", response_model=SuccessResponse)
async def list_products_endpoint(category: Optional[str] = None):
    """Lists products, optionally only those in one category."""
    products = await get_products(category)
    return SuccessResponse(data=[_product_data(p) for p in products])


@router.get("/products/{product_id}", response_model=SuccessResponse)
async def get_product_endpoint(product_id: UUID):
    product = await get_product(product_id)
    return SuccessResponse(data=_product_data(product))


@router.put("/products/{product_id}", response_model=SuccessResponse)
async def update_product_endpoint(product_id: UUID, request_data: ProductUpdateRequest):
    """Updates a product; a new price is propagated to baskets via the outbox."""
    product = await update_product(product_id, request_data)
    return SuccessResponse(data=_product_data(product))


@router.delete("/products/{product_id}", response_model=SuccessResponse)
async def delete_product_endpoint(product_id: UUID):
    await delete_product(product_id)
    return SuccessResponse(message=f"Product {product_id} deleted.")
