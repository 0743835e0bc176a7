# storefront/routers/products.py
"""
Products Router - catalog CRUD.

POST creates the product with all its variants, images, prices and shipping
rows in one transaction. PUT is a coalesce update. DELETE cascades.
"""
from __future__ import annotations
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from storefront.database import Database, get_database
from storefront.settings import settings
from storefront.models import (
    ProductCreateIn, ProductUpdateIn, ProductOut, ProductDetailOut, ProductWriteOut,
    VariantOut, ImageOut, VariantPriceOut, ShippingOut,
)
from storefront.services.products import ProductService
from storefront.services.writer import ProductWriteResult

router = APIRouter(prefix="/products", tags=["Products"])


def get_product_service(database: Database = Depends(get_database)) -> ProductService:
    return ProductService(database, timeout=settings.WRITE_TIMEOUT_SEC)


def _write_out(result: ProductWriteResult) -> ProductWriteOut:
    return ProductWriteOut(
        product_id=result.product.id,
        product=ProductOut.model_validate(result.product),
        variants=[VariantOut.model_validate(v) for v in result.variants],
        images=[ImageOut.model_validate(i) for i in result.images],
        prices=[VariantPriceOut.model_validate(p) for p in result.prices],
        shipping=[ShippingOut.model_validate(s) for s in result.shipping],
        skipped_skus=result.skipped_skus,
    )


@router.post("", response_model=ProductWriteOut, status_code=201)
async def create_product(
    payload: ProductCreateIn,
    service: ProductService = Depends(get_product_service),
):
    """Create a product with nested variants (all or nothing)."""
    result = await service.create(payload)
    return _write_out(result)


@router.get("", response_model=List[ProductOut])
async def list_products(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: ProductService = Depends(get_product_service),
):
    return await service.list(limit=limit, offset=offset)


@router.get("/{product_id}", response_model=ProductDetailOut)
async def get_product(product_id: UUID, service: ProductService = Depends(get_product_service)):
    return await service.get(product_id)


@router.put("/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: UUID,
    payload: ProductUpdateIn,
    service: ProductService = Depends(get_product_service),
):
    """Fields left out (or null) keep their stored values."""
    return await service.update(product_id, payload)


@router.delete("/{product_id}")
async def delete_product(product_id: UUID, service: ProductService = Depends(get_product_service)):
    await service.delete(product_id)
    return {"message": "Product deleted", "product_id": str(product_id)}
