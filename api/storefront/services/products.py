# storefront/services/products.py
"""
Product catalog operations.

Creation with nested variants is a single transaction (ProductWriter).
Updates use coalesce semantics: only the fields that are provided change.
Deleting a product cascades to variants, images, prices and shipping rows.
"""
from __future__ import annotations
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import selectinload

from storefront.database import Database
from storefront.db_models import Product, ProductVariant
from storefront.errors import EntityNotFound
from storefront.models import ProductCreateIn, ProductUpdateIn
from storefront.services.normalizer import bundle_from_request
from storefront.services.writer import ProductWriter, ProductWriteResult

logger = logging.getLogger(__name__)


class ProductService:

    def __init__(self, database: Database, timeout: Optional[float] = None):
        self.database = database
        self.writer = ProductWriter(database, timeout=timeout)

    # =========================================================================
    # Write
    # =========================================================================

    async def create(self, payload: ProductCreateIn) -> ProductWriteResult:
        bundle = bundle_from_request(payload)
        return await self.writer.write(bundle)

    async def update(self, product_id: UUID, payload: ProductUpdateIn) -> Product:
        """Coalesce update: None means keep the stored value."""
        changes = {k: v for k, v in payload.model_dump().items() if v is not None}

        async def _work(db) -> Optional[Product]:
            if not changes:
                return await db.get(Product, product_id)
            stmt = (
                update(Product)
                .where(Product.id == product_id)
                .values(**changes, updated_at=func.now())
                .returning(Product)
            )
            return (await db.scalars(stmt)).one_or_none()

        product = await self.writer.run_in_transaction(f"product {product_id}", _work)
        if product is None:
            raise EntityNotFound("Product not found", entity=str(product_id))
        logger.info("product %s updated: %s", product_id, sorted(changes))
        return product

    async def delete(self, product_id: UUID) -> None:
        async def _work(db) -> Optional[UUID]:
            stmt = delete(Product).where(Product.id == product_id).returning(Product.id)
            return (await db.execute(stmt)).scalar_one_or_none()

        deleted = await self.writer.run_in_transaction(f"product {product_id}", _work)
        if deleted is None:
            raise EntityNotFound("Product not found", entity=str(product_id))
        logger.info("product %s deleted", product_id)

    # =========================================================================
    # Read
    # =========================================================================

    async def get(self, product_id: UUID) -> Product:
        stmt = (
            select(Product)
            .options(
                selectinload(Product.metafield),
                selectinload(Product.images),
                selectinload(Product.variants).selectinload(ProductVariant.prices),
                selectinload(Product.variants).selectinload(ProductVariant.shipping),
            )
            .where(Product.id == product_id)
        )
        async with self.database.session() as db:
            product = (await db.scalars(stmt)).one_or_none()
        if product is None:
            raise EntityNotFound("Product not found", entity=str(product_id))
        return product

    async def list(self, limit: int = 100, offset: int = 0) -> List[Product]:
        stmt = select(Product).order_by(Product.created_at.desc()).limit(limit).offset(offset)
        async with self.database.session() as db:
            return list((await db.scalars(stmt)).all())
