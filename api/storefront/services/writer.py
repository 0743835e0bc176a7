# storefront/services/writer.py
"""
Transactional writers for multi-table entities.

One logical entity (a product bundle, an order) is written inside a single
transaction on a single pooled connection:

    BEGIN -> parent -> children in dependency order -> COMMIT

Any failure rolls back everything written for the entity, releases the
connection, and is re-raised as a classified ``WorkflowError``.
"""
from __future__ import annotations
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import Database
from storefront.db_models import (
    Order, OrderItem, Product, ProductImage, ProductMetafield,
    ProductVariant, ShippingDetail, VariantPrice,
)
from storefront.errors import ValidationFailure, WorkflowError, classify_db_error
from storefront.services.normalizer import ProductBundle, VariantBundle

logger = logging.getLogger(__name__)

T = TypeVar("T")


def upsert_statement(dialect_name: str, model):
    """Dialect insert supporting ON CONFLICT (PostgreSQL / SQLite)."""
    if dialect_name == "postgresql":
        return pg_insert(model)
    if dialect_name == "sqlite":
        return sqlite_insert(model)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported on {dialect_name}")


@dataclass
class ProductWriteResult:
    product: Product
    metafield: Optional[ProductMetafield] = None
    variants: List[ProductVariant] = field(default_factory=list)
    images: List[ProductImage] = field(default_factory=list)
    prices: List[VariantPrice] = field(default_factory=list)
    shipping: List[ShippingDetail] = field(default_factory=list)
    skipped_skus: List[str] = field(default_factory=list)


@dataclass
class OrderWriteResult:
    order: Order
    items: List[OrderItem] = field(default_factory=list)


class TransactionalWriter:
    """Runs one unit of work in its own transaction with a time bound."""

    def __init__(self, database: Database, timeout: Optional[float] = None):
        self.database = database
        self.timeout = timeout

    async def run_in_transaction(
        self,
        entity: str,
        work: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        try:
            return await asyncio.wait_for(self._transaction(work), timeout=self.timeout)
        except WorkflowError:
            raise
        except Exception as e:
            failure = classify_db_error(e, entity=entity)
            logger.warning("write rolled back for %s: %s (%s)", entity, failure.code, failure.detail)
            raise failure from e

    async def _transaction(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        # connection is checked out here and returned when the block exits
        async with self.database.transaction() as db:
            return await work(db)

    async def insert_returning(self, db: AsyncSession, model, values: dict):
        stmt = insert(model).values(**values).returning(model)
        return (await db.scalars(stmt)).one()


# ============================================================================
# Products
# ============================================================================

class ProductWriter(TransactionalWriter):

    async def write(self, bundle: ProductBundle) -> ProductWriteResult:
        """Write one product bundle atomically."""
        result = await self.run_in_transaction(
            bundle.handle, lambda db: self.insert_bundle(db, bundle)
        )
        logger.info(
            "product %s written: %d variants, %d skipped skus",
            bundle.handle, len(result.variants), len(result.skipped_skus),
        )
        return result

    async def write_many(self, bundles: Sequence[ProductBundle]) -> List[ProductWriteResult]:
        """Write all bundles in ONE transaction; the first failure rolls back every bundle."""
        current = {"handle": "batch"}

        async def _work(db: AsyncSession) -> List[ProductWriteResult]:
            results = []
            for bundle in bundles:
                current["handle"] = bundle.handle
                results.append(await self.insert_bundle(db, bundle))
            return results

        try:
            return await self.run_in_transaction("batch", _work)
        except WorkflowError as e:
            # attribute the failure to the bundle that was being written
            e.entity = current["handle"]
            raise

    async def insert_bundle(self, db: AsyncSession, bundle: ProductBundle) -> ProductWriteResult:
        """Insert parent then children on an already open transaction."""
        product = await self.insert_returning(db, Product, bundle.product)
        result = ProductWriteResult(product=product)

        if bundle.metafields is not None:
            result.metafield = await self.insert_returning(db, ProductMetafield, bundle.metafields)

        for vb in bundle.variants:
            variant = await self._insert_variant(db, vb)
            if variant is None:
                # existing sku: keep the stored row, drop this variant's dependents
                result.skipped_skus.append(vb.sku)
                logger.info("variant sku %s already exists, skipped (%s)", vb.sku, bundle.handle)
                continue
            result.variants.append(variant)

            if vb.image is not None:
                result.images.append(await self.insert_returning(db, ProductImage, vb.image))
            for price in vb.prices:
                result.prices.append(await self.insert_returning(db, VariantPrice, price))
            result.shipping.append(await self.insert_returning(db, ShippingDetail, vb.shipping))

        return result

    async def _insert_variant(self, db: AsyncSession, vb: VariantBundle) -> Optional[ProductVariant]:
        stmt = (
            upsert_statement(self.database.dialect_name, ProductVariant)
            .values(**vb.variant)
            .on_conflict_do_nothing(index_elements=[ProductVariant.sku])
            .returning(ProductVariant)
        )
        return (await db.scalars(stmt)).one_or_none()


# ============================================================================
# Orders
# ============================================================================

class OrderWriter(TransactionalWriter):

    async def write(
        self,
        user_id: int,
        items: Sequence[Any],
        address_id: Optional[int] = None,
        total_amount: Optional[Decimal] = None,
    ) -> OrderWriteResult:
        """
        Create an order and its items atomically.

        ``items`` are objects with product_id, variant_id, quantity, price.
        When ``total_amount`` is absent it is the sum of quantity * price.
        """
        if not items:
            raise ValidationFailure("An order needs at least one item", entity="order")

        order_values = {
            "id": uuid.uuid4(),
            "user_id": user_id,
            "address_id": address_id,
            "total_amount": total_amount if total_amount is not None else sum(
                (Decimal(it.price) * it.quantity for it in items), Decimal("0")
            ),
        }

        async def _work(db: AsyncSession) -> OrderWriteResult:
            order = await self.insert_returning(db, Order, order_values)
            result = OrderWriteResult(order=order)
            for it in items:
                result.items.append(await self.insert_returning(db, OrderItem, {
                    "order_id": order.id,
                    "product_id": it.product_id,
                    "variant_id": it.variant_id,
                    "quantity": it.quantity,
                    "price_at_purchase": it.price,
                }))
            return result

        result = await self.run_in_transaction(f"order {order_values['id']}", _work)
        logger.info("order %s created for user %s with %d items", result.order.id, user_id, len(result.items))
        return result
