# storefront/services/shopping.py
"""
Cart and wishlist.

Both are keyed by (user_id, variant_id):
- cart: adding an existing variant increments its quantity (upsert),
- wishlist: adding an existing variant is a no-op (insert ... do nothing).
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select, update

from storefront.database import Database
from storefront.db_models import CartItem, Product, ProductVariant, WishlistItem
from storefront.errors import EntityNotFound, ValidationFailure
from storefront.models import CartLineOut, CartOut
from storefront.services.writer import TransactionalWriter, upsert_statement

logger = logging.getLogger(__name__)


async def _require_variant(db, variant_id: UUID) -> None:
    found = await db.scalar(select(ProductVariant.id).where(ProductVariant.id == variant_id))
    if found is None:
        raise EntityNotFound("Product variant not found", entity=str(variant_id))


class CartService:

    def __init__(self, database: Database, timeout: Optional[float] = None):
        self.database = database
        self.writer = TransactionalWriter(database, timeout=timeout)

    async def add(self, user_id: int, variant_id: UUID, quantity: int = 1) -> CartItem:
        if quantity < 1:
            raise ValidationFailure("Quantity must be at least 1")

        async def _work(db) -> CartItem:
            await _require_variant(db, variant_id)
            stmt = upsert_statement(self.database.dialect_name, CartItem).values(
                user_id=user_id, variant_id=variant_id, quantity=quantity,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[CartItem.user_id, CartItem.variant_id],
                set_={
                    "quantity": CartItem.quantity + stmt.excluded.quantity,
                    "updated_at": func.now(),
                },
            ).returning(CartItem)
            result = await db.scalars(stmt, execution_options={"populate_existing": True})
            return result.one()

        item = await self.writer.run_in_transaction(f"cart {user_id}", _work)
        logger.info("cart %s: variant %s quantity now %d", user_id, variant_id, item.quantity)
        return item

    async def set_quantity(self, user_id: int, item_id: int, quantity: int) -> CartItem:
        if quantity < 1:
            raise ValidationFailure("Quantity must be at least 1")

        async def _work(db) -> Optional[CartItem]:
            stmt = (
                update(CartItem)
                .where(CartItem.id == item_id, CartItem.user_id == user_id)
                .values(quantity=quantity, updated_at=func.now())
                .returning(CartItem)
            )
            return (await db.scalars(stmt)).one_or_none()

        item = await self.writer.run_in_transaction(f"cart {user_id}", _work)
        if item is None:
            raise EntityNotFound("Item not found", entity=str(item_id))
        return item

    async def remove(self, user_id: int, item_id: int) -> None:
        async def _work(db) -> Optional[int]:
            stmt = (
                delete(CartItem)
                .where(CartItem.id == item_id, CartItem.user_id == user_id)
                .returning(CartItem.id)
            )
            return (await db.execute(stmt)).scalar_one_or_none()

        if await self.writer.run_in_transaction(f"cart {user_id}", _work) is None:
            raise EntityNotFound("Item not found", entity=str(item_id))

    async def get(self, user_id: int) -> CartOut:
        stmt = (
            select(CartItem, ProductVariant.price, Product.id, Product.title)
            .join(ProductVariant, CartItem.variant_id == ProductVariant.id)
            .join(Product, ProductVariant.product_id == Product.id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        )
        async with self.database.session() as db:
            rows = (await db.execute(stmt)).all()

        lines: List[CartLineOut] = []
        for item, unit_price, product_id, title in rows:
            subtotal = (unit_price or Decimal("0")) * item.quantity
            lines.append(CartLineOut(
                cart_item_id=item.id,
                quantity=item.quantity,
                variant_id=item.variant_id,
                product_id=product_id,
                product_name=title,
                unit_price=unit_price,
                subtotal=subtotal,
            ))
        grand_total = sum((ln.subtotal for ln in lines), Decimal("0"))
        return CartOut(cart_items=lines, grand_total=grand_total, count=len(lines))


class WishlistService:

    def __init__(self, database: Database, timeout: Optional[float] = None):
        self.database = database
        self.writer = TransactionalWriter(database, timeout=timeout)

    async def add(self, user_id: int, variant_id: UUID) -> Tuple[Optional[WishlistItem], bool]:
        """Returns (item, created). A variant already on the list gives (None, False)."""
        async def _work(db) -> Optional[WishlistItem]:
            await _require_variant(db, variant_id)
            stmt = (
                upsert_statement(self.database.dialect_name, WishlistItem)
                .values(user_id=user_id, variant_id=variant_id)
                .on_conflict_do_nothing(index_elements=[WishlistItem.user_id, WishlistItem.variant_id])
                .returning(WishlistItem)
            )
            return (await db.scalars(stmt)).one_or_none()

        item = await self.writer.run_in_transaction(f"wishlist {user_id}", _work)
        return item, item is not None

    async def remove(self, user_id: int, item_id: int) -> None:
        async def _work(db) -> Optional[int]:
            stmt = (
                delete(WishlistItem)
                .where(WishlistItem.id == item_id, WishlistItem.user_id == user_id)
                .returning(WishlistItem.id)
            )
            return (await db.execute(stmt)).scalar_one_or_none()

        if await self.writer.run_in_transaction(f"wishlist {user_id}", _work) is None:
            raise EntityNotFound("Item not found in wishlist", entity=str(item_id))

    async def list(self, user_id: int) -> List[WishlistItem]:
        stmt = (
            select(WishlistItem)
            .where(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        )
        async with self.database.session() as db:
            return list((await db.scalars(stmt)).all())
