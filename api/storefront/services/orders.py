# storefront/services/orders.py
"""
Order placement and maintenance.

Placing an order writes the order row and every order item in one
transaction; an item pointing at a missing product aborts the whole order.
"""
from __future__ import annotations
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import selectinload

from storefront.database import Database
from storefront.db_models import Order
from storefront.errors import EntityNotFound
from storefront.models import OrderCreateIn, OrderStatusUpdateIn
from storefront.services.writer import OrderWriter, OrderWriteResult

logger = logging.getLogger(__name__)


class OrderService:

    def __init__(self, database: Database, timeout: Optional[float] = None):
        self.database = database
        self.writer = OrderWriter(database, timeout=timeout)

    async def create(self, user_id: int, payload: OrderCreateIn) -> OrderWriteResult:
        return await self.writer.write(
            user_id,
            payload.items,
            address_id=payload.address_id,
            total_amount=payload.total_amount,
        )

    async def update_status(self, order_id: UUID, payload: OrderStatusUpdateIn) -> Order:
        changes = {k: v for k, v in payload.model_dump().items() if v is not None}

        async def _work(db) -> Optional[Order]:
            if not changes:
                return await db.get(Order, order_id)
            stmt = (
                update(Order)
                .where(Order.id == order_id)
                .values(**changes, updated_at=func.now())
                .returning(Order)
            )
            return (await db.scalars(stmt)).one_or_none()

        order = await self.writer.run_in_transaction(f"order {order_id}", _work)
        if order is None:
            raise EntityNotFound("Order not found", entity=str(order_id))
        logger.info("order %s updated: %s", order_id, changes)
        return order

    async def delete(self, user_id: int, order_id: UUID) -> None:
        """Cancel/delete an order of this user; items go with it."""
        async def _work(db) -> Optional[UUID]:
            stmt = (
                delete(Order)
                .where(Order.id == order_id, Order.user_id == user_id)
                .returning(Order.id)
            )
            return (await db.execute(stmt)).scalar_one_or_none()

        deleted = await self.writer.run_in_transaction(f"order {order_id}", _work)
        if deleted is None:
            raise EntityNotFound("Order not found", entity=str(order_id))
        logger.info("order %s deleted by user %s", order_id, user_id)

    async def get(self, user_id: int, order_id: UUID) -> Order:
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id, Order.user_id == user_id)
        )
        async with self.database.session() as db:
            order = (await db.scalars(stmt)).one_or_none()
        if order is None:
            raise EntityNotFound("Order not found", entity=str(order_id))
        return order

    async def list_for_user(self, user_id: int) -> List[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        )
        async with self.database.session() as db:
            return list((await db.scalars(stmt)).all())
