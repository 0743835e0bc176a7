# storefront/services/addresses.py
"""
User shipping addresses. A user has at most one default address; marking
one as default clears the flag on the others in the same transaction.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from sqlalchemy import delete, select, update

from storefront.database import Database
from storefront.db_models import Address
from storefront.errors import EntityNotFound
from storefront.models import AddressIn, AddressUpdateIn
from storefront.services.writer import TransactionalWriter

logger = logging.getLogger(__name__)


class AddressService:

    def __init__(self, database: Database, timeout: Optional[float] = None):
        self.database = database
        self.writer = TransactionalWriter(database, timeout=timeout)

    @staticmethod
    async def _clear_default(db, user_id: int) -> None:
        await db.execute(
            update(Address)
            .where(Address.user_id == user_id, Address.is_default.is_(True))
            .values(is_default=False)
        )

    async def add(self, user_id: int, payload: AddressIn) -> Address:
        async def _work(db) -> Address:
            if payload.is_default:
                await self._clear_default(db, user_id)
            return await self.writer.insert_returning(
                db, Address, {"user_id": user_id, **payload.model_dump()}
            )

        address = await self.writer.run_in_transaction(f"address of user {user_id}", _work)
        logger.info("address %s added for user %s", address.id, user_id)
        return address

    async def update(self, user_id: int, address_id: int, payload: AddressUpdateIn) -> Address:
        """Coalesce update: None means keep the stored value."""
        changes = {k: v for k, v in payload.model_dump().items() if v is not None}

        async def _work(db) -> Address:
            if changes.get("is_default"):
                await self._clear_default(db, user_id)
            if changes:
                stmt = (
                    update(Address)
                    .where(Address.id == address_id, Address.user_id == user_id)
                    .values(**changes)
                    .returning(Address)
                )
            else:
                stmt = select(Address).where(Address.id == address_id, Address.user_id == user_id)
            address = (await db.scalars(stmt)).one_or_none()
            # raised inside the transaction so a cleared default is rolled back
            if address is None:
                raise EntityNotFound("Address not found", entity=str(address_id))
            return address

        return await self.writer.run_in_transaction(f"address {address_id}", _work)

    async def delete(self, user_id: int, address_id: int) -> None:
        async def _work(db) -> Optional[int]:
            stmt = (
                delete(Address)
                .where(Address.id == address_id, Address.user_id == user_id)
                .returning(Address.id)
            )
            return (await db.execute(stmt)).scalar_one_or_none()

        if await self.writer.run_in_transaction(f"address {address_id}", _work) is None:
            raise EntityNotFound("Address not found", entity=str(address_id))
        logger.info("address %s deleted for user %s", address_id, user_id)

    async def list(self, user_id: int) -> List[Address]:
        stmt = (
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
        )
        async with self.database.session() as db:
            return list((await db.scalars(stmt)).all())
