# storefront/routers/orders.py
"""
Orders Router.

An order and all of its items are written atomically: if any item refers to
a product that does not exist, nothing is stored and 409 is returned.
"""
from __future__ import annotations
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from storefront.database import Database, get_database
from storefront.settings import settings
from storefront.models import (
    OrderCreateIn, OrderItemOut, OrderOut, OrderStatusUpdateIn, OrderWriteOut,
)
from storefront.services.orders import OrderService

router = APIRouter(tags=["Orders"])


def get_order_service(database: Database = Depends(get_database)) -> OrderService:
    return OrderService(database, timeout=settings.WRITE_TIMEOUT_SEC)


@router.post("/users/{user_id}/orders", response_model=OrderWriteOut, status_code=201)
async def create_order(
    user_id: int,
    payload: OrderCreateIn,
    service: OrderService = Depends(get_order_service),
):
    result = await service.create(user_id, payload)
    return OrderWriteOut(
        order_id=result.order.id,
        order=OrderOut.model_validate(result.order),
        items=[OrderItemOut.model_validate(it) for it in result.items],
    )


@router.get("/users/{user_id}/orders", response_model=List[OrderOut])
async def list_orders(user_id: int, service: OrderService = Depends(get_order_service)):
    return await service.list_for_user(user_id)


@router.get("/users/{user_id}/orders/{order_id}", response_model=OrderWriteOut)
async def get_order(user_id: int, order_id: UUID, service: OrderService = Depends(get_order_service)):
    order = await service.get(user_id, order_id)
    return OrderWriteOut(
        order_id=order.id,
        order=OrderOut.model_validate(order),
        items=[OrderItemOut.model_validate(it) for it in order.items],
    )


@router.delete("/users/{user_id}/orders/{order_id}")
async def delete_order(user_id: int, order_id: UUID, service: OrderService = Depends(get_order_service)):
    await service.delete(user_id, order_id)
    return {"message": "Order deleted", "order_id": str(order_id)}


@router.put("/orders/{order_id}", response_model=OrderOut)
async def update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdateIn,
    service: OrderService = Depends(get_order_service),
):
    """Update status / payment status; omitted fields are kept."""
    return await service.update_status(order_id, payload)
