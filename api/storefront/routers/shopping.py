# storefront/routers/shopping.py
"""
Cart, wishlist and address endpoints, scoped by user id in the path.
"""
from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, Response

from storefront.database import Database, get_database
from storefront.settings import settings
from storefront.models import (
    AddressIn, AddressOut, AddressUpdateIn,
    CartAddIn, CartItemOut, CartOut, CartUpdateIn,
    WishlistAddIn, WishlistItemOut,
)
from storefront.services.addresses import AddressService
from storefront.services.shopping import CartService, WishlistService

router = APIRouter(prefix="/users/{user_id}")


def get_cart_service(database: Database = Depends(get_database)) -> CartService:
    return CartService(database, timeout=settings.WRITE_TIMEOUT_SEC)


def get_wishlist_service(database: Database = Depends(get_database)) -> WishlistService:
    return WishlistService(database, timeout=settings.WRITE_TIMEOUT_SEC)


def get_address_service(database: Database = Depends(get_database)) -> AddressService:
    return AddressService(database, timeout=settings.WRITE_TIMEOUT_SEC)


# ============================================================================
# Cart
# ============================================================================

@router.get("/cart", response_model=CartOut, tags=["Cart"])
async def get_cart(user_id: int, service: CartService = Depends(get_cart_service)):
    return await service.get(user_id)


@router.post("/cart", response_model=CartItemOut, status_code=201, tags=["Cart"])
async def add_to_cart(user_id: int, payload: CartAddIn, service: CartService = Depends(get_cart_service)):
    """Adding a variant already in the cart increases its quantity."""
    return await service.add(user_id, payload.variant_id, payload.quantity)


@router.put("/cart/{item_id}", response_model=CartItemOut, tags=["Cart"])
async def update_cart_item(
    user_id: int,
    item_id: int,
    payload: CartUpdateIn,
    service: CartService = Depends(get_cart_service),
):
    return await service.set_quantity(user_id, item_id, payload.quantity)


@router.delete("/cart/{item_id}", tags=["Cart"])
async def remove_cart_item(user_id: int, item_id: int, service: CartService = Depends(get_cart_service)):
    await service.remove(user_id, item_id)
    return {"message": "Item removed from cart"}


# ============================================================================
# Wishlist
# ============================================================================

@router.get("/wishlist", response_model=List[WishlistItemOut], tags=["Wishlist"])
async def get_wishlist(user_id: int, service: WishlistService = Depends(get_wishlist_service)):
    return await service.list(user_id)


@router.post("/wishlist", tags=["Wishlist"])
async def add_to_wishlist(
    user_id: int,
    payload: WishlistAddIn,
    response: Response,
    service: WishlistService = Depends(get_wishlist_service),
):
    item, created = await service.add(user_id, payload.variant_id)
    if not created:
        response.status_code = 200
        return {"message": "Item already in wishlist"}
    response.status_code = 201
    return WishlistItemOut.model_validate(item)


@router.delete("/wishlist/{item_id}", tags=["Wishlist"])
async def remove_wishlist_item(
    user_id: int,
    item_id: int,
    service: WishlistService = Depends(get_wishlist_service),
):
    await service.remove(user_id, item_id)
    return {"message": "Item removed from wishlist"}


# ============================================================================
# Addresses
# ============================================================================

@router.get("/addresses", response_model=List[AddressOut], tags=["Addresses"])
async def list_addresses(user_id: int, service: AddressService = Depends(get_address_service)):
    return await service.list(user_id)


@router.post("/addresses", response_model=AddressOut, status_code=201, tags=["Addresses"])
async def add_address(user_id: int, payload: AddressIn, service: AddressService = Depends(get_address_service)):
    return await service.add(user_id, payload)


@router.put("/addresses/{address_id}", response_model=AddressOut, tags=["Addresses"])
async def update_address(
    user_id: int,
    address_id: int,
    payload: AddressUpdateIn,
    service: AddressService = Depends(get_address_service),
):
    return await service.update(user_id, address_id, payload)


@router.delete("/addresses/{address_id}", tags=["Addresses"])
async def delete_address(user_id: int, address_id: int, service: AddressService = Depends(get_address_service)):
    await service.delete(user_id, address_id)
    return {"message": "Address deleted"}
