"""
Tests for cart, wishlist and address endpoints
"""
import uuid
from decimal import Decimal

import pytest


@pytest.fixture
async def variant_id(client):
    resp = await client.post("/products", json={
        "handle": "socks",
        "title": "Socks",
        "variants": [{"sku": "SOCK-1", "price": "4.50"}],
    })
    return resp.json()["variants"][0]["id"]


class TestCart:

    async def test_adding_same_variant_increments_quantity(self, client, variant_id):
        first = await client.post("/users/3/cart", json={"variant_id": variant_id, "quantity": 2})
        assert first.status_code == 201
        second = await client.post("/users/3/cart", json={"variant_id": variant_id, "quantity": 3})
        assert second.json()["quantity"] == 5
        assert second.json()["id"] == first.json()["id"]

        cart = (await client.get("/users/3/cart")).json()
        assert cart["count"] == 1
        assert cart["cart_items"][0]["product_name"] == "Socks"
        assert Decimal(cart["grand_total"]) == Decimal("22.50")

    async def test_unknown_variant(self, client):
        resp = await client.post("/users/3/cart", json={"variant_id": str(uuid.uuid4())})
        assert resp.status_code == 404

    async def test_update_and_remove(self, client, variant_id):
        item = (await client.post("/users/3/cart", json={"variant_id": variant_id})).json()

        resp = await client.put(f"/users/3/cart/{item['id']}", json={"quantity": 4})
        assert resp.json()["quantity"] == 4
        assert (await client.put(f"/users/3/cart/{item['id']}", json={"quantity": 0})).status_code == 400
        # another user's cart
        assert (await client.put(f"/users/4/cart/{item['id']}", json={"quantity": 1})).status_code == 404

        assert (await client.delete(f"/users/3/cart/{item['id']}")).status_code == 200
        assert (await client.get("/users/3/cart")).json()["count"] == 0


class TestWishlist:

    async def test_add_twice_keeps_one_entry(self, client, variant_id):
        first = await client.post("/users/5/wishlist", json={"variant_id": variant_id})
        assert first.status_code == 201
        second = await client.post("/users/5/wishlist", json={"variant_id": variant_id})
        assert second.status_code == 200

        items = (await client.get("/users/5/wishlist")).json()
        assert len(items) == 1

        assert (await client.delete(f"/users/5/wishlist/{items[0]['id']}")).status_code == 200
        assert (await client.delete(f"/users/5/wishlist/{items[0]['id']}")).status_code == 404


class TestAddresses:

    ADDRESS = {"address_line_1": "1 Main St", "city": "Pune", "country": "IN"}

    async def test_single_default(self, client):
        home = (await client.post("/users/9/addresses", json=dict(self.ADDRESS, is_default=True))).json()
        work = (await client.post("/users/9/addresses", json=dict(self.ADDRESS, is_default=True))).json()

        listed = {a["id"]: a["is_default"] for a in (await client.get("/users/9/addresses")).json()}
        assert listed == {home["id"]: False, work["id"]: True}

        await client.put(f"/users/9/addresses/{home['id']}", json={"is_default": True})
        listed = {a["id"]: a["is_default"] for a in (await client.get("/users/9/addresses")).json()}
        assert listed == {home["id"]: True, work["id"]: False}

    async def test_update_is_coalesce(self, client):
        addr = (await client.post("/users/9/addresses", json=self.ADDRESS)).json()
        resp = await client.put(f"/users/9/addresses/{addr['id']}", json={"city": "Mumbai"})
        assert resp.json()["city"] == "Mumbai"
        assert resp.json()["address_line_1"] == "1 Main St"

    async def test_missing_address_keeps_existing_default(self, client):
        home = (await client.post("/users/9/addresses", json=dict(self.ADDRESS, is_default=True))).json()
        resp = await client.put("/users/9/addresses/9999", json={"is_default": True})
        assert resp.status_code == 404

        listed = (await client.get("/users/9/addresses")).json()
        assert [(a["id"], a["is_default"]) for a in listed] == [(home["id"], True)]

    async def test_delete(self, client):
        addr = (await client.post("/users/9/addresses", json=self.ADDRESS)).json()
        assert (await client.delete(f"/users/9/addresses/{addr['id']}")).status_code == 200
        assert (await client.get("/users/9/addresses")).json() == []
