"""
Tests for catalog, import and order HTTP endpoints
"""
import threading
import uuid
from decimal import Decimal

import pandas as pd

from storefront.db_models import (
    Order, OrderItem, Product, ProductImage, ProductVariant, ShippingDetail, VariantPrice,
)
from storefront.routers import imports as imports_router
from storefront.services.importer import read_rows


def _product_payload(handle="canvas-bag", sku="BAG-1"):
    return {
        "handle": handle,
        "title": "Canvas Bag",
        "vendor": "Acme",
        "tags": "bags, canvas",
        "published": True,
        "metafields": {"material": "canvas"},
        "variants": [
            {
                "sku": sku,
                "price": "25.00",
                "inventory_qty": 3,
                "image_src": "https://cdn.example.com/bag.jpg",
                "country_prices": {"IN": {"included": True, "price": "1999"}},
                "length_cm": "40",
            },
            {"sku": f"{sku}-L", "price": "30.00"},
        ],
    }


class TestProductEndpoints:

    async def test_create_and_get(self, client, count_rows):
        resp = await client.post("/products", json=_product_payload())
        assert resp.status_code == 201
        body = resp.json()
        assert body["product"]["tags"] == ["bags", "canvas"]
        assert len(body["variants"]) == 2
        assert len(body["prices"]) == 4
        assert len(body["images"]) == 1
        assert len(body["shipping"]) == 2
        assert body["variants"][1]["inventory_qty"] == 0

        detail = await client.get(f"/products/{body['product_id']}")
        assert detail.status_code == 200
        data = detail.json()
        assert data["metafield"]["attributes"] == {"material": "canvas"}
        assert {v["sku"] for v in data["variants"]} == {"BAG-1", "BAG-1-L"}
        assert all(len(v["prices"]) == 2 for v in data["variants"])

    async def test_duplicate_handle_is_conflict(self, client, count_rows):
        await client.post("/products", json=_product_payload())
        resp = await client.post("/products", json=_product_payload(sku="OTHER"))
        assert resp.status_code == 409
        assert resp.json()["error"] == "duplicate_parent_key"
        assert await count_rows(Product) == 1
        assert await count_rows(ProductVariant, ProductVariant.sku == "OTHER") == 0

    async def test_invalid_body_is_rejected(self, client):
        resp = await client.post("/products", json={"handle": "x"})
        assert resp.status_code == 422

    async def test_update_keeps_omitted_fields(self, client):
        created = (await client.post("/products", json=_product_payload())).json()
        pid = created["product_id"]

        resp = await client.put(f"/products/{pid}", json={"title": "Tote", "vendor": None})
        assert resp.status_code == 200
        body = resp.json()
        assert body["title"] == "Tote"
        assert body["vendor"] == "Acme"
        assert body["handle"] == "canvas-bag"

    async def test_update_missing_product(self, client):
        resp = await client.put(f"/products/{uuid.uuid4()}", json={"title": "x"})
        assert resp.status_code == 404

    async def test_delete_cascades(self, client, count_rows):
        created = (await client.post("/products", json=_product_payload())).json()
        resp = await client.delete(f"/products/{created['product_id']}")
        assert resp.status_code == 200

        for model in (Product, ProductVariant, ProductImage, VariantPrice, ShippingDetail):
            assert await count_rows(model) == 0
        assert (await client.delete(f"/products/{created['product_id']}")).status_code == 404

    async def test_list(self, client):
        await client.post("/products", json=_product_payload())
        await client.post("/products", json=_product_payload(handle="b2", sku="B2"))
        resp = await client.get("/products", params={"limit": 1})
        assert resp.status_code == 200
        assert len(resp.json()) == 1


class TestImportEndpoint:

    async def test_upload_sheet(self, client, count_rows, sheet_rows, tmp_path):
        path = tmp_path / "products.csv"
        pd.DataFrame(sheet_rows).to_csv(path, index=False)

        with path.open("rb") as f:
            resp = await client.post("/imports/products", files={"file": ("products.csv", f, "text/csv")})
        assert resp.status_code == 200
        report = resp.json()
        assert report["succeeded"] == 2
        assert report["failed"] == 0
        assert await count_rows(ProductVariant) == 3

    async def test_rejects_unknown_file_type(self, client):
        resp = await client.post("/imports/products", files={"file": ("notes.txt", b"hi", "text/plain")})
        assert resp.status_code == 400

    async def test_sheet_is_parsed_off_the_event_loop(self, client, sheet_rows, tmp_path, monkeypatch):
        path = tmp_path / "products.csv"
        pd.DataFrame(sheet_rows).to_csv(path, index=False)

        threads = []

        def recording_read_rows(p):
            threads.append(threading.get_ident())
            return read_rows(p)

        monkeypatch.setattr(imports_router, "read_rows", recording_read_rows)
        with path.open("rb") as f:
            resp = await client.post("/imports/products", files={"file": ("products.csv", f, "text/csv")})

        assert resp.status_code == 200
        assert resp.json()["succeeded"] == 2
        assert threads and threads[0] != threading.get_ident()

    async def test_unreadable_sheet_is_bad_request(self, client):
        resp = await client.post(
            "/imports/products",
            files={"file": ("broken.xlsx", b"not a spreadsheet", "application/octet-stream")},
        )
        assert resp.status_code == 400


class TestOrderEndpoints:

    async def _variant(self, client):
        created = (await client.post("/products", json=_product_payload())).json()
        return created["product_id"], created["variants"][0]["id"]

    async def test_create_get_update_delete(self, client):
        product_id, variant_id = await self._variant(client)
        resp = await client.post("/users/1/orders", json={
            "items": [{"product_id": product_id, "variant_id": variant_id, "quantity": 2, "price": "25.00"}],
        })
        assert resp.status_code == 201
        order = resp.json()
        assert Decimal(order["order"]["total_amount"]) == Decimal("50.00")
        assert order["order"]["status"] == "pending"

        fetched = await client.get(f"/users/1/orders/{order['order_id']}")
        assert fetched.status_code == 200
        assert len(fetched.json()["items"]) == 1
        assert (await client.get(f"/users/2/orders/{order['order_id']}")).status_code == 404

        updated = await client.put(f"/orders/{order['order_id']}", json={"payment_status": "paid"})
        assert updated.json()["payment_status"] == "paid"
        assert updated.json()["status"] == "pending"

        assert len((await client.get("/users/1/orders")).json()) == 1
        assert (await client.delete(f"/users/1/orders/{order['order_id']}")).status_code == 200
        assert (await client.get("/users/1/orders")).json() == []

    async def test_unknown_product_rolls_back_order(self, client, count_rows):
        product_id, variant_id = await self._variant(client)
        resp = await client.post("/users/1/orders", json={
            "items": [
                {"product_id": product_id, "variant_id": variant_id, "quantity": 1, "price": "25.00"},
                {"product_id": str(uuid.uuid4()), "quantity": 1, "price": "1.00"},
            ],
        })
        assert resp.status_code == 409
        assert resp.json()["error"] == "foreign_key_violation"
        assert await count_rows(Order) == 0
        assert await count_rows(OrderItem) == 0

    async def test_empty_order_is_bad_request(self, client):
        resp = await client.post("/users/1/orders", json={"items": []})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_failure"


class TestHealth:

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["database"]["status"] == "healthy"
