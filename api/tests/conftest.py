# tests/conftest.py
import os
import tempfile

# settings are read at import time; keep logs and uploads out of the repo
os.environ.setdefault("STOREFRONT_DATA_ROOT", tempfile.mkdtemp(prefix="storefront-test-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from storefront.database import Database


@pytest.fixture
async def database(tmp_path):
    """Fresh SQLite database file per test (a file, so every pooled connection sees it)."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def client(database):
    """HTTP client bound to the app, using the test database."""
    from storefront.main import app

    app.state.database = database
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def count_rows(database):
    """count_rows(Model, *conditions) -> number of matching rows."""
    async def _count(model, *conditions):
        stmt = select(func.count()).select_from(model)
        if conditions:
            stmt = stmt.where(*conditions)
        async with database.session() as db:
            return await db.scalar(stmt)
    return _count


@pytest.fixture
def sheet_rows():
    """Two products in Shopify export layout; the tee has a continuation row."""
    return [
        {
            "Handle": "classic-tee",
            "Title": "Classic Tee",
            "Body (HTML)": "<p>Soft cotton</p>",
            "Vendor": "Acme",
            "Type": "T-Shirt",
            "Tags": "cotton, summer ,",
            "Published": "TRUE",
            "Option1 Name": "Size",
            "Option1 Value": "S",
            "Variant SKU": "TEE-S",
            "Variant Price": "19.99",
            "Variant Inventory Qty": "5",
            "Variant Requires Shipping": "true",
            "Variant Taxable": "FALSE",
            "Image Src": "https://cdn.example.com/tee-s.jpg",
            "Image Position": "1",
            "Included / India": "TRUE",
            "Price / India": "1499",
            "Included / all": "FALSE",
            "Length (cm)": "30",
            "Width (cm)": "20",
            "Height (cm)": "2",
            "Color (product.metafields.shopify.color-pattern)": "black",
            "Fabric (product.metafields.shopify.fabric)": "cotton",
        },
        {
            "Handle": None,
            "Option1 Value": "M",
            "Variant SKU": "TEE-M",
            "Variant Price": "21,50",
            "Variant Inventory Qty": None,
        },
        {
            "Handle": "sun-hat",
            "Title": "Sun Hat",
            "Vendor": "Acme",
            "Published": "yes",
            "Variant SKU": "HAT-1",
            "Variant Price": "9.5",
        },
    ]
