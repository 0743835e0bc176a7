"""
Tests for the product sheet import (both failure policies)
"""
import threading
from decimal import Decimal

import pandas as pd
import pytest
from sqlalchemy import select

from storefront.db_models import Product, ProductVariant, VariantPrice
from storefront.services import importer as importer_module
from storefront.services.importer import (
    BATCH_ROLLED_BACK, ProductImporter, collect_files, read_rows,
)


def _by_handle(report):
    return {f.handle: f.error for f in report.failures}


class TestPerEntityPolicy:

    async def test_imports_every_product(self, database, count_rows, sheet_rows):
        report = await ProductImporter(database, "per_entity").run(sheet_rows)

        assert report.processed == 2
        assert report.succeeded == 2
        assert report.failed == 0
        assert report.skipped == 0
        assert len(report.product_ids) == 2
        assert await count_rows(Product) == 2
        assert await count_rows(ProductVariant) == 3

    async def test_failing_product_does_not_stop_the_rest(self, database, count_rows, sheet_rows):
        sheet_rows[2]["Title"] = None
        report = await ProductImporter(database, "per_entity").run(sheet_rows)

        assert report.succeeded == 1
        assert report.failed == 1
        assert _by_handle(report) == {"sun-hat": "validation_failure"}
        assert await count_rows(Product) == 1

    async def test_malformed_price_fails_only_that_product(self, database, count_rows, sheet_rows):
        sheet_rows[0]["Variant Price"] = "19.99 EUR"
        report = await ProductImporter(database, "per_entity").run(sheet_rows)

        assert report.succeeded == 1
        assert _by_handle(report) == {"classic-tee": "validation_failure"}
        assert await count_rows(Product, Product.handle == "classic-tee") == 0
        assert await count_rows(ProductVariant) == 1

    async def test_grouped_thousands_price_is_stored_whole(self, database, sheet_rows):
        sheet_rows[0]["Price / India"] = "1,499"
        await ProductImporter(database).run(sheet_rows)

        async with database.session() as db:
            price = await db.scalar(
                select(VariantPrice.price).where(VariantPrice.country_code == "IN", VariantPrice.price.is_not(None))
            )
        assert price == Decimal("1499")

    async def test_existing_handle_fails_only_that_product(self, database, count_rows, sheet_rows):
        importer = ProductImporter(database, "per_entity")
        await importer.run(sheet_rows[:2])

        report = await importer.run(sheet_rows)
        assert report.succeeded == 1
        assert _by_handle(report) == {"classic-tee": "duplicate_parent_key"}
        assert await count_rows(Product) == 2

    async def test_reimported_sku_is_skipped_without_failing(self, database, count_rows, sheet_rows):
        importer = ProductImporter(database, "per_entity")
        await importer.run(sheet_rows)

        rows = [{"Handle": "tee-v2", "Title": "Tee v2", "Variant SKU": "TEE-S", "Variant Price": "1"}]
        report = await importer.run(rows)

        assert report.failed == 0
        assert report.succeeded == 1
        assert report.variants_skipped == 1
        assert await count_rows(ProductVariant, ProductVariant.sku == "TEE-S") == 1

    async def test_leading_rows_without_handle_are_skipped(self, database, sheet_rows):
        rows = [{"Handle": None, "Variant SKU": "ORPHAN"}] + sheet_rows
        report = await ProductImporter(database).run(rows)
        assert report.skipped == 1
        assert report.succeeded == 2

    async def test_nothing_to_import(self, database):
        report = await ProductImporter(database).run([{"Handle": ""}, {"Title": "x"}])
        assert report.processed == 0
        assert report.skipped == 2


class TestWholeBatchPolicy:

    async def test_imports_every_product(self, database, count_rows, sheet_rows):
        report = await ProductImporter(database, "whole_batch").run(sheet_rows)
        assert report.policy == "whole_batch"
        assert report.succeeded == 2
        assert await count_rows(Product) == 2

    async def test_validation_failure_rolls_back_batch(self, database, count_rows, sheet_rows):
        sheet_rows[2]["Title"] = ""
        report = await ProductImporter(database, "whole_batch").run(sheet_rows)

        assert report.succeeded == 0
        assert report.failed == 2
        assert _by_handle(report) == {
            "sun-hat": "validation_failure",
            "classic-tee": BATCH_ROLLED_BACK,
        }
        assert await count_rows(Product) == 0

    async def test_write_failure_rolls_back_batch(self, database, count_rows, sheet_rows):
        await ProductImporter(database).run(sheet_rows[2:])

        rows = [
            {"Handle": "new-one", "Title": "New", "Variant SKU": "NEW-1"},
        ] + sheet_rows
        report = await ProductImporter(database, "whole_batch").run(rows)

        assert report.succeeded == 0
        assert _by_handle(report) == {
            "new-one": BATCH_ROLLED_BACK,
            "classic-tee": BATCH_ROLLED_BACK,
            "sun-hat": "duplicate_parent_key",
        }
        assert await count_rows(Product) == 1
        assert await count_rows(ProductVariant, ProductVariant.sku == "NEW-1") == 0


class TestFiles:

    async def test_import_csv_file(self, database, count_rows, sheet_rows, tmp_path):
        path = tmp_path / "products.csv"
        pd.DataFrame(sheet_rows).to_csv(path, index=False)

        report = await ProductImporter(database).import_file(path)
        assert report.succeeded == 2
        assert await count_rows(ProductVariant) == 3

    def test_read_rows_turns_empty_cells_into_none(self, sheet_rows, tmp_path):
        path = tmp_path / "products.csv"
        pd.DataFrame(sheet_rows).to_csv(path, index=False)

        rows = read_rows(path)
        assert len(rows) == 3
        assert rows[1]["Handle"] is None
        assert rows[1]["Variant SKU"] == "TEE-M"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_rows(tmp_path / "nope.xlsx")

    def test_collect_files(self, tmp_path):
        (tmp_path / "b.xlsx").write_bytes(b"")
        (tmp_path / "a.csv").write_text("Handle\n")
        (tmp_path / "notes.txt").write_text("")
        assert [p.name for p in collect_files(tmp_path)] == ["a.csv", "b.xlsx"]
        assert collect_files(tmp_path / "a.csv") == [tmp_path / "a.csv"]

    def test_unknown_policy(self, database):
        with pytest.raises(ValueError):
            ProductImporter(database, "sometimes")

    def test_read_rows_drops_fully_empty_sheet_rows(self, sheet_rows, tmp_path):
        path = tmp_path / "products.xlsx"
        pd.DataFrame(sheet_rows[:2] + [{}] + sheet_rows[2:]).to_excel(path, index=False)

        rows = read_rows(path)
        assert len(rows) == 3
        assert [r["Variant SKU"] for r in rows] == ["TEE-S", "TEE-M", "HAT-1"]

    async def test_blank_sheet_row_is_not_a_variant(self, database, count_rows, sheet_rows, tmp_path):
        path = tmp_path / "products.xlsx"
        pd.DataFrame(sheet_rows[:2] + [{}] + sheet_rows[2:]).to_excel(path, index=False)

        report = await ProductImporter(database).import_file(path)
        assert report.succeeded == 2
        assert report.failed == 0
        assert await count_rows(ProductVariant) == 3
        assert await count_rows(VariantPrice) == 6

    async def test_blank_row_in_dict_input_is_skipped(self, database, count_rows, sheet_rows):
        rows = sheet_rows[:2] + [{"Handle": None, "Variant SKU": None}] + sheet_rows[2:]
        report = await ProductImporter(database).run(rows)
        assert report.skipped == 1
        assert report.succeeded == 2
        assert await count_rows(ProductVariant) == 3
        assert await count_rows(VariantPrice) == 6

    async def test_file_is_read_off_the_event_loop(self, database, sheet_rows, tmp_path, monkeypatch):
        path = tmp_path / "products.csv"
        pd.DataFrame(sheet_rows).to_csv(path, index=False)

        threads = []

        def recording_read_rows(p):
            threads.append(threading.get_ident())
            return read_rows(p)

        monkeypatch.setattr(importer_module, "read_rows", recording_read_rows)
        report = await ProductImporter(database).import_file(path)

        assert report.succeeded == 2
        assert threads and threads[0] != threading.get_ident()
