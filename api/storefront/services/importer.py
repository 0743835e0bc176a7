# storefront/services/importer.py
"""
Product sheet import: Grouper -> Normalizer -> Writer over a whole file.

Failure policy (``IMPORT_FAILURE_POLICY``):
  per_entity  - one transaction per handle; a failing product is rolled back
                and reported, the rest of the batch continues.
  whole_batch - one transaction for every handle; the first failure rolls
                back the entire import.
"""
from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from storefront.database import Database
from storefront.errors import ValidationFailure, WorkflowError
from storefront.models import ImportFailure, ImportReport
from storefront.services.grouping import group_rows
from storefront.services.normalizer import ProductBundle, normalize_group
from storefront.services.writer import ProductWriter

logger = logging.getLogger(__name__)

PER_ENTITY = "per_entity"
WHOLE_BATCH = "whole_batch"
POLICIES = (PER_ENTITY, WHOLE_BATCH)

BATCH_ROLLED_BACK = "batch_rolled_back"

SHEET_SUFFIXES = {".xlsx", ".xls"}
IMPORT_SUFFIXES = SHEET_SUFFIXES | {".csv"}


# ============================================================================
# Data source
# ============================================================================

def collect_files(src: Path) -> List[Path]:
    """A single file, or every importable sheet in a directory (sorted by name)."""
    if src.is_file():
        return [src]
    if src.is_dir():
        return sorted(p for p in src.iterdir() if p.suffix.lower() in IMPORT_SUFFIXES)
    return []


def read_rows(path: Path) -> List[Dict[str, Any]]:
    """
    Read the first sheet of an Excel file (or a CSV) into row dicts.

    Empty cells become None and fully empty rows are dropped. Raises when the
    file cannot be read; that is the only condition that aborts an import.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Import file not found: {path}")

    if path.suffix.lower() in SHEET_SUFFIXES:
        df = pd.read_excel(path, sheet_name=0, dtype=object)
    else:
        df = pd.read_csv(path, dtype=object, encoding="utf-8-sig", keep_default_na=True)

    df = df.dropna(how="all")
    df = df.astype(object).where(pd.notna(df), None)
    rows = df.to_dict(orient="records")
    logger.info("read %d rows from %s", len(rows), path.name)
    return rows


# ============================================================================
# Orchestrator
# ============================================================================

class ProductImporter:

    def __init__(self, database: Database, policy: str = PER_ENTITY, timeout: Optional[float] = None):
        if policy not in POLICIES:
            raise ValueError(f"Unknown import failure policy '{policy}'")
        self.policy = policy
        self.writer = ProductWriter(database, timeout=timeout)

    async def import_file(self, path: Path) -> ImportReport:
        rows = await asyncio.to_thread(read_rows, path)
        return await self.run(rows)

    async def run(self, rows: Iterable[Mapping[str, Any]]) -> ImportReport:
        grouped = group_rows(rows)
        report = ImportReport(policy=self.policy, skipped=grouped.skipped_rows)

        if grouped.is_empty:
            logger.info("import: nothing to do (%d rows, none groupable)", grouped.total_rows)
            return report

        logger.info(
            "import: %d rows -> %d products (%d rows skipped), policy=%s",
            grouped.total_rows, len(grouped), grouped.skipped_rows, self.policy,
        )

        # normalization failures never touch storage
        bundles: List[ProductBundle] = []
        for handle, group in grouped:
            report.processed += 1
            try:
                bundles.append(normalize_group(handle, group))
            except ValidationFailure as e:
                self._record_failure(report, handle, e)

        if self.policy == WHOLE_BATCH:
            await self._write_whole_batch(report, bundles)
        else:
            await self._write_per_entity(report, bundles)

        logger.info(
            "import finished: processed=%d succeeded=%d failed=%d skipped=%d variants_skipped=%d",
            report.processed, report.succeeded, report.failed, report.skipped, report.variants_skipped,
        )
        return report

    async def _write_per_entity(self, report: ImportReport, bundles: List[ProductBundle]) -> None:
        for bundle in bundles:
            try:
                result = await self.writer.write(bundle)
            except WorkflowError as e:
                self._record_failure(report, bundle.handle, e)
                continue
            report.succeeded += 1
            report.variants_skipped += len(result.skipped_skus)
            report.product_ids.append(result.product.id)

    async def _write_whole_batch(self, report: ImportReport, bundles: List[ProductBundle]) -> None:
        if report.failures:
            # a product failed validation: the batch is all-or-nothing
            for bundle in bundles:
                self._record_rolled_back(report, bundle.handle, report.failures[0].handle)
            return
        if not bundles:
            return

        try:
            results = await self.writer.write_many(bundles)
        except WorkflowError as e:
            for bundle in bundles:
                if bundle.handle == e.entity:
                    self._record_failure(report, bundle.handle, e)
                else:
                    self._record_rolled_back(report, bundle.handle, e.entity)
            return

        for result in results:
            report.succeeded += 1
            report.variants_skipped += len(result.skipped_skus)
            report.product_ids.append(result.product.id)

    @staticmethod
    def _record_failure(report: ImportReport, handle: str, error: WorkflowError) -> None:
        report.failed += 1
        report.failures.append(ImportFailure(handle=handle, error=error.code, message=error.message))
        logger.warning("import: product %s failed: %s", handle, error.message)

    @staticmethod
    def _record_rolled_back(report: ImportReport, handle: str, cause: Optional[str]) -> None:
        report.failed += 1
        report.failures.append(ImportFailure(
            handle=handle,
            error=BATCH_ROLLED_BACK,
            message=f"Batch rolled back after failure on '{cause}'",
        ))
