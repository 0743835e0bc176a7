# storefront/import_products.py
# -*- coding: utf-8 -*-
"""
Command line product import.

    python -m storefront.import_products products.xlsx
    python -m storefront.import_products sheets/ --policy whole_batch --report-out report.json
"""
from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from storefront.database import Database
from storefront.logging_setup import setup_logging
from storefront.models import ImportReport
from storefront.services.importer import POLICIES, ProductImporter, collect_files, read_rows
from storefront.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class FileResult:
    """Outcome for one input file: an import report, or the error that kept it from being read."""
    path: Path
    report: Optional[ImportReport] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": str(self.path),
            "error": self.error,
            "report": self.report.model_dump(mode="json") if self.report else None,
        }


async def run_imports(
    files: List[Path],
    database: Database,
    policy: str,
    create_tables: bool = False,
) -> List[FileResult]:
    """Import each file in turn; a file that cannot be read is reported and skipped."""
    if create_tables:
        await database.create_all()
    importer = ProductImporter(database, policy=policy, timeout=settings.WRITE_TIMEOUT_SEC)
    results = []
    try:
        for path in files:
            try:
                rows = await asyncio.to_thread(read_rows, path)
            except Exception as e:
                logger.warning("cannot read %s: %s", path, e)
                print(f"[ERR] {path.name}: {e}", file=sys.stderr)
                results.append(FileResult(path=path, error=str(e)))
                continue

            report = await importer.run(rows)
            status = "OK" if report.failed == 0 else "WARN"
            print(
                f"[{status}] {path.name}: {report.succeeded}/{report.processed} products written, "
                f"{report.failed} failed, {report.skipped} rows skipped, "
                f"{report.variants_skipped} existing skus kept"
            )
            for failure in report.failures:
                print(f"    - {failure.handle}: {failure.error} ({failure.message})")
            results.append(FileResult(path=path, report=report))
    finally:
        await database.dispose()
    return results


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Import Shopify-style product sheets into the storefront database")
    ap.add_argument("inp", help="Sheet (.xlsx/.xls/.csv) or directory of sheets")
    ap.add_argument("--policy", choices=POLICIES, default=settings.IMPORT_FAILURE_POLICY,
                    help="Failure policy (default: IMPORT_FAILURE_POLICY)")
    ap.add_argument("--database-url", default="", help="Override the configured database URL")
    ap.add_argument("--create-tables", action="store_true", help="Create missing tables before importing")
    ap.add_argument("--report-out", default="", help="Optional JSON file for the per-file results")
    args = ap.parse_args(argv)

    setup_logging(settings)

    files = collect_files(Path(args.inp))
    if not files:
        print(f"[ERR] no sheets found in {args.inp}", file=sys.stderr)
        return 2

    if args.database_url:
        database = Database(args.database_url, echo=settings.DB_ECHO)
    else:
        database = Database.from_settings(settings)

    results = asyncio.run(run_imports(files, database, args.policy, create_tables=args.create_tables))

    if args.report_out:
        out = Path(args.report_out)
        out.write_text(
            json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        print(f"[OK] Report → {out}")

    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
