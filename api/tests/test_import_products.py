"""
Tests for the command line product import
"""
import json
from pathlib import Path

import pandas as pd

from storefront.database import Database
from storefront.import_products import main, run_imports
from storefront.services.importer import collect_files


def _sheet_dir(tmp_path, sheet_rows):
    src = tmp_path / "sheets"
    src.mkdir()
    # sorts before the good sheet so the unreadable one is met first
    (src / "a_broken.xlsx").write_bytes(b"this is not a workbook")
    pd.DataFrame(sheet_rows).to_csv(src / "b_products.csv", index=False)
    return src


class TestRunImports:

    async def test_unreadable_file_does_not_stop_the_rest(self, tmp_path, sheet_rows, capsys):
        src = _sheet_dir(tmp_path, sheet_rows)
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'run.db'}")

        results = await run_imports(collect_files(src), database, "per_entity", create_tables=True)

        assert [r.path.name for r in results] == ["a_broken.xlsx", "b_products.csv"]
        broken, good = results
        assert broken.error
        assert broken.report is None
        assert not broken.ok
        assert good.error is None
        assert good.report.succeeded == 2
        assert good.ok

        out = capsys.readouterr()
        assert "[ERR] a_broken.xlsx" in out.err
        assert "[OK] b_products.csv" in out.out


class TestMain:

    def test_report_lists_every_file(self, tmp_path, sheet_rows):
        src = _sheet_dir(tmp_path, sheet_rows)
        report_out = tmp_path / "report.json"

        code = main([
            str(src),
            "--database-url", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}",
            "--create-tables",
            "--report-out", str(report_out),
        ])

        assert code == 1
        entries = json.loads(report_out.read_text(encoding="utf-8"))
        assert [Path(e["file"]).name for e in entries] == ["a_broken.xlsx", "b_products.csv"]
        assert entries[0]["error"]
        assert entries[0]["report"] is None
        assert entries[1]["error"] is None
        assert entries[1]["report"]["succeeded"] == 2

    def test_clean_run_exits_zero(self, tmp_path, sheet_rows):
        path = tmp_path / "products.csv"
        pd.DataFrame(sheet_rows).to_csv(path, index=False)

        code = main([str(path), "--database-url", f"sqlite+aiosqlite:///{tmp_path / 'ok.db'}", "--create-tables"])
        assert code == 0

    def test_no_sheets_found(self, tmp_path):
        assert main([str(tmp_path)]) == 2
