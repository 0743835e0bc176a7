# storefront/routers/imports.py
"""
Imports Router - product sheet upload.

The uploaded file is stored under STOREFRONT_DATA_ROOT/imports/{year}/{month}/
and then run through the importer (group -> normalize -> write).
"""
from __future__ import annotations
import asyncio
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional
import os
import re

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from storefront.database import Database, get_database
from storefront.models import ImportReport
from storefront.services.importer import ProductImporter, read_rows
from storefront.settings import settings

router = APIRouter(prefix="/imports", tags=["Imports"])

ALLOWED_EXTENSIONS = {".xlsx", ".xls", ".csv"}


def _sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe filesystem storage."""
    filename = os.path.basename(filename)
    filename = re.sub(r'[<>:"/\\|?*]', '_', filename)
    filename = filename.strip(' .')
    return filename if filename else 'products.xlsx'


def _storage_path(filename: str) -> Path:
    now = datetime.now()
    storage_dir = Path(settings.STOREFRONT_DATA_ROOT) / "imports" / str(now.year) / f"{now.month:02d}"
    storage_dir.mkdir(parents=True, exist_ok=True)

    safe = _sanitize_filename(filename)
    stored = safe
    counter = 1
    while (storage_dir / stored).exists():
        stored = f"{Path(safe).stem}_{counter}{Path(safe).suffix}"
        counter += 1
    return storage_dir / stored


@router.post("/products", response_model=ImportReport)
async def import_products(
    file: UploadFile = File(...),
    policy: Optional[Literal["per_entity", "whole_batch"]] = Query(
        None, description="Overrides IMPORT_FAILURE_POLICY for this upload"
    ),
    database: Database = Depends(get_database),
):
    """
    Import a Shopify-style product sheet.

    Per-product failures are reported in the body (200); only an unreadable
    file fails the request.
    """
    if not file.filename:
        raise HTTPException(400, "No filename provided")

    ext = Path(file.filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(400, f"File type {ext} not allowed. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}")

    file_path = _storage_path(file.filename)
    content = await file.read()
    try:
        await asyncio.to_thread(file_path.write_bytes, content)
    except OSError as e:
        raise HTTPException(500, f"Failed to save file: {e}")

    importer = ProductImporter(
        database,
        policy=policy or settings.IMPORT_FAILURE_POLICY,
        timeout=settings.WRITE_TIMEOUT_SEC,
    )
    # pandas parsing is blocking
    try:
        rows = await asyncio.to_thread(read_rows, file_path)
    except (ValueError, OSError) as e:
        raise HTTPException(400, f"Cannot read import file: {e}")
    return await importer.run(rows)
