"""Ingestion router — spreadsheet preview and import commit endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from apps.api.core.auth import get_household_id
from apps.api.core.config import settings
from apps.api.deps import get_stores
from apps.api.domains.ingestion.schemas import (
    ColumnMappingOut,
    ImportResponse,
    PreviewResponse,
)
from apps.api.domains.ingestion.service import commit_file, preview_file
from packages.import_engine.reader import SUPPORTED_EXTENSIONS
from packages.import_engine.stores import LedgerStores

router = APIRouter(prefix="/ingest", tags=["ingestion"])
logger = structlog.get_logger()

MAX_UPLOAD_BYTES = settings.MAX_UPLOAD_BYTES if settings else 10 * 1024 * 1024
PREVIEW_ROWS = settings.IMPORT_PREVIEW_ROWS if settings else 20


async def _read_upload(file: UploadFile) -> bytes:
    filename = file.filename or ""
    if not filename.lower().endswith(SUPPORTED_EXTENSIONS):
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type. Accepted: {', '.join(SUPPORTED_EXTENSIONS)}",
        )
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Empty file.")
    if len(contents) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {MAX_UPLOAD_BYTES // (1024 * 1024)}MB)",
        )
    return contents


@router.post("/preview", response_model=PreviewResponse)
async def preview_import(
    file: UploadFile = File(...),
    password: Optional[str] = Form(None),
):
    """Read a CSV or workbook and guess which columns hold date, description and amount."""
    contents = await _read_upload(file)
    preview = await run_in_threadpool(
        preview_file, contents, file.filename, password=password, limit=PREVIEW_ROWS
    )
    mapping = preview["mapping"]
    return PreviewResponse(
        headers=preview["headers"],
        mapping=ColumnMappingOut(
            date=mapping.date,
            description=mapping.description,
            amount=mapping.amount,
            debit=mapping.debit,
            credit=mapping.credit,
            valid=mapping.is_valid(),
            problem=mapping.problem(),
        ),
        rows=preview["rows"],
        row_count=preview["row_count"],
    )


@router.post("/commit", response_model=ImportResponse)
async def commit_import(
    file: UploadFile = File(...),
    password: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    debit: Optional[str] = Form(None),
    credit: Optional[str] = Form(None),
    negatives_are_spend: Optional[bool] = Form(None),
    household_id: str = Depends(get_household_id),
    stores: LedgerStores = Depends(get_stores),
):
    """Import every spend row of the file; duplicates and non-spend rows are skipped.

    Mapping fields override the guessed columns (an empty value clears a role).
    Importing the same file again adds nothing.
    """
    contents = await _read_upload(file)
    overrides = {
        "date": date,
        "description": description,
        "amount": amount,
        "debit": debit,
        "credit": credit,
    }
    report = await commit_file(
        stores,
        household_id,
        contents,
        file.filename,
        overrides=overrides,
        password=password,
        negatives_are_spend=negatives_are_spend,
    )
    logger.info("ingest_complete", filename=file.filename, **report.to_dict())
    return ImportResponse(**report.to_dict())
