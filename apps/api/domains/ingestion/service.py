"""Ingestion service — preview and commit of uploaded spreadsheets.

Preview reads the file and guesses the column mapping so the user can
confirm or override it. Commit re-reads the same file, applies the
confirmed mapping and hands the rows to the reconciler.
"""

from dataclasses import asdict
from typing import Dict, Optional

import structlog
from fastapi.concurrency import run_in_threadpool

from packages.import_engine.errors import MappingError
from packages.import_engine.headers import guess_columns
from packages.import_engine.models import ColumnMapping, ImportReport
from packages.import_engine.reader import read_spreadsheet
from packages.import_engine.reconciler import ImportReconciler
from packages.import_engine.stores import LedgerStores

logger = structlog.get_logger()


def _json_cell(value):
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "item"):  # numpy scalar
        return value.item()
    return value


def preview_file(
    file_content: bytes,
    filename: str,
    password: Optional[str] = None,
    limit: int = 20,
) -> dict:
    """Headers, guessed mapping and the first ``limit`` rows of a file."""
    sheet = read_spreadsheet(file_content, filename, password=password)
    mapping = guess_columns(sheet.headers)
    rows = [
        {header: _json_cell(value) for header, value in row.items()}
        for row in sheet.rows[:limit]
    ]
    logger.info(
        "import_preview",
        filename=filename,
        rows=len(sheet.rows),
        mapping_valid=mapping.is_valid(),
    )
    return {
        "headers": sheet.headers,
        "mapping": mapping,
        "rows": rows,
        "row_count": len(sheet.rows),
    }


async def commit_file(
    stores: LedgerStores,
    household_id: str,
    file_content: bytes,
    filename: str,
    overrides: Optional[Dict[str, Optional[str]]] = None,
    password: Optional[str] = None,
    negatives_are_spend: Optional[bool] = None,
) -> ImportReport:
    """Import every row of a file for a household.

    The guessed mapping is used unless ``overrides`` replaces roles; the
    merged mapping is validated by the reconciler before any insert.
    """
    # pandas parsing blocks; keep it off the event loop
    sheet = await run_in_threadpool(read_spreadsheet, file_content, filename, password=password)
    mapping: ColumnMapping = guess_columns(sheet.headers).merged(overrides or {})
    for role, header in asdict(mapping).items():
        if header and header not in sheet.headers:
            raise MappingError(f"Column '{header}' mapped to {role} is not in the file.")

    reconciler = ImportReconciler(stores.transactions, stores.settings)
    return await reconciler.commit(
        household_id,
        sheet.rows,
        mapping,
        negatives_are_spend=negatives_are_spend,
    )
