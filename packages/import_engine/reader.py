"""Reading uploaded CSV and workbook files into raw rows.

Only the first sheet of a workbook is read and the first row is always the
header row. Cells are left loosely typed; coercion happens per row later.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import msoffcrypto
import pandas as pd

from .errors import SpreadsheetError
from .models import RawRow

logger = logging.getLogger(__name__)

# OLE2 Compound Document magic bytes; encrypted Office files use this container
_OLE2_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"

CSV_EXTENSIONS = (".csv", ".txt", ".tsv")
WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm", ".xls")
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS + WORKBOOK_EXTENSIONS


@dataclass
class ParsedSheet:
    headers: List[str]
    rows: List[RawRow] = field(default_factory=list)


def _is_ole2(file_content: bytes) -> bool:
    """Check if file starts with the OLE2 magic bytes (legacy .xls or encrypted workbook)."""
    return file_content[:8] == _OLE2_MAGIC


def _decrypt(file_content: bytes, password: str) -> io.BytesIO:
    decrypted = io.BytesIO()
    try:
        with io.BytesIO(file_content) as f:
            office_file = msoffcrypto.OfficeFile(f)
            office_file.load_key(password=password)
            office_file.decrypt(decrypted)
    except Exception as e:
        msg = str(e).lower()
        if "password" in msg or "decrypt" in msg or "key" in msg:
            raise SpreadsheetError("Invalid password") from e
        raise SpreadsheetError(f"Failed to decrypt file: {e}") from e
    decrypted.seek(0)
    return decrypted


def _is_encrypted(file_content: bytes) -> bool:
    try:
        with io.BytesIO(file_content) as f:
            return msoffcrypto.OfficeFile(f).is_encrypted()
    except Exception:
        # Not an Office container msoffcrypto understands; let pandas decide
        return False


def _read_workbook(file_content: bytes, filename: str, password: Optional[str]) -> pd.DataFrame:
    engine = "xlrd" if filename.endswith(".xls") else "openpyxl"
    workbook = io.BytesIO(file_content)

    if _is_ole2(file_content) and _is_encrypted(file_content):
        if not password:
            raise SpreadsheetError("Password required")
        workbook = _decrypt(file_content, password)
        engine = "openpyxl"

    try:
        return pd.read_excel(workbook, sheet_name=0, engine=engine, dtype=object)
    except Exception as e:
        raise SpreadsheetError(f"Could not read workbook: {e}") from e


def _read_csv(file_content: bytes, filename: str) -> pd.DataFrame:
    try:
        text = file_content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = file_content.decode("latin-1")
    if not text.strip():
        raise SpreadsheetError("No rows found.")

    sep = "\t" if filename.endswith(".tsv") else ","
    try:
        return pd.read_csv(
            io.StringIO(text),
            sep=sep,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            # bank exports often end data rows with a stray delimiter
            index_col=False,
        )
    except Exception as e:
        raise SpreadsheetError(f"CSV parse error: {e}") from e


def read_spreadsheet(file_content: bytes, filename: str, password: Optional[str] = None) -> ParsedSheet:
    """Parse an uploaded file into headers and raw rows.

    Raises:
        SpreadsheetError: unsupported type, unreadable content, or no data rows.
    """
    filename_lower = (filename or "").lower()
    if not filename_lower.endswith(SUPPORTED_EXTENSIONS):
        raise SpreadsheetError(
            f"Unsupported file type. Accepted: {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    if filename_lower.endswith(WORKBOOK_EXTENSIONS):
        df = _read_workbook(file_content, filename_lower, password)
    else:
        df = _read_csv(file_content, filename_lower)

    headers = [str(c) for c in df.columns]
    df.columns = headers
    df = df.astype(object).where(pd.notna(df), "")

    rows = [
        row
        for row in df.to_dict(orient="records")
        if any(str(value).strip() for value in row.values())
    ]
    if not rows:
        raise SpreadsheetError("No rows found.")

    logger.info("Read %d rows with %d columns from %s", len(rows), len(headers), filename)
    return ParsedSheet(headers=headers, rows=rows)
