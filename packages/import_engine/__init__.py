"""
HomeSpend Import Engine

Spreadsheet reading, column mapping, value coercion, fingerprinting and
idempotent import of household transactions.
"""

__version__ = "0.1.0"

from .amounts import resolve_amount
from .coercion import parse_date, parse_number
from .fingerprint import fingerprint
from .headers import guess_columns, normalize_header
from .models import ColumnMapping, ImportReport, Transaction
from .reader import ParsedSheet, read_spreadsheet
from .reconciler import ImportReconciler

__all__ = [
    "ColumnMapping",
    "ImportReconciler",
    "ImportReport",
    "ParsedSheet",
    "Transaction",
    "fingerprint",
    "guess_columns",
    "normalize_header",
    "parse_date",
    "parse_number",
    "read_spreadsheet",
    "resolve_amount",
]
