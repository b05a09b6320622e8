"""Header normalization and column-role guessing for uploaded spreadsheets."""

import re
from typing import Dict, List, Optional, Sequence

from .models import ColumnMapping

# Roles are claimed in this order; a header taken by an earlier role is not reused.
COLUMN_SYNONYMS: Dict[str, List[str]] = {
    "date": [
        "date",
        "transaction_date",
        "txn_date",
        "posted_date",
        "value_date",
        "effective_date",
    ],
    "description": [
        "description",
        "details",
        "narration",
        "memo",
        "particulars",
        "transaction_details",
        "transaction_description",
        "reference",
    ],
    "amount": ["amount", "transaction_amount", "aud", "amt", "value"],
    "debit": ["debit", "withdrawal", "debit_amount"],
    "credit": ["credit", "deposit", "credit_amount"],
}

_WHITESPACE = re.compile(r"\s+")
_NOT_TOKEN = re.compile(r"[^a-z0-9_]")


def normalize_header(raw: Optional[str]) -> str:
    """Canonical token for a header: "Txn Date" -> "txn_date"."""
    lowered = str(raw or "").lower()
    return _NOT_TOKEN.sub("", _WHITESPACE.sub("_", lowered))


def guess_columns(headers: Sequence[str]) -> ColumnMapping:
    """Guess which raw headers hold each role.

    The first header (in column order) matching a role's synonyms wins. When
    two columns could fill the same role the result depends on column order.
    """
    normalized = [(header, normalize_header(header)) for header in headers]
    claimed = set()
    picks: Dict[str, Optional[str]] = {}

    for role, candidates in COLUMN_SYNONYMS.items():
        picks[role] = None
        for index, (header, key) in enumerate(normalized):
            if index in claimed:
                continue
            if key in candidates:
                picks[role] = header
                claimed.add(index)
                break

    return ColumnMapping(**picks)
