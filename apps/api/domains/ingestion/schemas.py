"""Pydantic schemas for the ingestion domain."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ColumnMappingOut(BaseModel):
    """Raw header assigned to each role; null where nothing matched."""

    date: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[str] = None
    debit: Optional[str] = None
    credit: Optional[str] = None
    valid: bool = False
    problem: Optional[str] = None


class PreviewResponse(BaseModel):
    """Headers and a sample of rows so the user can confirm the mapping."""

    headers: list[str]
    mapping: ColumnMappingOut
    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int


class ImportResponse(BaseModel):
    """Outcome of an import commit.

    ``skipped`` covers every non-added row; the breakdown is informational.
    """

    added: int
    skipped: int
    duplicates: int = 0
    rejected: int = 0
    unparseable: int = 0
    failed: int = 0
