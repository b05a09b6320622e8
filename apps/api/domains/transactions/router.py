"""Transactions router — listing, manual entry, inline edits and deletes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from apps.api.core.auth import get_household_id
from apps.api.core.errors import ValidationError
from apps.api.deps import get_stores
from apps.api.domains.transactions.schemas import (
    DeletedOut,
    ManualEntry,
    SuggestionOut,
    TransactionList,
    TransactionOut,
    TransactionPatch,
)
from apps.api.domains.transactions.service import LedgerService
from packages.import_engine.stores import LedgerStores

router = APIRouter(prefix="/transactions", tags=["transactions"])


def get_ledger(stores: LedgerStores = Depends(get_stores)) -> LedgerService:
    return LedgerService(stores)


@router.get("", response_model=TransactionList)
async def list_transactions(
    start: Optional[date] = Query(None, alias="from"),
    end: Optional[date] = Query(None, alias="to"),
    household_id: str = Depends(get_household_id),
    ledger: LedgerService = Depends(get_ledger),
):
    """Household transactions ordered by date, optionally within a date range."""
    rows = await ledger.list_transactions(
        household_id,
        start.isoformat() if start else None,
        end.isoformat() if end else None,
    )
    return TransactionList(transactions=[TransactionOut.from_txn(t) for t in rows], count=len(rows))


@router.get("/suggest", response_model=SuggestionOut)
async def suggest_category(
    merchant: str = "",
    description: str = "",
    household_id: str = Depends(get_household_id),
    ledger: LedgerService = Depends(get_ledger),
):
    """Category learned for this merchant (or description), if any."""
    category = await ledger.suggest_category(household_id, merchant, description)
    return SuggestionOut(category=category)


@router.post("", response_model=TransactionOut, status_code=201)
async def add_transaction(
    entry: ManualEntry,
    household_id: str = Depends(get_household_id),
    ledger: LedgerService = Depends(get_ledger),
):
    saved = await ledger.add_manual_transaction(
        household_id,
        date=entry.date,
        amount=entry.amount,
        merchant=entry.merchant,
        description=entry.description,
        person=entry.person,
        category=entry.category,
        notes=entry.notes,
    )
    return TransactionOut.from_txn(saved)


@router.patch("/{txn_id}", response_model=TransactionOut)
async def update_transaction(
    txn_id: str,
    patch: TransactionPatch,
    household_id: str = Depends(get_household_id),
    ledger: LedgerService = Depends(get_ledger),
):
    """Change category and/or description. A category change is learned."""
    if patch.category is None and patch.description is None:
        raise ValidationError("Nothing to update")

    saved = None
    if patch.description is not None:
        saved = await ledger.change_description(household_id, txn_id, patch.description)
    if patch.category is not None:
        saved = await ledger.change_category(household_id, txn_id, patch.category)
    return TransactionOut.from_txn(saved)


@router.delete("/{txn_id}", status_code=204)
async def delete_transaction(
    txn_id: str,
    household_id: str = Depends(get_household_id),
    ledger: LedgerService = Depends(get_ledger),
):
    await ledger.delete_transaction(household_id, txn_id)
    return Response(status_code=204)


@router.delete("", response_model=DeletedOut)
async def delete_range(
    start: date = Query(..., alias="from"),
    end: date = Query(..., alias="to"),
    household_id: str = Depends(get_household_id),
    ledger: LedgerService = Depends(get_ledger),
):
    """Bulk delete every transaction dated within [from, to]."""
    deleted = await ledger.delete_range(household_id, start.isoformat(), end.isoformat())
    return DeletedOut(deleted=deleted)
