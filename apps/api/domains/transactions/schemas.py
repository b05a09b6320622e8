"""Pydantic schemas for the transactions domain."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from packages.import_engine.models import Person, Source, Transaction


class TransactionOut(BaseModel):
    id: Optional[str] = None
    date: str
    person: Person = Person.BOTH
    merchant: str = ""
    description: str = ""
    amount: float
    category: str = "Uncategorized"
    tags: list[str] = Field(default_factory=list)
    notes: str = ""
    source: Source = Source.MANUAL
    external_id: Optional[str] = None

    @classmethod
    def from_txn(cls, txn: Transaction) -> "TransactionOut":
        return cls(
            id=txn.id,
            date=txn.date,
            person=txn.person,
            merchant=txn.merchant,
            description=txn.description,
            amount=float(txn.amount),
            category=txn.category,
            tags=txn.tags,
            notes=txn.notes,
            source=txn.source,
            external_id=txn.external_id,
        )


class TransactionList(BaseModel):
    transactions: list[TransactionOut]
    count: int


class ManualEntry(BaseModel):
    """A hand-entered transaction. Leave ``category`` empty to use the learned suggestion."""

    date: date
    amount: Decimal
    merchant: str = ""
    description: str = ""
    person: Person = Person.BOTH
    category: Optional[str] = None
    notes: str = ""


class TransactionPatch(BaseModel):
    category: Optional[str] = None
    description: Optional[str] = None


class SuggestionOut(BaseModel):
    category: Optional[str] = None


class DeletedOut(BaseModel):
    deleted: int
