"""Ledger records shared by the import engine and the category tooling."""

from collections import Counter
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

UNCATEGORIZED = "Uncategorized"

# A spreadsheet row: raw header -> loosely typed cell (str, int, float, datetime, ...)
RawRow = Dict[str, Any]


class Person(str, Enum):
    """Who in the household a transaction belongs to."""

    KEN = "Ken"
    WIFE = "Wife"
    BOTH = "Both"


class Source(str, Enum):
    MANUAL = "manual"
    IMPORT = "import"


@dataclass
class Transaction:
    """A single ledger entry.

    ``amount`` is positive for spend and negative for refunds. ``external_id``
    is only set for imported rows and is unique per household.
    """

    household_id: str
    date: str  # YYYY-MM-DD
    amount: Decimal
    description: str = ""
    merchant: str = ""
    person: Person = Person.BOTH
    category: str = UNCATEGORIZED
    tags: List[str] = field(default_factory=list)
    notes: str = ""
    source: Source = Source.MANUAL
    external_id: Optional[str] = None
    id: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for the record store."""
        record = asdict(self)
        record["amount"] = float(self.amount)
        record["person"] = self.person.value
        record["source"] = self.source.value
        if record["id"] is None:
            del record["id"]
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Transaction":
        return cls(
            id=record.get("id"),
            household_id=record["household_id"],
            date=str(record["date"])[:10],
            amount=Decimal(str(record["amount"])),
            description=record.get("description") or "",
            merchant=record.get("merchant") or "",
            person=Person(record.get("person") or Person.BOTH.value),
            category=record.get("category") or UNCATEGORIZED,
            tags=list(record.get("tags") or []),
            notes=record.get("notes") or "",
            source=Source(record.get("source") or Source.MANUAL.value),
            external_id=record.get("external_id"),
        )


@dataclass
class Category:
    household_id: str
    name: str
    color: Optional[str] = None
    sort_order: Optional[int] = None
    id: Optional[str] = None


@dataclass
class Budget:
    household_id: str
    category: str
    amount: Decimal


@dataclass
class ColumnMapping:
    """Assignment of raw spreadsheet headers to semantic roles."""

    date: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[str] = None
    debit: Optional[str] = None
    credit: Optional[str] = None

    @property
    def uses_debit_credit(self) -> bool:
        return bool(self.debit and self.credit)

    def problem(self) -> Optional[str]:
        """Return why the mapping cannot be used, or None if it is valid."""
        if not self.date:
            return "Please map the Date column."
        if not self.amount and not self.uses_debit_credit:
            return "Please map Amount or Debit and Credit columns."
        if not self.description:
            return "Please map the Description column."
        return None

    def is_valid(self) -> bool:
        return self.problem() is None

    def merged(self, overrides: Dict[str, Optional[str]]) -> "ColumnMapping":
        """Apply user overrides; an empty string clears a role."""
        values = asdict(self)
        for role, header in overrides.items():
            if role not in values or header is None:
                continue
            values[role] = header or None
        return ColumnMapping(**values)


class SkipReason(str, Enum):
    UNPARSEABLE_DATE = "unparseable_date"
    NOT_SPEND = "not_spend"
    DUPLICATE = "duplicate"
    INSERT_FAILED = "insert_failed"


@dataclass
class ImportReport:
    """Outcome of one import batch. Every submitted row is either added or skipped."""

    added: int = 0
    reasons: Counter = field(default_factory=Counter)

    @property
    def skipped(self) -> int:
        return sum(self.reasons.values())

    @property
    def total(self) -> int:
        return self.added + self.skipped

    def skip(self, reason: SkipReason) -> None:
        self.reasons[reason] += 1

    def to_dict(self) -> Dict[str, int]:
        return {
            "added": self.added,
            "skipped": self.skipped,
            "duplicates": self.reasons[SkipReason.DUPLICATE],
            "rejected": self.reasons[SkipReason.NOT_SPEND],
            "unparseable": self.reasons[SkipReason.UNPARSEABLE_DATE],
            "failed": self.reasons[SkipReason.INSERT_FAILED],
        }
