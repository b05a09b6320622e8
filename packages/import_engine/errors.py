"""Domain errors raised by the import engine and category tooling.

These carry no HTTP semantics; the API layer maps them to problem details.
"""

from typing import List


class LedgerError(Exception):
    """Base class for ledger errors."""


class MappingError(LedgerError):
    """The column mapping is missing a required role."""


class EntryValidationError(LedgerError):
    """A manually entered value was rejected."""


class SpreadsheetError(LedgerError):
    """The uploaded file could not be read as a spreadsheet."""


class ConflictError(LedgerError):
    """A uniqueness constraint in the record store was violated."""


class NotFoundError(LedgerError):
    """The requested record does not exist."""


class CategoryInUseError(LedgerError):
    """A category cannot be deleted while transactions or budgets reference it."""

    def __init__(self, name: str, transactions: int = 0, budgets: int = 0):
        self.name = name
        self.transactions = transactions
        self.budgets = budgets
        if transactions:
            detail = f"Category '{name}' in use by {transactions} transaction(s)"
        else:
            detail = f"Category '{name}' in use by budgets"
        super().__init__(detail)


class MigrationIncompleteError(LedgerError):
    """A category rename failed part-way; the listed steps were already applied."""

    def __init__(self, old_name: str, new_name: str, completed: List[str], cause: Exception):
        self.old_name = old_name
        self.new_name = new_name
        self.completed = list(completed)
        self.cause = cause
        done = ", ".join(self.completed) or "nothing"
        super().__init__(
            f"Renaming '{old_name}' to '{new_name}' failed after: {done} ({cause})"
        )
