"""Record store interfaces the engine needs from persistence.

Every call is scoped by household. Implementations raise ``ConflictError``
for uniqueness violations and ``NotFoundError`` for missing records; any other
exception is treated as a storage failure by the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .models import Budget, Category, Transaction


class TransactionStore(ABC):
    @abstractmethod
    async def insert(self, txn: Transaction) -> Transaction:
        """Insert a transaction and return it with its id.

        Raises:
            ConflictError: the household already has a row with this external_id.
        """

    @abstractmethod
    async def get(self, household_id: str, txn_id: str) -> Transaction:
        pass

    @abstractmethod
    async def update(self, household_id: str, txn_id: str, patch: Dict[str, Any]) -> Transaction:
        pass

    @abstractmethod
    async def delete(self, household_id: str, txn_id: str) -> None:
        pass

    @abstractmethod
    async def delete_range(self, household_id: str, start: str, end: str) -> int:
        """Delete transactions dated within [start, end]; return how many."""

    @abstractmethod
    async def list(
        self, household_id: str, start: Optional[str] = None, end: Optional[str] = None
    ) -> List[Transaction]:
        """Transactions ordered by date ascending, optionally bounded."""

    @abstractmethod
    async def count_by_category(self, household_id: str, category: str) -> int:
        pass

    @abstractmethod
    async def recategorize(self, household_id: str, old: str, new: str) -> int:
        """Move every transaction in ``old`` to ``new``; return how many moved."""


class CategoryStore(ABC):
    @abstractmethod
    async def list(self, household_id: str) -> List[Category]:
        """Categories ordered by sort order, then name."""

    @abstractmethod
    async def create(self, category: Category) -> Category:
        """Raises ConflictError if the name is taken in this household."""

    @abstractmethod
    async def create_many(self, categories: List[Category]) -> int:
        """Insert the categories whose names are free; return how many were added."""

    @abstractmethod
    async def get(self, household_id: str, category_id: str) -> Category:
        pass

    @abstractmethod
    async def update(self, household_id: str, category_id: str, patch: Dict[str, Any]) -> Category:
        pass

    @abstractmethod
    async def delete(self, household_id: str, category_id: str) -> None:
        pass


class BudgetStore(ABC):
    @abstractmethod
    async def list(self, household_id: str) -> List[Budget]:
        pass

    @abstractmethod
    async def get(self, household_id: str, category: str) -> Optional[Budget]:
        pass

    @abstractmethod
    async def upsert(self, household_id: str, category: str, amount: Decimal) -> Budget:
        pass

    @abstractmethod
    async def delete(self, household_id: str, category: str) -> None:
        pass

    @abstractmethod
    async def count(self, household_id: str, category: str) -> int:
        pass


class RuleStore(ABC):
    """Durable per-household map of normalized merchant/description keys to categories."""

    @abstractmethod
    async def load(self, household_id: str) -> Dict[str, str]:
        pass

    @abstractmethod
    async def save(self, household_id: str, key: str, category: str) -> None:
        pass


class SettingsStore(ABC):
    """Household-scoped preferences."""

    DEFAULT_NEGATIVES_ARE_SPEND = True

    @abstractmethod
    async def get_negatives_are_spend(self, household_id: str) -> bool:
        pass

    @abstractmethod
    async def set_negatives_are_spend(self, household_id: str, value: bool) -> None:
        pass


@dataclass
class LedgerStores:
    """The full set of stores a household's ledger is backed by."""

    transactions: TransactionStore
    categories: CategoryStore
    budgets: BudgetStore
    rules: RuleStore
    settings: SettingsStore
