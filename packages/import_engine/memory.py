"""In-memory record stores.

Used for dry-run imports and as the test double for the Supabase stores.
Uniqueness constraints mirror the database: (household, external_id) for
transactions and (household, name) for categories.
"""

import copy
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConflictError, NotFoundError
from .models import Budget, Category, Transaction
from .stores import (
    BudgetStore,
    CategoryStore,
    LedgerStores,
    RuleStore,
    SettingsStore,
    TransactionStore,
)


class InMemoryTransactionStore(TransactionStore):
    def __init__(self):
        self.rows: Dict[str, Transaction] = {}

    def _household(self, household_id: str) -> List[Transaction]:
        return [t for t in self.rows.values() if t.household_id == household_id]

    async def insert(self, txn: Transaction) -> Transaction:
        if txn.external_id is not None:
            for existing in self._household(txn.household_id):
                if existing.external_id == txn.external_id:
                    raise ConflictError(
                        f"duplicate key value violates unique constraint (external_id={txn.external_id})"
                    )
        saved = copy.deepcopy(txn)
        saved.id = saved.id or str(uuid.uuid4())
        self.rows[saved.id] = saved
        return copy.deepcopy(saved)

    async def get(self, household_id: str, txn_id: str) -> Transaction:
        txn = self.rows.get(txn_id)
        if txn is None or txn.household_id != household_id:
            raise NotFoundError(f"Transaction {txn_id} not found")
        return copy.deepcopy(txn)

    async def update(self, household_id: str, txn_id: str, patch: Dict[str, Any]) -> Transaction:
        await self.get(household_id, txn_id)
        txn = self.rows[txn_id]
        for key, value in patch.items():
            setattr(txn, key, value)
        return copy.deepcopy(txn)

    async def delete(self, household_id: str, txn_id: str) -> None:
        await self.get(household_id, txn_id)
        del self.rows[txn_id]

    async def delete_range(self, household_id: str, start: str, end: str) -> int:
        doomed = [t.id for t in self._household(household_id) if start <= t.date <= end]
        for txn_id in doomed:
            del self.rows[txn_id]
        return len(doomed)

    async def list(
        self, household_id: str, start: Optional[str] = None, end: Optional[str] = None
    ) -> List[Transaction]:
        rows = [
            t
            for t in self._household(household_id)
            if (start is None or t.date >= start) and (end is None or t.date <= end)
        ]
        return [copy.deepcopy(t) for t in sorted(rows, key=lambda t: t.date)]

    async def count_by_category(self, household_id: str, category: str) -> int:
        return sum(1 for t in self._household(household_id) if t.category == category)

    async def recategorize(self, household_id: str, old: str, new: str) -> int:
        moved = 0
        for txn in self._household(household_id):
            if txn.category == old:
                txn.category = new
                moved += 1
        return moved


class InMemoryCategoryStore(CategoryStore):
    def __init__(self):
        self.rows: Dict[str, Category] = {}

    def _name_taken(self, household_id: str, name: str, exclude: Optional[str] = None) -> bool:
        return any(
            c.household_id == household_id and c.name == name and c.id != exclude
            for c in self.rows.values()
        )

    async def list(self, household_id: str) -> List[Category]:
        rows = [c for c in self.rows.values() if c.household_id == household_id]
        rows.sort(key=lambda c: (c.sort_order is None, c.sort_order or 0, c.name))
        return [copy.deepcopy(c) for c in rows]

    async def create(self, category: Category) -> Category:
        if self._name_taken(category.household_id, category.name):
            raise ConflictError(f"Category '{category.name}' already exists")
        saved = copy.deepcopy(category)
        saved.id = saved.id or str(uuid.uuid4())
        self.rows[saved.id] = saved
        return copy.deepcopy(saved)

    async def create_many(self, categories: List[Category]) -> int:
        added = 0
        for category in categories:
            try:
                await self.create(category)
            except ConflictError:
                continue
            added += 1
        return added

    async def get(self, household_id: str, category_id: str) -> Category:
        category = self.rows.get(category_id)
        if category is None or category.household_id != household_id:
            raise NotFoundError(f"Category {category_id} not found")
        return copy.deepcopy(category)

    async def update(self, household_id: str, category_id: str, patch: Dict[str, Any]) -> Category:
        await self.get(household_id, category_id)
        if "name" in patch and self._name_taken(household_id, patch["name"], exclude=category_id):
            raise ConflictError(f"Category '{patch['name']}' already exists")
        category = self.rows[category_id]
        for key, value in patch.items():
            setattr(category, key, value)
        return copy.deepcopy(category)

    async def delete(self, household_id: str, category_id: str) -> None:
        await self.get(household_id, category_id)
        del self.rows[category_id]


class InMemoryBudgetStore(BudgetStore):
    def __init__(self):
        self.rows: Dict[Tuple[str, str], Budget] = {}

    async def list(self, household_id: str) -> List[Budget]:
        return [copy.deepcopy(b) for (h, _), b in self.rows.items() if h == household_id]

    async def get(self, household_id: str, category: str) -> Optional[Budget]:
        budget = self.rows.get((household_id, category))
        return copy.deepcopy(budget) if budget else None

    async def upsert(self, household_id: str, category: str, amount: Decimal) -> Budget:
        budget = Budget(household_id=household_id, category=category, amount=Decimal(amount))
        self.rows[(household_id, category)] = budget
        return copy.deepcopy(budget)

    async def delete(self, household_id: str, category: str) -> None:
        self.rows.pop((household_id, category), None)

    async def count(self, household_id: str, category: str) -> int:
        return 1 if (household_id, category) in self.rows else 0


class InMemoryRuleStore(RuleStore):
    def __init__(self):
        self.rules: Dict[str, Dict[str, str]] = {}

    async def load(self, household_id: str) -> Dict[str, str]:
        return dict(self.rules.get(household_id, {}))

    async def save(self, household_id: str, key: str, category: str) -> None:
        self.rules.setdefault(household_id, {})[key] = category


class InMemorySettingsStore(SettingsStore):
    def __init__(self):
        self.negatives_are_spend: Dict[str, bool] = {}

    async def get_negatives_are_spend(self, household_id: str) -> bool:
        return self.negatives_are_spend.get(household_id, self.DEFAULT_NEGATIVES_ARE_SPEND)

    async def set_negatives_are_spend(self, household_id: str, value: bool) -> None:
        self.negatives_are_spend[household_id] = bool(value)


def in_memory_stores() -> LedgerStores:
    return LedgerStores(
        transactions=InMemoryTransactionStore(),
        categories=InMemoryCategoryStore(),
        budgets=InMemoryBudgetStore(),
        rules=InMemoryRuleStore(),
        settings=InMemorySettingsStore(),
    )
