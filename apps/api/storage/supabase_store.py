"""Supabase implementations of the ledger record stores.

Tables (all keyed by ``household_id``):
    transactions        unique (household_id, external_id)
    categories          unique (household_id, name)
    budgets             unique (household_id, category)
    category_rules      unique (household_id, key)
    household_settings  primary key household_id

PostgREST reports unique violations as SQLSTATE 23505; those surface as
``ConflictError`` so callers can tell duplicates from real failures.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog
from postgrest.exceptions import APIError
from supabase import AsyncClient

from packages.import_engine.errors import ConflictError, NotFoundError
from packages.import_engine.models import Budget, Category, Transaction
from packages.import_engine.stores import (
    BudgetStore,
    CategoryStore,
    LedgerStores,
    RuleStore,
    SettingsStore,
    TransactionStore,
)

logger = structlog.get_logger()

UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: Exception) -> bool:
    if getattr(exc, "code", None) == UNIQUE_VIOLATION:
        return True
    return "duplicate key" in str(exc) or UNIQUE_VIOLATION in str(exc)


async def _execute(query):
    try:
        return await query.execute()
    except APIError as e:
        if is_unique_violation(e):
            raise ConflictError(getattr(e, "message", None) or str(e)) from e
        raise


def _jsonable(patch: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in patch.items():
        if isinstance(value, Decimal):
            value = float(value)
        elif isinstance(value, Enum):
            value = value.value
        out[key] = value
    return out


def _category(record: Dict[str, Any]) -> Category:
    return Category(
        id=record.get("id"),
        household_id=record["household_id"],
        name=record["name"],
        color=record.get("color"),
        sort_order=record.get("sort_order"),
    )


def _budget(record: Dict[str, Any]) -> Budget:
    return Budget(
        household_id=record["household_id"],
        category=record["category"],
        amount=Decimal(str(record["amount"])),
    )


class _SupabaseTable:
    table_name = ""

    def __init__(self, client: AsyncClient):
        self.client = client

    def table(self):
        return self.client.table(self.table_name)


class SupabaseTransactionStore(_SupabaseTable, TransactionStore):
    table_name = "transactions"

    async def insert(self, txn: Transaction) -> Transaction:
        response = await _execute(self.table().insert(txn.to_record()))
        return Transaction.from_record(response.data[0])

    async def get(self, household_id: str, txn_id: str) -> Transaction:
        response = await _execute(
            self.table().select("*").eq("household_id", household_id).eq("id", txn_id).limit(1)
        )
        if not response.data:
            raise NotFoundError(f"Transaction {txn_id} not found")
        return Transaction.from_record(response.data[0])

    async def update(self, household_id: str, txn_id: str, patch: Dict[str, Any]) -> Transaction:
        response = await _execute(
            self.table().update(_jsonable(patch)).eq("household_id", household_id).eq("id", txn_id)
        )
        if not response.data:
            raise NotFoundError(f"Transaction {txn_id} not found")
        return Transaction.from_record(response.data[0])

    async def delete(self, household_id: str, txn_id: str) -> None:
        response = await _execute(
            self.table().delete().eq("household_id", household_id).eq("id", txn_id)
        )
        if not response.data:
            raise NotFoundError(f"Transaction {txn_id} not found")

    async def delete_range(self, household_id: str, start: str, end: str) -> int:
        response = await _execute(
            self.table()
            .delete()
            .eq("household_id", household_id)
            .gte("date", start)
            .lte("date", end)
        )
        return len(response.data or [])

    async def list(
        self, household_id: str, start: Optional[str] = None, end: Optional[str] = None
    ) -> List[Transaction]:
        query = self.table().select("*").eq("household_id", household_id)
        if start:
            query = query.gte("date", start)
        if end:
            query = query.lte("date", end)
        response = await _execute(query.order("date"))
        return [Transaction.from_record(r) for r in response.data or []]

    async def count_by_category(self, household_id: str, category: str) -> int:
        response = await _execute(
            self.table()
            .select("id", count="exact", head=True)
            .eq("household_id", household_id)
            .eq("category", category)
        )
        return response.count or 0

    async def recategorize(self, household_id: str, old: str, new: str) -> int:
        response = await _execute(
            self.table()
            .update({"category": new})
            .eq("household_id", household_id)
            .eq("category", old)
        )
        return len(response.data or [])


class SupabaseCategoryStore(_SupabaseTable, CategoryStore):
    table_name = "categories"

    async def list(self, household_id: str) -> List[Category]:
        response = await _execute(
            self.table()
            .select("*")
            .eq("household_id", household_id)
            .order("sort_order")
            .order("name")
        )
        return [_category(r) for r in response.data or []]

    async def create(self, category: Category) -> Category:
        record = {
            "household_id": category.household_id,
            "name": category.name,
            "color": category.color,
            "sort_order": category.sort_order,
        }
        response = await _execute(self.table().insert(record))
        return _category(response.data[0])

    async def create_many(self, categories: List[Category]) -> int:
        if not categories:
            return 0
        rows = [
            {"household_id": c.household_id, "name": c.name, "sort_order": c.sort_order}
            for c in categories
        ]
        response = await _execute(
            self.table().upsert(rows, on_conflict="household_id,name", ignore_duplicates=True)
        )
        return len(response.data or [])

    async def get(self, household_id: str, category_id: str) -> Category:
        response = await _execute(
            self.table().select("*").eq("household_id", household_id).eq("id", category_id).limit(1)
        )
        if not response.data:
            raise NotFoundError(f"Category {category_id} not found")
        return _category(response.data[0])

    async def update(self, household_id: str, category_id: str, patch: Dict[str, Any]) -> Category:
        response = await _execute(
            self.table().update(_jsonable(patch)).eq("household_id", household_id).eq("id", category_id)
        )
        if not response.data:
            raise NotFoundError(f"Category {category_id} not found")
        return _category(response.data[0])

    async def delete(self, household_id: str, category_id: str) -> None:
        response = await _execute(
            self.table().delete().eq("household_id", household_id).eq("id", category_id)
        )
        if not response.data:
            raise NotFoundError(f"Category {category_id} not found")


class SupabaseBudgetStore(_SupabaseTable, BudgetStore):
    table_name = "budgets"

    async def list(self, household_id: str) -> List[Budget]:
        response = await _execute(self.table().select("*").eq("household_id", household_id))
        return [_budget(r) for r in response.data or []]

    async def get(self, household_id: str, category: str) -> Optional[Budget]:
        response = await _execute(
            self.table()
            .select("*")
            .eq("household_id", household_id)
            .eq("category", category)
            .limit(1)
        )
        return _budget(response.data[0]) if response.data else None

    async def upsert(self, household_id: str, category: str, amount: Decimal) -> Budget:
        record = {"household_id": household_id, "category": category, "amount": float(amount)}
        response = await _execute(
            self.table().upsert(record, on_conflict="household_id,category")
        )
        return _budget(response.data[0])

    async def delete(self, household_id: str, category: str) -> None:
        await _execute(
            self.table().delete().eq("household_id", household_id).eq("category", category)
        )

    async def count(self, household_id: str, category: str) -> int:
        response = await _execute(
            self.table()
            .select("category", count="exact", head=True)
            .eq("household_id", household_id)
            .eq("category", category)
        )
        return response.count or 0


class SupabaseRuleStore(_SupabaseTable, RuleStore):
    table_name = "category_rules"

    async def load(self, household_id: str) -> Dict[str, str]:
        response = await _execute(
            self.table().select("key,category").eq("household_id", household_id)
        )
        return {r["key"]: r["category"] for r in response.data or []}

    async def save(self, household_id: str, key: str, category: str) -> None:
        await _execute(
            self.table().upsert(
                {"household_id": household_id, "key": key, "category": category},
                on_conflict="household_id,key",
            )
        )


class SupabaseSettingsStore(_SupabaseTable, SettingsStore):
    table_name = "household_settings"

    async def get_negatives_are_spend(self, household_id: str) -> bool:
        response = await _execute(
            self.table()
            .select("negatives_are_spend")
            .eq("household_id", household_id)
            .limit(1)
        )
        if not response.data or response.data[0].get("negatives_are_spend") is None:
            return self.DEFAULT_NEGATIVES_ARE_SPEND
        return bool(response.data[0]["negatives_are_spend"])

    async def set_negatives_are_spend(self, household_id: str, value: bool) -> None:
        await _execute(
            self.table().upsert(
                {"household_id": household_id, "negatives_are_spend": bool(value)},
                on_conflict="household_id",
            )
        )
        logger.info("household_setting_changed", household_id=household_id, negatives_are_spend=value)


def supabase_stores(client: AsyncClient) -> LedgerStores:
    return LedgerStores(
        transactions=SupabaseTransactionStore(client),
        categories=SupabaseCategoryStore(client),
        budgets=SupabaseBudgetStore(client),
        rules=SupabaseRuleStore(client),
        settings=SupabaseSettingsStore(client),
    )
