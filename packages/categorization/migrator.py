"""Referential integrity for category rename and delete.

A rename touches three collections: the category row, every transaction
filed under the old name, and the budget row for the old name. The record
store offers no multi-table transaction, so a failure after the first write
is raised as ``MigrationIncompleteError`` naming the steps already applied.
"""

from dataclasses import dataclass

import structlog

from packages.import_engine.errors import (
    CategoryInUseError,
    EntryValidationError,
    MigrationIncompleteError,
)
from packages.import_engine.models import Category
from packages.import_engine.stores import BudgetStore, CategoryStore, TransactionStore

logger = structlog.get_logger()


@dataclass
class RenameResult:
    category: Category
    old_name: str
    transactions_moved: int = 0
    budget_moved: bool = False


class CategoryMigrator:
    def __init__(
        self,
        categories: CategoryStore,
        transactions: TransactionStore,
        budgets: BudgetStore,
    ):
        self.categories = categories
        self.transactions = transactions
        self.budgets = budgets

    async def rename(self, household_id: str, category_id: str, new_name: str) -> RenameResult:
        """Rename a category and move its transactions and budget to the new name.

        Raises:
            EntryValidationError: the new name is blank.
            ConflictError: the new name is already used; nothing was changed.
            MigrationIncompleteError: a later step failed after earlier ones applied.
        """
        new_name = (new_name or "").strip()
        if not new_name:
            raise EntryValidationError("Category name cannot be empty")

        category = await self.categories.get(household_id, category_id)
        old_name = category.name
        result = RenameResult(category=category, old_name=old_name)
        if new_name == old_name:
            return result

        # A conflict here leaves everything untouched, so it propagates as-is
        result.category = await self.categories.update(household_id, category_id, {"name": new_name})
        completed = ["category"]

        try:
            result.transactions_moved = await self.transactions.recategorize(
                household_id, old_name, new_name
            )
            completed.append("transactions")

            budget = await self.budgets.get(household_id, old_name)
            if budget is not None:
                await self.budgets.upsert(household_id, new_name, budget.amount)
                completed.append("budget upsert")
                await self.budgets.delete(household_id, old_name)
                completed.append("budget delete")
                result.budget_moved = True
        except Exception as e:
            logger.error(
                "category_rename_incomplete",
                household_id=household_id,
                old_name=old_name,
                new_name=new_name,
                completed=completed,
                error=str(e),
            )
            raise MigrationIncompleteError(old_name, new_name, completed, e) from e

        logger.info(
            "category_renamed",
            household_id=household_id,
            old_name=old_name,
            new_name=new_name,
            transactions=result.transactions_moved,
            budget_moved=result.budget_moved,
        )
        return result

    async def delete(self, household_id: str, category_id: str) -> None:
        """Delete a category unless a transaction or budget still uses its name.

        Raises:
            CategoryInUseError: the category is referenced; nothing was deleted.
        """
        category = await self.categories.get(household_id, category_id)
        txn_count = await self.transactions.count_by_category(household_id, category.name)
        budget_count = await self.budgets.count(household_id, category.name)
        if txn_count or budget_count:
            raise CategoryInUseError(category.name, transactions=txn_count, budgets=budget_count)

        await self.categories.delete(household_id, category_id)
        logger.info("category_deleted", household_id=household_id, name=category.name)
