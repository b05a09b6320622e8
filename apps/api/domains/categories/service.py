"""Category service — CRUD plus rename/delete through the migrator."""

import re
from decimal import Decimal
from typing import List, Optional

import structlog

from packages.categorization.constants import DEFAULT_CATEGORIES
from packages.categorization.migrator import CategoryMigrator, RenameResult
from packages.import_engine.errors import ConflictError, EntryValidationError
from packages.import_engine.models import Budget, Category
from packages.import_engine.stores import LedgerStores

logger = structlog.get_logger()

_HEX_COLOR = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)


class CategoryService:
    def __init__(self, stores: LedgerStores):
        self.stores = stores
        self.migrator = CategoryMigrator(stores.categories, stores.transactions, stores.budgets)

    async def list_categories(self, household_id: str) -> List[Category]:
        return await self.stores.categories.list(household_id)

    async def create_category(self, household_id: str, name: str) -> Category:
        name = (name or "").strip()
        if not name:
            raise EntryValidationError("Category name cannot be empty")
        try:
            return await self.stores.categories.create(Category(household_id=household_id, name=name))
        except ConflictError as e:
            raise ConflictError("Category already exists.") from e

    async def rename_category(self, household_id: str, category_id: str, new_name: str) -> RenameResult:
        return await self.migrator.rename(household_id, category_id, new_name)

    async def set_color(self, household_id: str, category_id: str, color: Optional[str]) -> Category:
        """Set a ``#rgb``/``#rrggbb`` display color, or clear it with an empty value."""
        color = (color or "").strip() or None
        if color is not None and not _HEX_COLOR.match(color):
            raise EntryValidationError(f"Invalid color '{color}'")
        return await self.stores.categories.update(household_id, category_id, {"color": color})

    async def delete_category(self, household_id: str, category_id: str) -> None:
        await self.migrator.delete(household_id, category_id)

    async def seed_defaults(self, household_id: str) -> int:
        """Add the starter categories; names the household already has are left alone."""
        defaults = [
            Category(household_id=household_id, name=name, sort_order=index)
            for index, name in enumerate(DEFAULT_CATEGORIES)
        ]
        added = await self.stores.categories.create_many(defaults)
        logger.info("categories_seeded", household_id=household_id, added=added)
        return added

    async def list_budgets(self, household_id: str) -> List[Budget]:
        return await self.stores.budgets.list(household_id)

    async def set_budget(self, household_id: str, category: str, amount: Decimal) -> Budget:
        category = (category or "").strip()
        if not category:
            raise EntryValidationError("Budget category cannot be empty")
        return await self.stores.budgets.upsert(household_id, category, amount)
