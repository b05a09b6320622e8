"""Ledger service — manual entry and edits of individual transactions.

Every explicit category choice is fed to the category learner, and new
manual entries without a category are pre-filled from what it learned.
"""

from datetime import date as date_type
from decimal import Decimal
from typing import List, Optional

import structlog

from packages.categorization.rules import CategoryLearner
from packages.import_engine.coercion import parse_date
from packages.import_engine.errors import EntryValidationError
from packages.import_engine.models import (
    UNCATEGORIZED,
    Person,
    Source,
    Transaction,
)
from packages.import_engine.stores import LedgerStores

logger = structlog.get_logger()


class LedgerService:
    def __init__(self, stores: LedgerStores, learner: Optional[CategoryLearner] = None):
        self.stores = stores
        self.learner = learner or CategoryLearner(stores.rules)

    async def list_transactions(
        self, household_id: str, start: Optional[str] = None, end: Optional[str] = None
    ) -> List[Transaction]:
        return await self.stores.transactions.list(household_id, start, end)

    async def suggest_category(
        self, household_id: str, merchant: Optional[str], description: Optional[str]
    ) -> Optional[str]:
        return await self.learner.suggest(household_id, merchant, description)

    async def add_manual_transaction(
        self,
        household_id: str,
        date: Optional[str | date_type],
        amount: Optional[Decimal],
        merchant: str = "",
        description: str = "",
        person: Person = Person.BOTH,
        category: Optional[str] = None,
        notes: str = "",
    ) -> Transaction:
        """Record a hand-entered transaction.

        ``category`` wins when given and is learned for next time; otherwise
        the learned suggestion is used, falling back to Uncategorized.

        Raises:
            EntryValidationError: missing/invalid date or a zero amount.
        """
        iso_date = parse_date(date)
        if iso_date is None or not amount:
            raise EntryValidationError("Please enter a date and amount.")

        explicit = (category or "").strip() or None
        chosen = explicit or await self.learner.suggest(household_id, merchant, description)

        txn = Transaction(
            household_id=household_id,
            date=iso_date,
            person=person,
            merchant=merchant or "",
            description=description or "",
            amount=Decimal(amount),
            category=chosen or UNCATEGORIZED,
            notes=notes or "",
            source=Source.MANUAL,
            external_id=None,
        )
        saved = await self.stores.transactions.insert(txn)
        if explicit:
            await self.learner.learn(household_id, saved.merchant, saved.description, explicit)

        logger.info(
            "manual_transaction_added",
            household_id=household_id,
            category=saved.category,
            suggested=explicit is None and chosen is not None,
        )
        return saved

    async def change_category(self, household_id: str, txn_id: str, category: str) -> Transaction:
        category = (category or "").strip()
        if not category:
            raise EntryValidationError("Category cannot be empty")
        saved = await self.stores.transactions.update(household_id, txn_id, {"category": category})
        await self.learner.learn(household_id, saved.merchant, saved.description, category)
        return saved

    async def change_description(self, household_id: str, txn_id: str, description: str) -> Transaction:
        return await self.stores.transactions.update(
            household_id, txn_id, {"description": description or ""}
        )

    async def delete_transaction(self, household_id: str, txn_id: str) -> None:
        await self.stores.transactions.delete(household_id, txn_id)

    async def delete_range(self, household_id: str, start: str, end: str) -> int:
        start_iso, end_iso = parse_date(start), parse_date(end)
        if start_iso is None or end_iso is None or start_iso > end_iso:
            raise EntryValidationError("Please choose a valid date range.")
        deleted = await self.stores.transactions.delete_range(household_id, start_iso, end_iso)
        logger.info(
            "transactions_deleted", household_id=household_id, start=start_iso, end=end_iso, count=deleted
        )
        return deleted
