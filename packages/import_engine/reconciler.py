"""Import reconciliation: turn mapped spreadsheet rows into ledger transactions.

Rows are processed one at a time and independently. A row that cannot be
dated, is not spend, or is already in the ledger is skipped; nothing a single
row does aborts the batch. Because imported rows carry their fingerprint as
``external_id`` and the store rejects duplicates, re-importing a file is safe.

Cancelling the coroutine between rows leaves already-inserted rows in place.
"""

from typing import Iterable, Optional, Union

import structlog

from .amounts import is_spend, resolve_amount
from .coercion import parse_date
from .errors import ConflictError, MappingError
from .fingerprint import fingerprint
from .models import (
    UNCATEGORIZED,
    ColumnMapping,
    ImportReport,
    Person,
    RawRow,
    SkipReason,
    Source,
    Transaction,
)
from .stores import SettingsStore, TransactionStore

logger = structlog.get_logger()

MERCHANT_TOKENS = 6


def guess_merchant(description: str) -> str:
    """First few words of the description stand in for the merchant."""
    return " ".join(description.split()[:MERCHANT_TOKENS])


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:  # NaN
        return ""
    return str(value).strip()


def prepare_row(
    household_id: str,
    row: RawRow,
    mapping: ColumnMapping,
    negatives_are_spend: bool,
) -> Union[Transaction, SkipReason]:
    """Build the transaction for one row, or the reason it must be skipped."""
    iso_date = parse_date(row.get(mapping.date))
    if iso_date is None:
        return SkipReason.UNPARSEABLE_DATE

    description = _text(row.get(mapping.description))
    merchant = guess_merchant(description)

    amount = resolve_amount(row, mapping, negatives_are_spend)
    if not is_spend(amount):
        return SkipReason.NOT_SPEND

    return Transaction(
        household_id=household_id,
        date=iso_date,
        person=Person.BOTH,
        merchant=merchant,
        description=description,
        amount=amount,
        category=UNCATEGORIZED,
        source=Source.IMPORT,
        external_id=fingerprint(iso_date, amount, merchant, description),
    )


class ImportReconciler:
    """Commits a batch of rows for a household against the transaction store."""

    def __init__(self, transactions: TransactionStore, settings: SettingsStore):
        self.transactions = transactions
        self.settings = settings

    async def commit(
        self,
        household_id: str,
        rows: Iterable[RawRow],
        mapping: ColumnMapping,
        negatives_are_spend: Optional[bool] = None,
    ) -> ImportReport:
        """Import every row and report how many were added and skipped.

        Args:
            household_id: Household that owns the new transactions.
            rows: Raw rows keyed by the headers named in ``mapping``.
            mapping: Header assignment; validated before any row is touched.
            negatives_are_spend: Sign convention for single-amount files. Read
                from the household settings when omitted.

        Raises:
            MappingError: a required column is not mapped.
        """
        problem = mapping.problem()
        if problem:
            raise MappingError(problem)

        if negatives_are_spend is None:
            negatives_are_spend = await self.settings.get_negatives_are_spend(household_id)

        log = logger.bind(household_id=household_id)
        report = ImportReport()

        for index, row in enumerate(rows, start=1):
            try:
                prepared = prepare_row(household_id, row, mapping, negatives_are_spend)
            except (ArithmeticError, ValueError) as e:
                report.skip(SkipReason.INSERT_FAILED)
                log.warning(
                    "import_row_failed",
                    row=index,
                    reason=SkipReason.INSERT_FAILED.value,
                    error=str(e),
                )
                continue

            if isinstance(prepared, SkipReason):
                report.skip(prepared)
                log.debug("import_row_skipped", row=index, reason=prepared.value)
                continue

            try:
                await self.transactions.insert(prepared)
            except ConflictError:
                report.skip(SkipReason.DUPLICATE)
                log.debug(
                    "import_row_skipped",
                    row=index,
                    reason=SkipReason.DUPLICATE.value,
                    external_id=prepared.external_id,
                )
                continue
            except Exception as e:
                report.skip(SkipReason.INSERT_FAILED)
                log.warning(
                    "import_row_failed",
                    row=index,
                    reason=SkipReason.INSERT_FAILED.value,
                    error=str(e),
                )
                continue

            report.added += 1

        log.info(
            "import_complete",
            added=report.added,
            skipped=report.skipped,
            negatives_are_spend=negatives_are_spend,
            **{reason.value: count for reason, count in report.reasons.items()},
        )
        return report
