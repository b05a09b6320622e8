"""Spend amount resolution from debit/credit or single-amount columns."""

from decimal import Decimal
from typing import Any, Optional

from .coercion import parse_number
from .models import ColumnMapping, RawRow

ZERO = Decimal("0")


def _non_negative(value: Optional[Decimal]) -> Decimal:
    return max(ZERO, value) if value is not None else ZERO


def _cell(row: RawRow, header: Optional[str]) -> Any:
    return row.get(header) if header else None


def resolve_amount(row: RawRow, mapping: ColumnMapping, negatives_are_spend: bool) -> Decimal:
    """Return the spend magnitude of a row, or zero when it is not spend.

    With debit and credit columns the result is debit minus credit, floored at
    zero. With a single amount column the household's sign convention decides
    which sign counts as spend; the other sign resolves to zero.
    """
    if mapping.uses_debit_credit:
        debit = _non_negative(parse_number(_cell(row, mapping.debit)))
        credit = _non_negative(parse_number(_cell(row, mapping.credit)))
        return max(ZERO, debit - credit)

    if mapping.amount:
        amount = parse_number(_cell(row, mapping.amount))
        if amount is None:
            return ZERO
        return _non_negative(-amount if negatives_are_spend else amount)

    return ZERO


def is_spend(amount: Decimal) -> bool:
    return amount > ZERO
