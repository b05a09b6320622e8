from decimal import Decimal

import pytest

from packages.import_engine.amounts import is_spend, resolve_amount
from packages.import_engine.models import ColumnMapping

SINGLE = ColumnMapping(date="Date", description="Description", amount="Amount")
SPLIT = ColumnMapping(date="Date", description="Description", debit="Debit", credit="Credit")


class TestSingleAmount:
    def test_negative_is_spend_by_default_convention(self):
        assert resolve_amount({"Amount": "-45.00"}, SINGLE, negatives_are_spend=True) == Decimal("45.00")

    def test_positive_is_not_spend_when_negatives_are_spend(self):
        assert resolve_amount({"Amount": "45.00"}, SINGLE, negatives_are_spend=True) == 0

    def test_positive_convention(self):
        assert resolve_amount({"Amount": "45.00"}, SINGLE, negatives_are_spend=False) == Decimal("45.00")
        assert resolve_amount({"Amount": "-45.00"}, SINGLE, negatives_are_spend=False) == 0

    def test_unparseable_amount_is_zero(self):
        assert resolve_amount({"Amount": "n/a"}, SINGLE, negatives_are_spend=True) == 0
        assert resolve_amount({}, SINGLE, negatives_are_spend=True) == 0


class TestDebitCredit:
    @pytest.mark.parametrize(
        "debit,credit,expected",
        [
            ("120.00", "", Decimal("120.00")),
            ("", "500.00", Decimal("0")),
            ("100", "30", Decimal("70")),
            ("30", "100", Decimal("0")),
            ("-20", "", Decimal("0")),
            ("50", "-20", Decimal("50")),
        ],
    )
    def test_debit_minus_credit_floored(self, debit, credit, expected):
        row = {"Debit": debit, "Credit": credit}
        assert resolve_amount(row, SPLIT, negatives_are_spend=True) == expected

    def test_sign_setting_does_not_apply(self):
        row = {"Debit": "12.34", "Credit": ""}
        assert resolve_amount(row, SPLIT, negatives_are_spend=False) == Decimal("12.34")

    def test_debit_credit_take_precedence_over_amount(self):
        mapping = ColumnMapping(
            date="Date", description="Description", amount="Amount", debit="Debit", credit="Credit"
        )
        row = {"Amount": "-999", "Debit": "10", "Credit": ""}
        assert resolve_amount(row, mapping, negatives_are_spend=True) == Decimal("10")


def test_is_spend():
    assert is_spend(Decimal("0.01"))
    assert not is_spend(Decimal("0"))
