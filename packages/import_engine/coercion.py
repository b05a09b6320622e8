"""Coercion of loosely typed spreadsheet cells into dates and decimals.

Both parsers return ``None`` instead of raising so that the reconciler can
skip bad rows uniformly.
"""

import math
import numbers
import re
import warnings
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import pandas as pd

# Excel stores dates as day counts from this epoch (Windows 1900 system)
EXCEL_EPOCH = datetime(1899, 12, 30)
EXCEL_SERIAL_RANGE = (40_000, 55_000)

_DMY = re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{4}|\d{2})(?!\d)")
_TIME = re.compile(r"\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?\s*(?:[ap]\.?m\.?)?", re.IGNORECASE)
_MONTH_NAME = re.compile(r"jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec", re.IGNORECASE)
_SERIAL_TEXT = re.compile(r"^\d{5}(?:\.\d+)?$")
_CURRENCY_PREFIX = re.compile(r"^([+-]?)\s*(?:[A-Za-z]{3}\s*|[$€£¥₹]\s*)")

# Anything larger is a bad cell, not a household transaction
MAX_MAGNITUDE = Decimal(10) ** 12


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT:
        return True
    return isinstance(value, str) and not value.strip()


def _has_calendar_day(text: str) -> bool:
    """True when the text names a full date, not just a time or a month."""
    rest = _TIME.sub(" ", text)
    groups = re.findall(r"\d+", rest)
    if any(len(group) >= 4 for group in groups) or len(groups) >= 3:
        return True
    return bool(_MONTH_NAME.search(rest)) and len(groups) >= 2


def _from_serial(number: float) -> Optional[str]:
    low, high = EXCEL_SERIAL_RANGE
    if low <= number <= high:
        return (EXCEL_EPOCH + timedelta(days=int(number))).date().isoformat()
    return None


def _generic_parse(text: str) -> Optional[date]:
    # pandas fills missing parts from today, which is not reproducible
    if not _has_calendar_day(text):
        return None
    with warnings.catch_warnings():
        # pandas warns when it has to guess the day/month order
        warnings.simplefilter("ignore")
        parsed = pd.to_datetime(text, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def _pattern_parse(text: str) -> Optional[date]:
    match = _DMY.search(text)
    if not match:
        return None
    first, second, year = (int(group) for group in match.groups())
    if year < 100:
        year += 2000
    for day, month in ((first, second), (second, first)):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return None


def parse_date(value: Any) -> Optional[str]:
    """Parse a cell into ``YYYY-MM-DD``; ``None`` means unparseable.

    Native dates pass straight through, as do Excel serial day numbers whether
    stored as numbers or as digit strings. Other strings go through the generic
    parser first, then a D/M/Y pattern tried day-first and then month-first.
    Text without a day, month and year (a bare time, say) is unparseable.
    """
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, numbers.Real):
        serial = _from_serial(value)
        if serial:
            return serial
        text = str(int(value)) if float(value).is_integer() else str(value)
    else:
        text = str(value).strip()
        if _SERIAL_TEXT.match(text):
            return _from_serial(float(text))

    parsed = _generic_parse(text) or _pattern_parse(text)
    return parsed.isoformat() if parsed else None


def parse_number(value: Any) -> Optional[Decimal]:
    """Parse a cell into a finite Decimal; ``None`` means not-a-number.

    Thousands separators and a leading currency marker ("$", "INR ") are ignored.
    """
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, numbers.Integral):
        number = Decimal(int(value))
    elif isinstance(value, numbers.Real):
        if not math.isfinite(value):
            return None
        number = Decimal(str(float(value)))
    else:
        text = str(value).replace(",", "").strip()
        text = _CURRENCY_PREFIX.sub(r"\1", text).strip()
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None

    if not number.is_finite() or abs(number) >= MAX_MAGNITUDE:
        return None
    return number
