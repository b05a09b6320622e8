"""Content fingerprint used as the de-duplication key for imported rows.

The hash is a 32-bit signed rolling hash (h = h * 31 + code) over the UTF-16
code units of ``date|cents|MERCHANT|DESCRIPTION``. It is not collision
resistant; a collision only ever causes a genuine row to be skipped as a
duplicate.
"""

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse whitespace, trim and upper-case."""
    return _WHITESPACE.sub(" ", text or "").strip().upper()


def to_cents(amount: Union[Decimal, float, int]) -> int:
    cents = abs(Decimal(str(amount))) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _rolling_hash(text: str) -> int:
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code) & 0xFFFFFFFF
    return h - 0x1_0000_0000 if h & 0x8000_0000 else h


def fingerprint(iso_date: str, amount: Union[Decimal, float, int], merchant: str, description: str) -> str:
    """Stable identifier for (date, amount, merchant, description)."""
    base = "|".join(
        [iso_date[:10], str(to_cents(amount)), clean_text(merchant), clean_text(description)]
    )
    return str(_rolling_hash(base))
