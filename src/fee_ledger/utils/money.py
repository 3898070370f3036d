"""Money helpers for deterministic rounding and parsing."""

from __future__ import annotations

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any


CENT = Decimal("0.01")
_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")


def to_decimal(value: float | int | str | Decimal | None) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: float | int | str | Decimal | None) -> float:
    """Round to cents, halves away from zero."""
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def strip_to_number(value: Any) -> float | None:
    """Parse a ledger cell after dropping everything but digits, '.' and '-'.

    Returns None for empty or unparsable cells. Zero is returned as 0.0 so
    callers can decide whether zero means absent.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return None if number != number else number
    text = _NON_NUMERIC_RE.sub("", str(value))
    if not text:
        return None
    match = re.match(r"-?\d*\.?\d+|-?\d+\.?", text)
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None
