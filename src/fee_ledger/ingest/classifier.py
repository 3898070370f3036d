"""Assign statement rows to a transaction category from their free text."""

from __future__ import annotations

from dataclasses import dataclass

from fee_ledger.ledger.models import TransactionCategory

CASH_TYPE = "Cash"

SKIP_NO_DESCRIPTION = "no_description"
SKIP_SUMMARY_ROW = "summary_row"
SKIP_MARK_TO_MARKET = "mark_to_market"
SKIP_CASH_MOVEMENT = "cash_movement"
SKIP_ACH_TRANSFER = "ach_transfer"
SKIP_ZERO_AMOUNT = "zero_amount"
SKIP_NEGATIVE_TRADE = "negative_trade_amount"


@dataclass(frozen=True)
class Classification:
    category: TransactionCategory | None
    skip_reason: str | None = None

    @property
    def discarded(self) -> bool:
        return self.category is None


def _discard(reason: str) -> Classification:
    return Classification(category=None, skip_reason=reason)


def is_interest_description(description: str) -> bool:
    # e.g. "2.50000%16 DAYS,BAL=   $32583"
    return "%" in description and "DAYS" in description and "BAL" in description


def is_cash_type(type_value: str | None) -> bool:
    return str(type_value or "").strip() == CASH_TYPE


def classify_description(description: str, type_value: str | None = None) -> Classification:
    """Categorize a row from its description and type column.

    First matching rule wins. Interest rows survive the ``Cash`` type filter;
    every other ``Cash`` row is a cash movement and is discarded.
    """
    text = (description or "").strip()
    if not text:
        return _discard(SKIP_NO_DESCRIPTION)
    if "Total" in text or "Summary" in text:
        return _discard(SKIP_SUMMARY_ROW)

    if "MARK TO MARKET" in text:
        return _discard(SKIP_MARK_TO_MARKET)
    if is_interest_description(text):
        return Classification(TransactionCategory.INTEREST)
    if is_cash_type(type_value):
        if "ACH" in text:
            return _discard(SKIP_ACH_TRANSFER)
        return _discard(SKIP_CASH_MOVEMENT)
    if "STOCK BORROW FEE" in text:
        # "10/13 C STOCK BORROW FEE GV" is a locate charge.
        if "C STOCK BORROW FEE" in text:
            return Classification(TransactionCategory.LOCATE)
        return Classification(TransactionCategory.OVERNIGHT)
    if "MARKET DATA" in text:
        return Classification(TransactionCategory.MARKET_DATA)
    return Classification(TransactionCategory.TRADING)


def amount_skip_reason(category: TransactionCategory, amount: float) -> str | None:
    if not amount:
        return SKIP_ZERO_AMOUNT
    if category is TransactionCategory.TRADING and amount < 0:
        return SKIP_NEGATIVE_TRADE
    return None
