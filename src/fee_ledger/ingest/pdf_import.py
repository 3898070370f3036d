"""Degraded-mode fee scraping from PDF statement text.

PDF statements carry no usable column structure, so only borrow and locate
charges are recovered: symbol, date and amount per matching line.
"""

from __future__ import annotations

import io
import re
from datetime import date
from typing import Iterable

import pdfplumber

from fee_ledger.ingest.errors import StatementDecodeError
from fee_ledger.ledger.models import Position, TransactionCategory
from fee_ledger.utils.dates import parse_cell_date

_DATE_PATTERN = re.compile(
    r"\b(\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|\d{4}[-/]\d{1,2}[-/]\d{1,2})\b"
)
_MONEY_PATTERN = re.compile(r"\$?\s*(\d{1,3}(?:,\d{3})*(?:\.\d{2})?)")
_SYMBOL_PATTERN = re.compile(r"\b[A-Z]{1,5}\b")
_BORROW_PATTERN = re.compile(r"borrow|htb|hard.to.borrow|short.fee", re.IGNORECASE)
_LOCATE_PATTERN = re.compile(r"locate|location.fee", re.IGNORECASE)

# Upper-case words that show up on fee lines but are never tickers.
_STATEMENT_WORDS = {
    "AND",
    "BAL",
    "BORROW",
    "C",
    "CASH",
    "CHG",
    "CREDIT",
    "DAYS",
    "DEBIT",
    "FEE",
    "FEES",
    "FOR",
    "HARD",
    "HTB",
    "LOC",
    "LOCATE",
    "OF",
    "SHORT",
    "STOCK",
    "THE",
    "TO",
    "TOTAL",
    "USD",
}


def extract_pdf_text_pages(payload: bytes) -> list[str]:
    pages: list[str] = []
    try:
        with pdfplumber.open(io.BytesIO(payload)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text() or ""
                if page_text:
                    pages.append(page_text)
    except Exception as exc:
        raise StatementDecodeError(f"PDF parse error: {exc}") from exc
    return pages


def _symbol_in(line: str) -> str:
    candidates = [
        token for token in _SYMBOL_PATTERN.findall(line) if token not in _STATEMENT_WORDS
    ]
    return candidates[-1] if candidates else ""


def _first_amount(line: str) -> float | None:
    without_dates = _DATE_PATTERN.sub(" ", line)
    for match in _MONEY_PATTERN.finditer(without_dates):
        try:
            amount = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        if amount > 0:
            return amount
    return None


def scrape_fee_positions(text_pages: Iterable[str], reference_date: date) -> list[Position]:
    lines = [line.strip() for page in text_pages for line in str(page or "").splitlines()]
    positions: dict[tuple[str, date], Position] = {}
    current_date = reference_date

    for line_index, line in enumerate(lines):
        if not line:
            continue

        date_match = _DATE_PATTERN.search(line)
        if date_match:
            current_date = parse_cell_date(date_match.group(1)) or current_date

        is_borrow = bool(_BORROW_PATTERN.search(line))
        is_locate = bool(_LOCATE_PATTERN.search(line))
        if not (is_borrow or is_locate):
            continue

        symbol = _symbol_in(line)
        if not symbol:
            for previous in reversed(lines[max(0, line_index - 3):line_index]):
                symbol = _symbol_in(previous)
                if symbol:
                    break
        amount = _first_amount(line)
        if not symbol or amount is None:
            continue

        key = (symbol, current_date)
        position = positions.get(key)
        if position is None:
            position = Position(
                symbol=symbol,
                date=current_date,
                transaction_type=(
                    TransactionCategory.OVERNIGHT if is_borrow else TransactionCategory.LOCATE
                ),
            )
            positions[key] = position
        if is_borrow:
            position.overnight_fee += amount
        if is_locate:
            position.locate_cost += amount

    return list(positions.values())
