"""Field extraction strategies for loosely structured statement rows.

Every field is read through an ordered cascade of strategies: fixed column
positions first, then named-column aliases, then (for numeric fields) a scan
of all cells. A strategy returns ``None`` when it has nothing to offer and
the next one is tried. Supporting a new statement template means adding a
strategy to the relevant cascade.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Callable, Iterable

from fee_ledger.ledger.models import RawRow
from fee_ledger.utils.dates import parse_cell_date
from fee_ledger.utils.money import strip_to_number

SYMBOL_RE = re.compile(r"^[A-Z]{1,5}[0-9]?$")
DEFAULT_SCAN_LIMIT = 1_000_000.0

Strategy = Callable[[RawRow], Any]
Parser = Callable[[Any], Any]

DESCRIPTION_ALIASES = [
    "Description",
    "Desc",
    "Description/Details",
    "Details",
    "Transaction",
    "Transaction Type",
]
SYMBOL_ALIASES = ["Symbol", "Ticker", "Stock", "Security"]
DATE_ALIASES = [
    "Date",
    "Trade Date",
    "Settlement Date",
    "Transaction Date",
    "Trade Date/Time",
    "Settlement",
]
AMOUNT_ALIASES = [
    "Amount",
    "Fee",
    "Debit",
    "Credit",
    "Charge",
    "Cost",
    "Net Amount",
    "Total",
    "Value",
    "Price",
    "Fee Amount",
]
QUANTITY_ALIASES = ["Quantity", "Qty", "Shares", "Size", "Volume", "Amount"]
VALUE_ALIASES = ["Value", "Market Value", "Notional", "Amount", "Price", "Total Value"]
PRICE_ALIASES = ["Price", "Unit Price", "Avg Price"]
SIDE_ALIASES = ["Buy/Sell", "Side", "Action"]
COMMISSION_ALIASES = ["Commission", "Commissions"]
REBATE_ALIASES = ["ECNMaker", "ECN Maker", "Rebate", "Rebates"]
TAF_ALIASES = ["TAFFee", "TAF Fee"]
CAT_ALIASES = ["CATFee", "CAT Fee"]
TYPE_ALIASES = ["Type"]
REPLAY_AMOUNT_ALIASES = ["Amount", "Net Amount"]

SYMBOL_POSITION = 3
SIDE_POSITION = 1
QUANTITY_POSITION = 2
PRICE_POSITION = 5
REBATE_POSITION = 8
TAF_POSITION = 10
CAT_POSITION = 12
AMOUNT_POSITION = 13
TYPE_POSITION = 14
COMMISSION_POSITION = 15
DATE_POSITION = 0


def is_valid_symbol(value: Any) -> bool:
    return bool(SYMBOL_RE.match(str(value or "")))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:
        return True
    return isinstance(value, str) and not value.strip()


def cell_at(row: RawRow, index: int) -> Any:
    keys = list(row.keys())
    if len(keys) <= index:
        return None
    return row[keys[index]]


# Cell parsers. Each returns None for "absent".


def as_text(value: Any) -> str | None:
    if _is_blank(value):
        return None
    return str(value).strip()


def as_text_or_empty(value: Any) -> str:
    return as_text(value) or ""


def as_symbol(value: Any) -> str | None:
    text = as_text(value)
    if text and is_valid_symbol(text):
        return text
    return None


def as_upper_symbol(value: Any) -> str | None:
    text = as_text(value)
    return as_symbol(text.upper()) if text else None


def as_signed(value: Any) -> float | None:
    if _is_blank(value):
        return None
    number = strip_to_number(value)
    if number is None or number == 0:
        return None
    return number


def as_number(value: Any) -> float | None:
    if _is_blank(value):
        return None
    return strip_to_number(value)


def as_positive(value: Any) -> float | None:
    number = as_signed(value)
    if number is None or number <= 0:
        return None
    return number


def as_absolute(value: Any) -> float | None:
    number = as_signed(value)
    return abs(number) if number is not None else None


def as_date(value: Any) -> date | None:
    if _is_blank(value):
        return None
    return parse_cell_date(value)


# Strategy constructors.


def positional(index: int, parse: Parser) -> Strategy:
    def _strategy(row: RawRow) -> Any:
        return parse(cell_at(row, index))

    _strategy.__name__ = f"positional_{index}"
    return _strategy


def named(aliases: Iterable[str], parse: Parser) -> Strategy:
    alias_list = list(aliases)

    def _strategy(row: RawRow) -> Any:
        for alias in alias_list:
            if alias not in row or _is_blank(row[alias]):
                continue
            parsed = parse(row[alias])
            if parsed is not None:
                return parsed
        return None

    _strategy.__name__ = f"named_{'_'.join(alias_list[:2])}"
    return _strategy


def label_contains(fragments: Iterable[str], parse: Parser) -> Strategy:
    fragment_list = [fragment.lower() for fragment in fragments]

    def _strategy(row: RawRow) -> Any:
        for label, value in row.items():
            lowered = str(label).lower()
            if any(fragment in lowered for fragment in fragment_list):
                return parse(value)
        return None

    return _strategy


def scan(parse: Parser, limit: float = DEFAULT_SCAN_LIMIT) -> Strategy:
    def _strategy(row: RawRow) -> Any:
        for value in row.values():
            if _is_blank(value) or isinstance(value, (date, datetime)):
                continue
            parsed = parse(value)
            if parsed is not None and abs(parsed) < limit:
                return parsed
        return None

    _strategy.__name__ = "scan"
    return _strategy


@dataclass(frozen=True)
class FieldExtractor:
    name: str
    strategies: tuple[Strategy, ...]
    default: Any = None

    def __call__(self, row: RawRow) -> Any:
        for strategy in self.strategies:
            value = strategy(row)
            if value is not None:
                return value
        return self.default

    def with_strategy(self, strategy: Strategy, *, first: bool = False) -> FieldExtractor:
        if first:
            return replace(self, strategies=(strategy, *self.strategies))
        return replace(self, strategies=(*self.strategies, strategy))


def symbol_from_description(description: str) -> str:
    tokens = description.strip().split()
    if tokens and is_valid_symbol(tokens[-1]):
        return tokens[-1]
    return ""


@dataclass(frozen=True)
class RowExtractors:
    description: FieldExtractor
    symbol: FieldExtractor
    date: FieldExtractor
    amount: FieldExtractor
    quantity: FieldExtractor
    value: FieldExtractor
    price: FieldExtractor
    side: FieldExtractor
    commission: FieldExtractor
    rebate: FieldExtractor
    taf_fee: FieldExtractor
    cat_fee: FieldExtractor
    type_column: FieldExtractor
    replay_amount: FieldExtractor

    def symbol_for(self, row: RawRow, description: str) -> str:
        return self.symbol(row) or symbol_from_description(description)

    def misc_fees(self, row: RawRow) -> float:
        return self.taf_fee(row) + self.cat_fee(row)


def default_extractors(scan_limit: float = DEFAULT_SCAN_LIMIT) -> RowExtractors:
    return RowExtractors(
        description=FieldExtractor(
            "description",
            (
                named(DESCRIPTION_ALIASES, as_text),
                label_contains(["desc", "detail"], as_text_or_empty),
            ),
            default="",
        ),
        symbol=FieldExtractor(
            "symbol",
            (
                positional(SYMBOL_POSITION, as_symbol),
                named(SYMBOL_ALIASES, as_upper_symbol),
            ),
            default="",
        ),
        date=FieldExtractor(
            "date",
            (
                named(DATE_ALIASES, as_date),
                positional(DATE_POSITION, as_date),
            ),
        ),
        amount=FieldExtractor(
            "amount",
            (
                named(AMOUNT_ALIASES, as_signed),
                scan(as_signed, scan_limit),
            ),
            default=0.0,
        ),
        quantity=FieldExtractor(
            "quantity",
            (
                positional(QUANTITY_POSITION, as_positive),
                named(QUANTITY_ALIASES, as_positive),
                scan(as_absolute, scan_limit),
            ),
            default=0.0,
        ),
        value=FieldExtractor(
            "value",
            (
                positional(PRICE_POSITION, as_positive),
                named(VALUE_ALIASES, as_absolute),
                scan(as_absolute, scan_limit),
            ),
            default=0.0,
        ),
        price=FieldExtractor(
            "price",
            (
                positional(PRICE_POSITION, as_positive),
                named(PRICE_ALIASES, as_positive),
            ),
            default=0.0,
        ),
        side=FieldExtractor(
            "side",
            (
                positional(SIDE_POSITION, as_text),
                named(SIDE_ALIASES, as_text),
            ),
            default="",
        ),
        commission=FieldExtractor(
            "commission",
            (
                positional(COMMISSION_POSITION, as_absolute),
                named(COMMISSION_ALIASES, as_absolute),
            ),
            default=0.0,
        ),
        rebate=FieldExtractor(
            "rebate",
            (
                positional(REBATE_POSITION, as_absolute),
                named(REBATE_ALIASES, as_absolute),
            ),
            default=0.0,
        ),
        taf_fee=FieldExtractor(
            "taf_fee",
            (
                positional(TAF_POSITION, as_absolute),
                named(TAF_ALIASES, as_absolute),
            ),
            default=0.0,
        ),
        cat_fee=FieldExtractor(
            "cat_fee",
            (
                positional(CAT_POSITION, as_absolute),
                named(CAT_ALIASES, as_absolute),
            ),
            default=0.0,
        ),
        type_column=FieldExtractor(
            "type_column",
            (
                positional(TYPE_POSITION, as_text),
                named(TYPE_ALIASES, as_text),
            ),
            default="",
        ),
        replay_amount=FieldExtractor(
            "replay_amount",
            (
                positional(AMOUNT_POSITION, as_number),
                named(REPLAY_AMOUNT_ALIASES, as_number),
            ),
        ),
    )
