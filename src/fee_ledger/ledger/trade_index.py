"""Per-symbol trade-date index built before any fee row is aggregated.

Fees post on a billing date; the index lets each fee be re-keyed onto the
most recent trade date for its symbol that is on or before that billing date.
"""

from __future__ import annotations

from bisect import bisect_right
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from fee_ledger.ingest.classifier import classify_description
from fee_ledger.ingest.extractors import RowExtractors
from fee_ledger.ingest.trace import TraceEvent, TraceSink, null_sink
from fee_ledger.ledger.models import RawRow, TradeIndexEntry, TransactionCategory
from fee_ledger.utils.dates import parse_month_day_prefix


@dataclass(frozen=True)
class TradeDay:
    quantity: float
    value: float


def resolve_row_date(
    row: RawRow,
    description: str,
    extractors: RowExtractors,
    reference_date: date,
) -> date:
    """Column date, then a leading ``MM/DD`` in the description, then the reference day."""
    return (
        extractors.date(row)
        or parse_month_day_prefix(description, reference_date)
        or reference_date
    )


class TradeDateIndex:
    def __init__(self) -> None:
        self._entries: dict[str, list[TradeIndexEntry]] = defaultdict(list)
        self._dates: dict[str, list[date]] = {}

    def add(self, symbol: str, entry: TradeIndexEntry) -> None:
        self._entries[symbol].append(entry)
        self._dates.pop(symbol, None)

    def symbols(self) -> list[str]:
        return list(self._entries)

    def entries_for(self, symbol: str) -> list[TradeIndexEntry]:
        # sorted() is stable, so same-day trades keep statement order.
        return sorted(self._entries.get(symbol, []), key=lambda entry: entry.date)

    def dates_for(self, symbol: str) -> list[date]:
        cached = self._dates.get(symbol)
        if cached is None:
            cached = sorted({entry.date for entry in self._entries.get(symbol, [])})
            self._dates[symbol] = cached
        return cached

    def latest_trade_on_or_before(self, symbol: str, billing_date: date) -> date | None:
        dates = self.dates_for(symbol)
        position = bisect_right(dates, billing_date)
        if position == 0:
            return None
        return dates[position - 1]

    def align(self, symbol: str, billing_date: date) -> date:
        """Date a fee for ``symbol`` should be booked on.

        Falls back to the billing date when the symbol has no trade on or
        before it.
        """
        return self.latest_trade_on_or_before(symbol, billing_date) or billing_date

    def day_totals(self, symbol: str, day: date) -> TradeDay | None:
        matches = [entry for entry in self._entries.get(symbol, []) if entry.date == day]
        if not matches:
            return None
        return TradeDay(
            quantity=sum(entry.quantity for entry in matches),
            value=sum(entry.value for entry in matches),
        )

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())


def build_trade_index(
    rows: Iterable[RawRow],
    extractors: RowExtractors,
    reference_date: date,
    trace: TraceSink = null_sink,
) -> TradeDateIndex:
    index = TradeDateIndex()
    for row_index, row in enumerate(rows):
        description = extractors.description(row)
        type_value = extractors.type_column(row)
        classification = classify_description(description, type_value)
        if classification.category is not TransactionCategory.TRADING:
            continue

        symbol = extractors.symbol_for(row, description)
        if not symbol:
            trace(TraceEvent("index", row_index, "trading", "missing_symbol"))
            continue

        quantity = extractors.quantity(row)
        value = extractors.value(row)
        if not quantity and not value:
            trace(TraceEvent("index", row_index, "trading", "no_trade_size", {"symbol": symbol}))
            continue

        entry = TradeIndexEntry(
            date=resolve_row_date(row, description, extractors, reference_date),
            amount=extractors.replay_amount(row),
            quantity=quantity,
            price=extractors.price(row),
            value=value,
            side=extractors.side(row),
        )
        index.add(symbol, entry)
        trace(
            TraceEvent(
                "index",
                row_index,
                "trading",
                fields={"symbol": symbol, "date": entry.date.isoformat(), "quantity": quantity},
            )
        )
    return index
