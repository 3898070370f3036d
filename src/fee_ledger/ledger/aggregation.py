from __future__ import annotations

from datetime import date
from typing import Iterable, Iterator

from fee_ledger.ingest.classifier import amount_skip_reason, classify_description
from fee_ledger.ingest.extractors import RowExtractors, is_valid_symbol
from fee_ledger.ingest.trace import TraceEvent, TraceSink, null_sink
from fee_ledger.ledger.models import FEE_FIELDS, Position, RawRow, TransactionCategory
from fee_ledger.ledger.trade_index import TradeDateIndex, resolve_row_date
from fee_ledger.utils.money import round_money


class PositionTable:
    """One Position per (symbol, date), kept in first-insertion order."""

    def __init__(self) -> None:
        self._positions: dict[tuple[str, date], Position] = {}

    def get(self, symbol: str, day: date) -> Position | None:
        return self._positions.get((symbol, day))

    def add(self, position: Position) -> Position:
        if position.key in self._positions:
            raise ValueError(f"Duplicate position for {position.symbol} on {position.date}")
        self._positions[position.key] = position
        return position

    def earliest_for(self, symbol: str) -> Position | None:
        candidates = [position for position in self._positions.values() if position.symbol == symbol]
        if not candidates:
            return None
        return min(candidates, key=lambda position: position.date)

    def positions(self) -> list[Position]:
        return list(self._positions.values())

    def __iter__(self) -> Iterator[Position]:
        return iter(self._positions.values())

    def __len__(self) -> int:
        return len(self._positions)


def _new_position(
    symbol: str,
    day: date,
    category: TransactionCategory,
    index: TradeDateIndex,
) -> Position:
    trade_day = index.day_totals(symbol, day)
    return Position(
        symbol=symbol,
        date=day,
        transaction_type=category,
        quantity=trade_day.quantity if trade_day else 0.0,
        value=trade_day.value if trade_day else 0.0,
        pnl=0.0 if category is TransactionCategory.TRADING else None,
    )


def aggregate_positions(
    rows: Iterable[RawRow],
    index: TradeDateIndex,
    extractors: RowExtractors,
    reference_date: date,
    *,
    interest_symbol: str = "CASH",
    trace: TraceSink = null_sink,
) -> PositionTable:
    table = PositionTable()
    for row_index, row in enumerate(rows):
        description = extractors.description(row)
        classification = classify_description(description, extractors.type_column(row))
        if classification.discarded:
            trace(TraceEvent("aggregate", row_index, None, classification.skip_reason))
            continue
        category = classification.category

        symbol = extractors.symbol_for(row, description)
        if category is TransactionCategory.INTEREST and not is_valid_symbol(symbol):
            symbol = interest_symbol
        if not symbol:
            trace(TraceEvent("aggregate", row_index, category.value, "missing_symbol"))
            continue

        amount = extractors.amount(row)
        reason = amount_skip_reason(category, amount)
        if reason:
            trace(
                TraceEvent(
                    "aggregate",
                    row_index,
                    category.value,
                    reason,
                    {"symbol": symbol, "amount": amount},
                )
            )
            continue

        billing_date = resolve_row_date(row, description, extractors, reference_date)
        target_date = index.align(symbol, billing_date) if category.is_fee else billing_date

        position = table.get(symbol, target_date)
        if position is None:
            position = table.add(_new_position(symbol, target_date, category, index))
            if category is TransactionCategory.TRADING:
                position.buy_sell = extractors.side(row)
                position.price = extractors.price(row)

        fee_field = category.fee_field
        if fee_field:
            # Ledger debits are negative; accumulators hold magnitudes.
            setattr(position, fee_field, getattr(position, fee_field) + abs(amount))
        position.commissions += extractors.commission(row)
        position.rebates += extractors.rebate(row)
        position.misc_fees += extractors.misc_fees(row)

        trace(
            TraceEvent(
                "aggregate",
                row_index,
                category.value,
                fields={
                    "symbol": symbol,
                    "billing_date": billing_date.isoformat(),
                    "date": target_date.isoformat(),
                    "amount": amount,
                },
            )
        )
    return table


def finalize_positions(positions: Iterable[Position]) -> list[Position]:
    finalized = []
    for position in positions:
        for name in FEE_FIELDS:
            setattr(position, name, round_money(getattr(position, name)))
        if position.pnl is not None:
            position.pnl = round_money(position.pnl)
        finalized.append(position)
    return finalized
