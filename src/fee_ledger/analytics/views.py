from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from fee_ledger.ledger.models import Position, TransactionCategory
from fee_ledger.utils.money import round_money


@dataclass(frozen=True)
class DailyFees:
    date: date
    overnight_fee: float
    locate_cost: float
    total: float


@dataclass
class SymbolFees:
    symbol: str
    total_fee: float = 0.0
    total_pnl: float = 0.0
    overnight_fee: float = 0.0
    locate_cost: float = 0.0
    commissions: float = 0.0
    rebates: float = 0.0
    misc_fees: float = 0.0
    count: int = 0
    trading_count: int = 0
    entries: list[Position] = field(default_factory=list)


def filter_by_tickers(positions: Iterable[Position], tickers: Iterable[str] | None) -> list[Position]:
    selected = {ticker.strip().upper() for ticker in tickers or [] if ticker and ticker.strip()}
    if not selected:
        return list(positions)
    return [position for position in positions if position.symbol in selected]


def filter_by_date_range(
    positions: Iterable[Position],
    start: date | None = None,
    end: date | None = None,
) -> list[Position]:
    out = []
    for position in positions:
        if start is not None and position.date < start:
            continue
        if end is not None and position.date > end:
            continue
        out.append(position)
    return out


def available_tickers(positions: Iterable[Position]) -> list[str]:
    return sorted({position.symbol for position in positions})


def daily_fee_series(positions: Iterable[Position]) -> list[DailyFees]:
    overnight: dict[date, float] = defaultdict(float)
    locate: dict[date, float] = defaultdict(float)
    for position in positions:
        overnight[position.date] += position.overnight_fee
        locate[position.date] += position.locate_cost
    return [
        DailyFees(
            date=day,
            overnight_fee=round_money(overnight[day]),
            locate_cost=round_money(locate[day]),
            total=round_money(overnight[day] + locate[day]),
        )
        for day in sorted(overnight)
    ]


def top_expensive_symbols(positions: Iterable[Position], limit: int = 10) -> list[SymbolFees]:
    by_symbol: dict[str, SymbolFees] = {}
    for position in positions:
        bucket = by_symbol.setdefault(position.symbol, SymbolFees(symbol=position.symbol))
        entry_fee = (
            position.overnight_fee + position.locate_cost + position.commissions + position.misc_fees
        )
        bucket.total_fee = round_money(bucket.total_fee + entry_fee)
        bucket.total_pnl = round_money(bucket.total_pnl + (position.pnl or 0.0))
        bucket.overnight_fee = round_money(bucket.overnight_fee + position.overnight_fee)
        bucket.locate_cost = round_money(bucket.locate_cost + position.locate_cost)
        bucket.commissions = round_money(bucket.commissions + position.commissions)
        bucket.rebates = round_money(bucket.rebates + position.rebates)
        bucket.misc_fees = round_money(bucket.misc_fees + position.misc_fees)
        bucket.count += 1
        if position.transaction_type is TransactionCategory.TRADING:
            bucket.trading_count += 1
        bucket.entries.append(position)

    ranked = list(by_symbol.values())
    # Fees within a cent of each other rank by absolute P&L.
    ranked.sort(key=lambda item: (-round(item.total_fee, 2), -abs(item.total_pnl)))
    for item in ranked:
        item.entries.sort(key=lambda position: position.date, reverse=True)
    return ranked[:limit]
