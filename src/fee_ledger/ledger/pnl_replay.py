"""Realized P&L by netting signed trade amounts per symbol.

This is not lot matching: every buy (negative) and sell (positive) amount of
a symbol over the statement window is summed. The figure is only a realized
profit when the symbol's position is flat by the end of the window.
"""

from __future__ import annotations

from fee_ledger.ingest.trace import TraceEvent, TraceSink, null_sink
from fee_ledger.ledger.aggregation import PositionTable
from fee_ledger.ledger.models import TradeIndexEntry
from fee_ledger.ledger.trade_index import TradeDateIndex
from fee_ledger.utils.money import round_money


def is_replayable(entry: TradeIndexEntry) -> bool:
    return entry.quantity > 0 and entry.price > 0 and entry.amount is not None


def replay_symbol_pnl(
    index: TradeDateIndex,
    trace: TraceSink = null_sink,
) -> dict[str, float]:
    results: dict[str, float] = {}
    for symbol in index.symbols():
        trades = [entry for entry in index.entries_for(symbol) if is_replayable(entry)]
        if not trades:
            continue
        total = 0.0
        for entry in trades:
            total += float(entry.amount)
        results[symbol] = round_money(total)
        trace(
            TraceEvent(
                "replay",
                -1,
                "trading",
                fields={"symbol": symbol, "trades": len(trades), "pnl": results[symbol]},
            )
        )
    return results


def attach_replayed_pnl(table: PositionTable, replayed: dict[str, float]) -> int:
    """Set each symbol's replayed P&L on its chronologically earliest Position.

    Returns the number of positions updated.
    """
    updated = 0
    for symbol, pnl in replayed.items():
        position = table.earliest_for(symbol)
        if position is None:
            continue
        position.pnl = pnl
        updated += 1
    return updated
