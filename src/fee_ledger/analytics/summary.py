from __future__ import annotations

from typing import Iterable

from fee_ledger.ledger.models import COST_FIELDS, Position, StatementSummary
from fee_ledger.utils.money import round_money


def field_total(positions: Iterable[Position], name: str) -> float:
    return sum(getattr(position, name) for position in positions)


def fee_totals(positions: list[Position]) -> dict[str, float]:
    return {
        "total_overnight_fees": round_money(field_total(positions, "overnight_fee")),
        "total_locate_costs": round_money(field_total(positions, "locate_cost")),
        "total_market_data_fees": round_money(field_total(positions, "market_data_fee")),
        "total_interest_fees": round_money(field_total(positions, "interest_fee")),
        "total_other_fees": round_money(field_total(positions, "other_fees")),
        "total_commissions": round_money(field_total(positions, "commissions")),
        "total_rebates": round_money(field_total(positions, "rebates")),
        "total_misc_fees": round_money(field_total(positions, "misc_fees")),
    }


def net_fees(total_fees: float, total_rebates: float, total_interest: float) -> float:
    return total_fees - total_rebates - total_interest


def fee_to_profit_ratio(fees_net: float, total_pnl: float) -> float:
    if total_pnl <= 0:
        return 0.0
    return fees_net / total_pnl * 100


def calculate_summary(positions: list[Position]) -> StatementSummary:
    total_fees = sum(position.cost_total() for position in positions)
    total_overnight = field_total(positions, "overnight_fee")
    total_rebates = field_total(positions, "rebates")
    total_interest = field_total(positions, "interest_fee")
    total_pnl = sum(position.pnl or 0.0 for position in positions)

    days_analyzed = len({position.date for position in positions}) or 1

    symbol_fees: dict[str, float] = {}
    for position in positions:
        running = symbol_fees.get(position.symbol, 0.0)
        symbol_fees[position.symbol] = round_money(
            running + sum(getattr(position, name) for name in COST_FIELDS)
        )

    most_expensive_symbol = ""
    most_expensive_fee = 0.0
    for symbol, fee in symbol_fees.items():
        if fee > most_expensive_fee:
            most_expensive_symbol = symbol
            most_expensive_fee = fee

    fees_net = net_fees(total_fees, total_rebates, total_interest)
    return StatementSummary(
        total_fees=round_money(total_fees),
        avg_daily_overnight_cost=round_money(total_overnight / days_analyzed),
        most_expensive_symbol=most_expensive_symbol,
        most_expensive_fee=round_money(most_expensive_fee),
        days_analyzed=days_analyzed,
        total_positions=len(positions),
        total_pnl=round_money(total_pnl),
        net_pnl=round_money(total_pnl - fees_net),
        fee_to_profit_ratio=round_money(fee_to_profit_ratio(fees_net, total_pnl)),
    )
