"""Records produced by the statement reconciliation pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

RawRow = dict[str, Any]

FEE_FIELDS = (
    "overnight_fee",
    "locate_cost",
    "market_data_fee",
    "interest_fee",
    "other_fees",
    "commissions",
    "rebates",
    "misc_fees",
)

# Fee fields that count as cost; interest and rebates are income.
COST_FIELDS = (
    "overnight_fee",
    "locate_cost",
    "market_data_fee",
    "other_fees",
    "commissions",
    "misc_fees",
)


class TransactionCategory(str, Enum):
    OVERNIGHT = "overnight"
    LOCATE = "locate"
    MARKET_DATA = "marketData"
    INTEREST = "interest"
    TRADING = "trading"

    @property
    def is_fee(self) -> bool:
        return self is not TransactionCategory.TRADING

    @property
    def fee_field(self) -> str | None:
        return _CATEGORY_FEE_FIELD.get(self)


_CATEGORY_FEE_FIELD = {
    TransactionCategory.OVERNIGHT: "overnight_fee",
    TransactionCategory.LOCATE: "locate_cost",
    TransactionCategory.MARKET_DATA: "market_data_fee",
    TransactionCategory.INTEREST: "interest_fee",
}


@dataclass(slots=True)
class Position:
    symbol: str
    date: date
    transaction_type: TransactionCategory
    quantity: float = 0.0
    value: float = 0.0
    overnight_fee: float = 0.0
    locate_cost: float = 0.0
    market_data_fee: float = 0.0
    interest_fee: float = 0.0
    other_fees: float = 0.0
    commissions: float = 0.0
    rebates: float = 0.0
    misc_fees: float = 0.0
    pnl: float | None = None
    buy_sell: str | None = None
    price: float | None = None

    @property
    def key(self) -> tuple[str, date]:
        return (self.symbol, self.date)

    def cost_total(self) -> float:
        return sum(getattr(self, name) for name in COST_FIELDS)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["date"] = self.date.isoformat()
        payload["transaction_type"] = self.transaction_type.value
        return payload


@dataclass(frozen=True, slots=True)
class TradeIndexEntry:
    date: date
    amount: float | None
    quantity: float
    price: float
    value: float
    side: str


@dataclass(frozen=True, slots=True)
class StatementSummary:
    total_fees: float
    avg_daily_overnight_cost: float
    most_expensive_symbol: str
    most_expensive_fee: float
    days_analyzed: int
    total_positions: int
    total_pnl: float
    net_pnl: float
    fee_to_profit_ratio: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StatementData:
    file_name: str
    upload_date: datetime
    period: str
    total_overnight_fees: float
    total_locate_costs: float
    total_market_data_fees: float
    total_interest_fees: float
    total_other_fees: float
    total_commissions: float
    total_rebates: float
    total_misc_fees: float
    positions: list[Position] = field(default_factory=list)
    summary: StatementSummary | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "upload_date": self.upload_date.isoformat(timespec="seconds"),
            "period": self.period,
            "total_overnight_fees": self.total_overnight_fees,
            "total_locate_costs": self.total_locate_costs,
            "total_market_data_fees": self.total_market_data_fees,
            "total_interest_fees": self.total_interest_fees,
            "total_other_fees": self.total_other_fees,
            "total_commissions": self.total_commissions,
            "total_rebates": self.total_rebates,
            "total_misc_fees": self.total_misc_fees,
            "positions": [position.to_dict() for position in self.positions],
            "summary": self.summary.to_dict() if self.summary else None,
        }
