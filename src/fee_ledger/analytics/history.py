"""In-memory list of parsed statements for period-over-period comparison."""

from __future__ import annotations

from dataclasses import dataclass

from fee_ledger.ledger.models import StatementData
from fee_ledger.utils.money import round_money


@dataclass(frozen=True)
class ComparisonRow:
    period: str
    file_name: str
    total_fees: float
    overnight_fees: float
    locate_costs: float
    avg_daily: float
    days_analyzed: int


class StatementHistory:
    def __init__(self) -> None:
        self._statements: list[StatementData] = []

    def append(self, statement: StatementData) -> None:
        self._statements.append(statement)

    def clear(self) -> None:
        self._statements.clear()

    def __len__(self) -> int:
        return len(self._statements)

    def statements(self) -> list[StatementData]:
        """Statements in the order they were parsed."""
        return list(self._statements)

    def chronological(self) -> list[StatementData]:
        return sorted(self._statements, key=lambda statement: statement.period)

    def comparison_rows(self) -> list[ComparisonRow]:
        rows = []
        for statement in self.chronological():
            summary = statement.summary
            rows.append(
                ComparisonRow(
                    period=statement.period,
                    file_name=statement.file_name,
                    total_fees=round_money(summary.total_fees if summary else 0.0),
                    overnight_fees=round_money(statement.total_overnight_fees),
                    locate_costs=round_money(statement.total_locate_costs),
                    avg_daily=round_money(summary.avg_daily_overnight_cost if summary else 0.0),
                    days_analyzed=summary.days_analyzed if summary else 0,
                )
            )
        return rows

    def fee_change_pct(self) -> float:
        """Latest period's total-fee change against the one before, in percent."""
        rows = self.comparison_rows()
        if len(rows) < 2:
            return 0.0
        previous, current = rows[-2], rows[-1]
        if previous.total_fees == 0:
            return 0.0
        return (current.total_fees - previous.total_fees) / previous.total_fees * 100
