from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from fee_ledger.analytics.history import StatementHistory
from fee_ledger.analytics.views import filter_by_date_range, filter_by_tickers
from fee_ledger.config.settings import get_settings
from fee_ledger.ingest.errors import StatementParseError
from fee_ledger.ingest.statement_parser import parse_statement
from fee_ledger.utils.logging import configure_logging, get_logger

logger = get_logger("dev_cli")


def _print_statement(statement) -> None:
    summary = statement.summary
    print(f"File:          {statement.file_name}")
    print(f"Period:        {statement.period}")
    print(f"Positions:     {len(statement.positions)}")
    print(f"Overnight:     {statement.total_overnight_fees:,.2f}")
    print(f"Locate:        {statement.total_locate_costs:,.2f}")
    print(f"Market data:   {statement.total_market_data_fees:,.2f}")
    print(f"Interest:      {statement.total_interest_fees:,.2f}")
    print(f"Commissions:   {statement.total_commissions:,.2f}")
    print(f"Rebates:       {statement.total_rebates:,.2f}")
    print(f"Misc (TAF/CAT):{statement.total_misc_fees:,.2f}")
    if summary is None:
        return
    print(f"Total fees:    {summary.total_fees:,.2f}")
    print(f"Avg daily:     {summary.avg_daily_overnight_cost:,.2f} over {summary.days_analyzed} days")
    if summary.most_expensive_symbol:
        print(f"Most costly:   {summary.most_expensive_symbol} ({summary.most_expensive_fee:,.2f})")
    print(f"Total P&L:     {summary.total_pnl:,.2f}")
    print(f"Net P&L:       {summary.net_pnl:,.2f}")
    print(f"Fee/profit:    {summary.fee_to_profit_ratio:.2f}%")


def _cmd_parse(args: argparse.Namespace) -> int:
    statement = parse_statement(Path(args.file))
    if args.json:
        print(json.dumps(statement.to_dict(), indent=2))
    else:
        _print_statement(statement)
    return 0


def _cmd_positions(args: argparse.Namespace) -> int:
    statement = parse_statement(Path(args.file))
    positions = filter_by_tickers(statement.positions, args.ticker)
    positions = filter_by_date_range(
        positions,
        start=date.fromisoformat(args.start) if args.start else None,
        end=date.fromisoformat(args.end) if args.end else None,
    )
    for position in positions:
        fees = position.cost_total()
        pnl = "" if position.pnl is None else f"{position.pnl:,.2f}"
        print(
            f"{position.date.isoformat()}  {position.symbol:<6} "
            f"{position.transaction_type.value:<10} fees={fees:,.2f} pnl={pnl}"
        )
    return 0


def _cmd_history(args: argparse.Namespace) -> int:
    history = StatementHistory()
    for file_name in args.files:
        history.append(parse_statement(Path(file_name)))
    print(f"{'Period':<8} {'Total':>12} {'Overnight':>12} {'Locate':>12} {'Avg daily':>10} {'Days':>5}")
    for row in history.comparison_rows():
        print(
            f"{row.period:<8} {row.total_fees:>12,.2f} {row.overnight_fees:>12,.2f} "
            f"{row.locate_costs:>12,.2f} {row.avg_daily:>10,.2f} {row.days_analyzed:>5}"
        )
    if len(history) > 1:
        print(f"Change vs previous period: {history.fee_change_pct():+.1f}%")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Broker fee ledger developer CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sp_parse = subparsers.add_parser("parse", help="Parse one statement and print totals")
    sp_parse.add_argument("file")
    sp_parse.add_argument("--json", action="store_true", help="Print the full statement as JSON")
    sp_parse.set_defaults(func=_cmd_parse)

    sp_positions = subparsers.add_parser("positions", help="List reconciled positions")
    sp_positions.add_argument("file")
    sp_positions.add_argument("--ticker", action="append", default=[])
    sp_positions.add_argument("--start", help="First date to include (YYYY-MM-DD)")
    sp_positions.add_argument("--end", help="Last date to include (YYYY-MM-DD)")
    sp_positions.set_defaults(func=_cmd_positions)

    sp_history = subparsers.add_parser("history", help="Compare several statements by period")
    sp_history.add_argument("files", nargs="+")
    sp_history.set_defaults(func=_cmd_history)

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv(dotenv_path=REPO_ROOT / ".env")
    settings = get_settings()
    configure_logging(settings.log_level)
    parser = build_parser()
    args = parser.parse_args(argv)
    logger.debug("Running %s (env=%s)", args.command, settings.app_env)
    try:
        return int(args.func(args))
    except StatementParseError as exc:
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
