from __future__ import annotations

from datetime import date, datetime

import pandas as pd

from fee_ledger.utils.dates import (
    excel_serial_to_date,
    parse_cell_date,
    parse_month_day_prefix,
    period_from_filename,
)
from fee_ledger.utils.money import round_money


def test_round_money_rounds_half_away_from_zero():
    assert round_money(2.675) == 2.68
    assert round_money(-250.105) == -250.11
    assert round_money(None) == 0.0
    assert round_money("1.005") == 1.01


def test_parse_cell_date_formats():
    assert parse_cell_date("10/12/2024") == date(2024, 10, 12)
    assert parse_cell_date("2024-10-12") == date(2024, 10, 12)
    assert parse_cell_date(datetime(2024, 10, 12, 9, 30)) == date(2024, 10, 12)
    assert parse_cell_date(pd.Timestamp("2024-10-12")) == date(2024, 10, 12)
    assert parse_cell_date(45577) == date(2024, 10, 12)
    assert parse_cell_date(125.5) is None
    assert parse_cell_date(pd.NaT) is None
    assert parse_cell_date("13/45/2024") is None
    assert parse_cell_date("") is None


def test_excel_serial_epoch():
    assert excel_serial_to_date(45292) == date(2024, 1, 1)


def test_month_day_prefix_rolls_back_a_year_when_in_future():
    reference = date(2024, 11, 1)
    assert parse_month_day_prefix("10/13 STOCK BORROW FEE GV", reference) == date(2024, 10, 13)
    assert parse_month_day_prefix("12/02 STOCK BORROW FEE GV", reference) == date(2023, 12, 2)
    assert parse_month_day_prefix("STOCK BORROW FEE GV", reference) is None
    assert parse_month_day_prefix("", reference) is None


def test_period_from_filename():
    assert period_from_filename("statement_2024-10.csv") == "2024-10"
    assert period_from_filename("fees_2024_3.xlsx") == "2024-03"
    assert period_from_filename("statement.csv", today=date(2025, 1, 20)) == "2025-01"


def test_loggers_live_under_package_namespace():
    from fee_ledger.utils.logging import get_logger

    assert get_logger("dev_cli").name == "fee_ledger.dev_cli"
    assert get_logger("fee_ledger.ingest.trace").name == "fee_ledger.ingest.trace"


def test_large_numbers_are_not_excel_dates():
    assert parse_cell_date("50012345") is None
    assert parse_cell_date(50012345) is None
    assert parse_cell_date("inf") is None
    assert parse_cell_date(2958465) == date(9999, 12, 31)
    assert parse_cell_date(2958466) is None
