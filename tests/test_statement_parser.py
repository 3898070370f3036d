from __future__ import annotations

import io
from dataclasses import replace
from datetime import date

import pytest

from fee_ledger.ingest.errors import (
    NoStatementDataError,
    StatementDecodeError,
    StatementParseError,
    UnsupportedFormatError,
)
from fee_ledger.ingest.extractors import default_extractors
from fee_ledger.ingest.readers import read_csv_rows
from fee_ledger.ingest.statement_parser import parse_rows, parse_statement
from fee_ledger.ingest.trace import RecordingTraceSink
from fee_ledger.ledger.models import TransactionCategory

from conftest import BROKER_COLUMNS


@pytest.fixture
def borrow_then_buy(fee_row, trade_row):
    return [
        fee_row("10/13/2024", "10/13 STOCK BORROW FEE GV", "-15.00"),
        trade_row("10/12/2024", "GV", "B", "100", "5.00", "-500.00"),
    ]


def test_borrow_fee_aligns_to_prior_buy_and_carries_replayed_pnl(
    borrow_then_buy, csv_bytes, now, settings
):
    statement = parse_statement(csv_bytes(borrow_then_buy), "statement.csv", now=now, settings=settings)

    assert len(statement.positions) == 1
    position = statement.positions[0]
    assert position.symbol == "GV"
    assert position.date == date(2024, 10, 12)
    assert position.transaction_type is TransactionCategory.OVERNIGHT
    assert position.overnight_fee == 15.0
    assert position.quantity == 100.0
    assert position.pnl == -500.0

    assert statement.total_overnight_fees == 15.0
    assert statement.total_commissions == 0.0
    summary = statement.summary
    assert summary is not None
    assert summary.total_fees == 15.0
    assert summary.total_pnl == -500.0
    assert summary.net_pnl == -515.0
    assert summary.fee_to_profit_ratio == 0.0
    assert summary.most_expensive_symbol == "GV"
    assert statement.period == "2024-11"
    assert statement.upload_date == now


def test_round_trip_sell_books_trading_position_and_net_pnl(
    borrow_then_buy, trade_row, csv_bytes, now, settings
):
    rows = borrow_then_buy + [
        trade_row(
            "10/14/2024",
            "GV",
            "S",
            "100",
            "6.00",
            "600.00",
            Commission="1.00",
            ECNMaker="0.30",
            TAFFee="0.02",
            CATFee="0.01",
        )
    ]

    statement = parse_statement(csv_bytes(rows), "statement_2024-10.csv", now=now, settings=settings)

    assert [(p.symbol, p.date) for p in statement.positions] == [
        ("GV", date(2024, 10, 12)),
        ("GV", date(2024, 10, 14)),
    ]
    fee_position, sell_position = statement.positions
    assert fee_position.pnl == 100.0
    assert sell_position.pnl == 0.0
    assert sell_position.buy_sell == "S"
    assert sell_position.commissions == 1.0
    assert sell_position.misc_fees == 0.03

    summary = statement.summary
    assert summary.total_fees == pytest.approx(16.03)
    assert summary.total_pnl == 100.0
    assert summary.net_pnl == pytest.approx(84.27)
    assert summary.fee_to_profit_ratio == pytest.approx(15.73)
    assert summary.days_analyzed == 2
    assert summary.avg_daily_overnight_cost == 7.5
    assert statement.total_rebates == 0.3
    assert statement.period == "2024-10"


def test_excel_statement_matches_csv(borrow_then_buy, csv_bytes, xlsx_bytes, now, settings):
    from_csv = parse_statement(csv_bytes(borrow_then_buy), "statement.csv", now=now, settings=settings)
    from_xlsx = parse_statement(xlsx_bytes(borrow_then_buy), "statement.xlsx", now=now, settings=settings)

    assert [p.to_dict() for p in from_xlsx.positions] == [p.to_dict() for p in from_csv.positions]
    assert from_xlsx.summary == from_csv.summary


def test_parsing_is_deterministic(borrow_then_buy, csv_bytes, now, settings):
    payload = csv_bytes(borrow_then_buy)
    first = parse_statement(payload, "statement.csv", now=now, settings=settings)
    second = parse_statement(io.BytesIO(payload), "statement.csv", now=now, settings=settings)
    assert first.to_dict() == second.to_dict()


def test_path_input_takes_file_name_from_path(borrow_then_buy, csv_bytes, now, settings, tmp_path):
    path = tmp_path / "fees_2024_09.csv"
    path.write_bytes(csv_bytes(borrow_then_buy))

    statement = parse_statement(path, now=now, settings=settings)

    assert statement.file_name == "fees_2024_09.csv"
    assert statement.period == "2024-09"


def test_raw_bytes_need_a_file_name(csv_bytes, borrow_then_buy):
    with pytest.raises(ValueError):
        parse_statement(csv_bytes(borrow_then_buy))


def test_unsupported_extension_is_rejected(now, settings):
    with pytest.raises(UnsupportedFormatError, match="Unsupported file type: txt"):
        parse_statement(b"anything", "statement.txt", now=now, settings=settings)


def test_pdf_is_rejected_when_disabled(now, settings):
    with pytest.raises(UnsupportedFormatError):
        parse_statement(b"%PDF-1.4", "statement.pdf", now=now, settings=replace(settings, enable_pdf=False))


def test_decode_failures_name_the_format(now, settings):
    with pytest.raises(StatementDecodeError, match="CSV parse error"):
        parse_statement(b"", "statement.csv", now=now, settings=settings)
    with pytest.raises(StatementDecodeError, match="Excel parse error"):
        parse_statement(b"not a workbook", "statement.xlsx", now=now, settings=settings)


def test_statement_without_positions_reports_columns_and_samples(broker_row, csv_bytes, now, settings):
    rows = [
        broker_row(Date="10/13/2024", Description="ACH DEPOSIT", Amount="1000.00", Type="Cash"),
        broker_row(Date="10/13/2024", Description="MARK TO MARKET GV", Amount="12.00"),
    ]

    with pytest.raises(NoStatementDataError) as excinfo:
        parse_statement(csv_bytes(rows), "statement.csv", now=now, settings=settings)

    error = excinfo.value
    assert isinstance(error, StatementParseError)
    assert error.columns == BROKER_COLUMNS
    assert error.sample_descriptions == ["ACH DEPOSIT", "MARK TO MARKET GV"]
    assert "Columns found: Date, Side, Qty" in str(error)


def test_parse_rows_without_rows_reports_no_columns(now, settings):
    with pytest.raises(NoStatementDataError, match="Columns found: none found"):
        parse_rows([], "statement.csv", now=now, settings=settings)


def test_trace_records_every_stage(borrow_then_buy, csv_bytes, now, settings):
    sink = RecordingTraceSink()

    parse_statement(csv_bytes(borrow_then_buy), "statement.csv", now=now, settings=settings, trace=sink)

    assert len(sink.for_stage("index")) == 1
    assert [event.skip_reason for event in sink.skipped("aggregate")] == ["negative_trade_amount"]
    replay = sink.for_stage("replay")
    assert replay[0].fields["pnl"] == -500.0


def test_reference_date_anchors_undated_rows(broker_row, csv_bytes, now, settings):
    rows = [broker_row(Description="10/13 STOCK BORROW FEE GV", Amount="-1.00", Type="Fee")]

    statement = parse_statement(
        csv_bytes(rows),
        "statement.csv",
        now=now,
        reference_date=date(2024, 10, 1),
        settings=settings,
    )

    assert statement.positions[0].date == date(2023, 10, 13)


def test_trailing_delimiter_keeps_columns_aligned():
    payload = b"Date,Side,Qty,Symbol,Description\n10/12/2024,B,100,GV,BUY GV,\n"

    columns, rows = read_csv_rows(payload)

    assert columns == ["Date", "Side", "Qty", "Symbol", "Description"]
    assert rows[0]["Date"] == "10/12/2024"
    assert rows[0]["Description"] == "BUY GV"
    extractors = default_extractors()
    assert extractors.symbol(rows[0]) == "GV"
    assert extractors.side(rows[0]) == "B"
    assert extractors.quantity(rows[0]) == 100.0


def test_account_number_in_first_column_is_not_a_date(now, settings):
    rows = [{"Account": "50012345", "Description": "10/13 STOCK BORROW FEE GV", "Amount": "-15.00"}]

    statement = parse_rows(rows, "statement.csv", now=now, settings=settings)

    position = statement.positions[0]
    assert position.key == ("GV", date(2024, 10, 13))
    assert position.overnight_fee == 15.0
