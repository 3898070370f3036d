"""Turn a broker statement file into a normalized fee and P&L ledger.

Rows are read in two passes. The first builds a per-symbol trade-date index
from trading rows. The second classifies every row, re-keys fee rows onto
the latest prior trade date and folds everything into one Position per
(symbol, date). Net trade amounts are then replayed per symbol and attached
to each symbol's earliest Position.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import BinaryIO, Sequence

from fee_ledger.analytics.summary import calculate_summary, fee_totals
from fee_ledger.config.settings import Settings, get_settings
from fee_ledger.ingest.errors import NoStatementDataError, StatementDecodeError
from fee_ledger.ingest.extractors import RowExtractors, default_extractors
from fee_ledger.ingest.pdf_import import extract_pdf_text_pages, scrape_fee_positions
from fee_ledger.ingest.readers import (
    CSV_EXTENSIONS,
    EXCEL_EXTENSIONS,
    PDF_EXTENSIONS,
    read_binary_payload,
    read_csv_rows,
    read_excel_rows,
    require_supported,
)
from fee_ledger.ingest.trace import LoggingTraceSink, TraceSink
from fee_ledger.ledger.aggregation import aggregate_positions, finalize_positions
from fee_ledger.ledger.models import Position, RawRow, StatementData
from fee_ledger.ledger.pnl_replay import attach_replayed_pnl, replay_symbol_pnl
from fee_ledger.ledger.trade_index import build_trade_index
from fee_ledger.utils.dates import period_from_filename
from fee_ledger.utils.logging import get_logger

logger = get_logger(__name__)

SAMPLE_DESCRIPTION_ROWS = 5


def build_statement(
    file_name: str,
    positions: list[Position],
    *,
    now: datetime | None = None,
) -> StatementData:
    uploaded = now or datetime.now()
    finalized = finalize_positions(positions)
    return StatementData(
        file_name=file_name,
        upload_date=uploaded,
        period=period_from_filename(file_name, today=uploaded.date()),
        **fee_totals(finalized),
        positions=finalized,
        summary=calculate_summary(finalized),
    )


def reconcile_rows(
    rows: Sequence[RawRow],
    *,
    reference_date: date,
    extractors: RowExtractors | None = None,
    settings: Settings | None = None,
    trace: TraceSink | None = None,
) -> list[Position]:
    """Run both passes and the P&L replay over in-memory rows."""
    settings = settings or get_settings()
    extractors = extractors or default_extractors(settings.scan_limit)
    sink = trace or LoggingTraceSink()

    index = build_trade_index(rows, extractors, reference_date, trace=sink)
    table = aggregate_positions(
        rows,
        index,
        extractors,
        reference_date,
        interest_symbol=settings.interest_symbol,
        trace=sink,
    )
    replayed = replay_symbol_pnl(index, trace=sink)
    attach_replayed_pnl(table, replayed)
    logger.debug(
        "Reconciled %s rows: %s trades indexed, %s positions, %s symbols replayed",
        len(rows),
        len(index),
        len(table),
        len(replayed),
    )
    return table.positions()


def parse_rows(
    rows: Sequence[RawRow],
    file_name: str,
    *,
    columns: list[str] | None = None,
    now: datetime | None = None,
    reference_date: date | None = None,
    extractors: RowExtractors | None = None,
    settings: Settings | None = None,
    trace: TraceSink | None = None,
) -> StatementData:
    settings = settings or get_settings()
    extractors = extractors or default_extractors(settings.scan_limit)
    uploaded = now or datetime.now()
    positions = reconcile_rows(
        rows,
        reference_date=reference_date or uploaded.date(),
        extractors=extractors,
        settings=settings,
        trace=trace,
    )
    if not positions:
        found_columns = columns if columns is not None else (list(rows[0].keys()) if rows else [])
        samples = [
            extractors.description(row) or "N/A" for row in rows[:SAMPLE_DESCRIPTION_ROWS]
        ]
        raise NoStatementDataError(found_columns, samples)
    return build_statement(file_name, positions, now=uploaded)


def _parse_pdf(payload: bytes, file_name: str, *, now: datetime, reference_date: date) -> StatementData:
    pages = extract_pdf_text_pages(payload)
    positions = scrape_fee_positions(pages, reference_date)
    if not positions:
        raise StatementDecodeError(
            "PDF parse error: No borrow fee data found in PDF. "
            "Please check the file format or export the statement as CSV."
        )
    return build_statement(file_name, positions, now=now)


def parse_statement(
    file_obj: str | Path | BinaryIO | bytes,
    file_name: str | None = None,
    *,
    now: datetime | None = None,
    reference_date: date | None = None,
    extractors: RowExtractors | None = None,
    settings: Settings | None = None,
    trace: TraceSink | None = None,
) -> StatementData:
    if file_name is None:
        if not isinstance(file_obj, (str, Path)):
            raise ValueError("file_name is required when parsing raw bytes or streams.")
        file_name = Path(file_obj).name

    settings = settings or get_settings()
    allowed = {*CSV_EXTENSIONS, *EXCEL_EXTENSIONS}
    if settings.enable_pdf:
        allowed |= PDF_EXTENSIONS
    extension = require_supported(file_name, allowed)

    payload = read_binary_payload(file_obj)
    uploaded = now or datetime.now()
    reference = reference_date or uploaded.date()
    logger.info("Parsing statement %s (%s, %s bytes)", file_name, extension, len(payload))

    if extension in PDF_EXTENSIONS:
        statement = _parse_pdf(payload, file_name, now=uploaded, reference_date=reference)
    else:
        reader = read_csv_rows if extension in CSV_EXTENSIONS else read_excel_rows
        columns, rows = reader(payload)
        statement = parse_rows(
            rows,
            file_name,
            columns=columns,
            now=uploaded,
            reference_date=reference,
            extractors=extractors,
            settings=settings,
            trace=trace,
        )

    logger.info(
        "Parsed %s: %s positions, total fees %.2f",
        file_name,
        len(statement.positions),
        statement.summary.total_fees if statement.summary else 0.0,
    )
    return statement
