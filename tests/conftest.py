from __future__ import annotations

import io
from datetime import date, datetime
from typing import Any, Callable

import pandas as pd
import pytest

from fee_ledger.config.settings import Settings

# Column layout of the broker's trade-activity export (columns A..P).
BROKER_COLUMNS = [
    "Date",
    "Side",
    "Qty",
    "Symbol",
    "Description",
    "Price",
    "Route",
    "Liq",
    "ECNMaker",
    "ECNTaker",
    "TAFFee",
    "NSCCFee",
    "CATFee",
    "Amount",
    "Type",
    "Commission",
]

NOW = datetime(2024, 11, 1, 12, 0, 0)
REFERENCE_DATE = date(2024, 11, 1)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="test",
        log_level="DEBUG",
        interest_symbol="CASH",
        scan_limit=1_000_000.0,
        enable_pdf=True,
    )


@pytest.fixture
def broker_row() -> Callable[..., dict[str, Any]]:
    def _make(**values: Any) -> dict[str, Any]:
        row = {column: "" for column in BROKER_COLUMNS}
        for key, value in values.items():
            row[key] = value
        return row

    return _make


@pytest.fixture
def fee_row(broker_row) -> Callable[..., dict[str, Any]]:
    def _make(
        trade_date: str,
        description: str,
        amount: str,
        type_value: str = "Fee",
    ) -> dict[str, Any]:
        return broker_row(Date=trade_date, Description=description, Amount=amount, Type=type_value)

    return _make


@pytest.fixture
def trade_row(broker_row) -> Callable[..., dict[str, Any]]:
    def _make(
        trade_date: str,
        symbol: str,
        side: str,
        qty: str,
        price: str,
        amount: str,
        **extra: Any,
    ) -> dict[str, Any]:
        values = {
            "Date": trade_date,
            "Side": side,
            "Qty": qty,
            "Symbol": symbol,
            "Description": f"{side} {qty} {symbol} @ {price}",
            "Price": price,
            "Amount": amount,
            "Type": "Margin",
        }
        values.update(extra)
        return broker_row(**values)

    return _make


@pytest.fixture
def csv_bytes() -> Callable[[list[dict[str, Any]]], bytes]:
    def _make(rows: list[dict[str, Any]]) -> bytes:
        return pd.DataFrame(rows).to_csv(index=False).encode("utf-8")

    return _make


@pytest.fixture
def xlsx_bytes() -> Callable[[list[dict[str, Any]]], bytes]:
    def _make(rows: list[dict[str, Any]]) -> bytes:
        buffer = io.BytesIO()
        pd.DataFrame(rows).to_excel(buffer, index=False)
        return buffer.getvalue()

    return _make
