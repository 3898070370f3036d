"""Date parsing helpers for statement cells, descriptions and filenames."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd
from dateutil.relativedelta import relativedelta


US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
MONTH_DAY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})$")
PERIOD_RE = re.compile(r"(\d{4})[-_](\d{1,2})")

EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_SERIAL_FLOOR = 40000
# Serial of 9999-12-31, the last representable calendar day.
EXCEL_SERIAL_CEILING = 2958465


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def excel_serial_to_date(serial: float) -> date:
    return EXCEL_EPOCH + timedelta(days=int(serial))


def parse_cell_date(value: Any) -> date | None:
    """Best-effort conversion of a statement date cell to a calendar day."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    m_us = US_DATE_RE.match(text)
    if m_us:
        month, day, year = (int(part) for part in m_us.groups())
        return _safe_date(year, month, day)

    m_iso = ISO_DATE_RE.match(text)
    if m_iso:
        year, month, day = (int(part) for part in m_iso.groups())
        return _safe_date(year, month, day)

    try:
        serial = float(text)
    except ValueError:
        serial = None
    if serial is not None:
        # Account numbers and other large figures are not dates.
        if EXCEL_SERIAL_FLOOR < serial <= EXCEL_SERIAL_CEILING:
            return excel_serial_to_date(serial)
        return None

    parsed = pd.to_datetime(text, errors="coerce")
    if pd.notna(parsed) and isinstance(parsed, pd.Timestamp):
        return parsed.date()
    return None


def parse_month_day_prefix(description: str, reference: date) -> date | None:
    """Read a leading ``MM/DD`` token such as ``"10/13 STOCK BORROW FEE GV"``.

    The year comes from ``reference``; dates that would land after the
    reference day are taken from the previous year.
    """
    tokens = description.strip().split()
    if not tokens:
        return None
    match = MONTH_DAY_RE.match(tokens[0])
    if not match:
        return None
    month, day = (int(part) for part in match.groups())
    candidate = _safe_date(reference.year, month, day)
    if candidate is None:
        return None
    if candidate > reference:
        candidate = candidate - relativedelta(years=1)
    return candidate


def period_from_filename(file_name: str, today: date | None = None) -> str:
    match = PERIOD_RE.search(file_name)
    if match:
        year, month = match.groups()
        return f"{year}-{int(month):02d}"
    current = today or date.today()
    return f"{current.year}-{current.month:02d}"
