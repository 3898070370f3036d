from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO

import pandas as pd

from fee_ledger.ingest.errors import StatementDecodeError, UnsupportedFormatError
from fee_ledger.ledger.models import RawRow

CSV_EXTENSIONS = {"csv"}
EXCEL_EXTENSIONS = {"xls", "xlsx"}
PDF_EXTENSIONS = {"pdf"}
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | EXCEL_EXTENSIONS | PDF_EXTENSIONS


def file_extension(file_name: str) -> str:
    name = str(file_name or "")
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].strip().lower()


def require_supported(file_name: str, allowed: set[str] | None = None) -> str:
    extension = file_extension(file_name)
    if extension not in (allowed or SUPPORTED_EXTENSIONS):
        raise UnsupportedFormatError(f"Unsupported file type: {extension or file_name}")
    return extension


def read_binary_payload(file_obj: str | Path | BinaryIO | bytes) -> bytes:
    if isinstance(file_obj, bytes):
        return file_obj
    if isinstance(file_obj, (str, Path)):
        return Path(file_obj).read_bytes()
    if hasattr(file_obj, "read"):
        payload = file_obj.read()
        if isinstance(payload, str):
            return payload.encode("utf-8", errors="ignore")
        return payload
    raise TypeError("Unsupported statement input type.")


def _is_blank_row(row: RawRow) -> bool:
    return all(not str(value).strip() for value in row.values())


def frame_to_rows(df: pd.DataFrame) -> tuple[list[str], list[RawRow]]:
    df = df.copy()
    df.columns = [str(column) for column in df.columns]
    df = df.astype(object).where(pd.notna(df), "")
    columns = list(df.columns)
    rows = [row for row in df.to_dict(orient="records") if not _is_blank_row(row)]
    return columns, rows


def read_csv_rows(payload: bytes) -> tuple[list[str], list[RawRow]]:
    try:
        df = pd.read_csv(
            io.BytesIO(payload),
            dtype=str,
            keep_default_na=False,
            # Rows with a trailing delimiter must not shift column 0 into the index.
            index_col=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
            encoding_errors="replace",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        raise StatementDecodeError(f"CSV parse error: {exc}") from exc
    return frame_to_rows(df)


def read_excel_rows(payload: bytes) -> tuple[list[str], list[RawRow]]:
    try:
        df = pd.read_excel(io.BytesIO(payload), sheet_name=0, dtype=object)
    except Exception as exc:
        raise StatementDecodeError(f"Excel parse error: {exc}") from exc
    return frame_to_rows(df)
