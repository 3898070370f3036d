from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = str(os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    app_env: str
    log_level: str
    interest_symbol: str
    scan_limit: float
    enable_pdf: bool


def get_settings() -> Settings:
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        interest_symbol=(os.getenv("FEE_LEDGER_INTEREST_SYMBOL", "CASH").strip().upper() or "CASH"),
        scan_limit=_env_float("FEE_LEDGER_SCAN_LIMIT", 1_000_000.0),
        enable_pdf=_env_bool("FEE_LEDGER_ENABLE_PDF", True),
    )
