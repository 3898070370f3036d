"""Logging setup shared by the library and the developer CLI."""

from __future__ import annotations

import logging
import os

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
PACKAGE_LOGGER = "fee_ledger"
# pdfminer logs every parsed PDF object at DEBUG.
_NOISY_LOGGERS = ("pdfminer", "pdfplumber")
_CONFIGURED = False


def _resolve_level(level: str | int | None) -> str | int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        return level.strip().upper() or "INFO"
    return level


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging once; an explicit level later only adjusts the root level."""
    global _CONFIGURED
    if _CONFIGURED:
        if level is not None:
            logging.getLogger().setLevel(_resolve_level(level))
        return

    logging.basicConfig(level=_resolve_level(level), format=_DEFAULT_FORMAT)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
