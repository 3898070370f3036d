"""Structured trace events emitted while a statement is reconciled."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from fee_ledger.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TraceEvent:
    stage: str
    row_index: int
    category: str | None = None
    skip_reason: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)


TraceSink = Callable[[TraceEvent], None]


class LoggingTraceSink:
    def __init__(self, log=None) -> None:
        self._log = log or logger

    def __call__(self, event: TraceEvent) -> None:
        if event.skip_reason:
            self._log.debug(
                "%s row=%s skipped: %s %s",
                event.stage,
                event.row_index,
                event.skip_reason,
                event.fields,
            )
            return
        self._log.debug(
            "%s row=%s category=%s %s",
            event.stage,
            event.row_index,
            event.category,
            event.fields,
        )


class RecordingTraceSink:
    def __init__(self) -> None:
        self.events: list[TraceEvent] = []

    def __call__(self, event: TraceEvent) -> None:
        self.events.append(event)

    def for_stage(self, stage: str) -> list[TraceEvent]:
        return [event for event in self.events if event.stage == stage]

    def skipped(self, stage: str | None = None) -> list[TraceEvent]:
        return [
            event
            for event in self.events
            if event.skip_reason and (stage is None or event.stage == stage)
        ]


def null_sink(_: TraceEvent) -> None:
    return None
