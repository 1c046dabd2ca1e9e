"""JSONL-backed observability helpers for the SQL sandbox."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from src.core.logging_utils import isoformat_millis, sanitize_session_id, session_log_path

LOGGER = logging.getLogger(__name__)


class QueryObservationSink(Protocol):
    """Records lifecycle events emitted while executing submitted SQL."""

    def log_event(self, session_id: str, event: str, payload: dict[str, Any]) -> None:  # pragma: no cover - interface
        ...


def build_query_record(
    session_id: str, event: str, payload: dict[str, Any], now: datetime
) -> dict[str, Any]:
    """Flatten an event into one log line; ``None`` payload values are dropped."""

    record: dict[str, Any] = {
        "timestamp": isoformat_millis(now),
        "session_id": sanitize_session_id(session_id),
        "event": event,
    }
    record.update((key, value) for key, value in payload.items() if value is not None)
    return record


@dataclass(slots=True)
class JSONLQueryLogger(QueryObservationSink):
    """Appends query events to one JSONL file per session and day.

    Write failures are reported through `logging` and never reach the caller.
    """

    base_dir: Path

    def log_event(self, session_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        now = datetime.now(UTC)
        target = session_log_path(self.base_dir, session_id, now)
        line = json.dumps(build_query_record(session_id, event, payload, now), ensure_ascii=False)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        except OSError as exc:
            LOGGER.warning("Could not write query event %s to %s: %s", event, target, exc)


class NullQueryLogger(QueryObservationSink):
    """Fallback sink used when no query log directory is configured."""

    def log_event(self, session_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        return None
