"""Naming and formatting helpers for the per-session query logs."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path

MAX_SESSION_ID_LENGTH = 64
FALLBACK_SESSION_ID = "session"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def sanitize_session_id(session_id: str) -> str:
    """Reduce a client-supplied session id to a short, filename-safe token."""

    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", session_id.strip())[:MAX_SESSION_ID_LENGTH]
    return cleaned or FALLBACK_SESSION_ID


def session_log_path(base_dir: Path, session_id: str, now: datetime | None = None) -> Path:
    """Return the log file for *session_id* on the current UTC day.

    One file per session per day: ``<base_dir>/<YYYYMMDD>-<session>.jsonl``.
    """

    day = (now or datetime.now(UTC)).strftime("%Y%m%d")
    return base_dir / f"{day}-{sanitize_session_id(session_id)}.jsonl"


def isoformat_millis(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def truncate_for_log(value: str, limit: int = 200) -> str:
    text = value.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
