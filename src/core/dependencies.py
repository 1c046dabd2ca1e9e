"""Factory helpers for constructing sandbox dependencies from settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from src.core.config import Settings
from src.core.observability import JSONLQueryLogger, NullQueryLogger, QueryObservationSink
from src.integrations.seed_data import seed_database
from src.integrations.sqlite_store import SQLiteStore
from src.sandbox.guard import StatementGuard
from src.sandbox.practice import PracticeCatalog, YamlPracticeBank
from src.sandbox.service import SqlSandbox

REPO_ROOT = Path(__file__).resolve().parents[2]


@dataclass(slots=True)
class SandboxDependencies:
    """Collection of long-lived objects shared by every request."""

    store: SQLiteStore
    sandbox: SqlSandbox
    practice: PracticeCatalog
    seed_counts: dict[str, int]


def build_dependencies(settings: Settings) -> SandboxDependencies:
    """Create and seed the store, then wire the services around it."""

    store = SQLiteStore()
    seed_counts = seed_database(store, settings.database)

    sandbox = SqlSandbox(
        store=store,
        guard=StatementGuard(patterns=list(settings.guard.blocked_patterns)),
        query_logger=_build_query_logger(settings),
    )
    practice = PracticeCatalog(
        questions=YamlPracticeBank(path=_resolve_questions_path(settings)).load()
    )
    return SandboxDependencies(
        store=store,
        sandbox=sandbox,
        practice=practice,
        seed_counts=seed_counts,
    )


def _resolve_questions_path(settings: Settings) -> Path:
    path = Path(settings.practice.questions_path).expanduser()
    if path.is_absolute() or path.exists():
        return path
    return REPO_ROOT / path


def _build_query_logger(settings: Settings) -> QueryObservationSink:
    if settings.paths is None or not settings.paths.query_logs_dir:
        return NullQueryLogger()
    path = Path(settings.paths.query_logs_dir).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return JSONLQueryLogger(base_dir=path)
