"""Utilities for loading application settings from YAML configuration files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_BLOCKED_PATTERNS: tuple[str, ...] = (
    "drop",
    "delete",
    "truncate",
    r"alter\s+table",
    r"pragma\s+writable_schema",
)


@dataclass(slots=True)
class DatabaseSettings:
    seed: int | None = None
    users: int = 50
    products: int = 100
    employees: int = 50
    orders: int = 200
    max_items_per_order: int = 5


@dataclass(slots=True)
class GuardSettings:
    blocked_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED_PATTERNS))


@dataclass(slots=True)
class PracticeSettings:
    questions_path: str = "configs/practice_questions.yaml"


@dataclass(slots=True)
class PathsSettings:
    query_logs_dir: str | None = None


@dataclass(slots=True)
class Settings:
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    guard: GuardSettings = field(default_factory=GuardSettings)
    practice: PracticeSettings = field(default_factory=PracticeSettings)
    paths: PathsSettings | None = None


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_settings(path: str | Path) -> Settings:
    """Read configuration from *path* and return structured settings."""

    config_path = Path(path)
    raw = _load_yaml(config_path)

    database_raw = raw.get("database") or {}
    defaults = DatabaseSettings()
    seed = database_raw.get("seed")
    database = DatabaseSettings(
        seed=int(seed) if seed is not None else None,
        users=int(database_raw.get("users", defaults.users)),
        products=int(database_raw.get("products", defaults.products)),
        employees=int(database_raw.get("employees", defaults.employees)),
        orders=int(database_raw.get("orders", defaults.orders)),
        max_items_per_order=int(
            database_raw.get("max_items_per_order", defaults.max_items_per_order)
        ),
    )

    guard_raw = raw.get("guard") or {}
    patterns = guard_raw.get("blocked_patterns")
    guard = GuardSettings(
        blocked_patterns=[str(item) for item in patterns]
        if patterns
        else list(DEFAULT_BLOCKED_PATTERNS)
    )

    practice_raw = raw.get("practice") or {}
    practice = PracticeSettings(
        questions_path=str(
            practice_raw.get("questions_path", PracticeSettings().questions_path)
        ),
    )

    paths_raw: dict[str, Any] | None = raw.get("paths")
    paths = None
    if paths_raw:
        query_logs_dir = paths_raw.get("query_logs_dir")
        paths = PathsSettings(
            query_logs_dir=str(query_logs_dir) if query_logs_dir else None,
        )

    return Settings(
        database=database,
        guard=guard,
        practice=practice,
        paths=paths,
    )
