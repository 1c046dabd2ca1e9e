"""Statement classification and the destructive-operation denylist.

The guard is a syntactic filter, not a parser. It matches whole words only,
so identifiers such as ``truncated`` or ``deleted_at`` pass, but it cannot see
through comment obfuscation (``DR/**/OP``) or statement batching. Batching is
still stopped downstream because the engine refuses to run more than one
statement per call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Literal

from src.core.config import DEFAULT_BLOCKED_PATTERNS
from src.core.errors import PolicyViolation

StatementKind = Literal["read", "write"]

READ_PREFIXES: tuple[str, ...] = ("select", "pragma")

POLICY_MESSAGE = (
    "Harmful operations like DROP, DELETE, TRUNCATE are not allowed in this learning environment"
)


def classify_statement(statement: str) -> StatementKind:
    """Return ``read`` for row-producing prefixes and ``write`` for anything else."""

    lowered = statement.strip().lower()
    if lowered.startswith(READ_PREFIXES):
        return "read"
    return "write"


def compile_denylist(patterns: Iterable[str]) -> re.Pattern[str]:
    """Combine *patterns* into one case-insensitive whole-word matcher."""

    alternatives = "|".join(f"(?:{pattern})" for pattern in patterns)
    if not alternatives:
        # Never matches.
        return re.compile(r"(?!x)x")
    return re.compile(rf"\b(?:{alternatives})\b", flags=re.IGNORECASE)


_DEFAULT_DENYLIST = compile_denylist(DEFAULT_BLOCKED_PATTERNS)


def is_disallowed(statement: str, patterns: Iterable[str] | None = None) -> bool:
    """Return True when *statement* contains any blocked keyword as a whole word."""

    matcher = _DEFAULT_DENYLIST if patterns is None else compile_denylist(patterns)
    return matcher.search(statement) is not None


@dataclass(slots=True)
class StatementGuard:
    """Rejects statements that match the configured denylist."""

    patterns: list[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED_PATTERNS))
    _matcher: re.Pattern[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._matcher = compile_denylist(self.patterns)

    def is_disallowed(self, statement: str) -> bool:
        return self._matcher.search(statement) is not None

    def check(self, statement: str) -> StatementKind:
        """Raise `PolicyViolation` for denied text, otherwise return its classification."""

        if self.is_disallowed(statement):
            raise PolicyViolation(POLICY_MESSAGE)
        return classify_statement(statement)
