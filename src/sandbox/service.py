"""Request boundary wiring: validate, guard, execute, normalize."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from src.core.errors import CatalogError, ExecutionError, PolicyViolation, ValidationError
from src.core.logging_utils import truncate_for_log
from src.core.observability import NullQueryLogger, QueryObservationSink
from src.integrations.sqlite_store import SQLiteStore
from src.sandbox.executor import QueryExecutor
from src.sandbox.guard import StatementGuard
from src.sandbox.introspector import SchemaDescription, describe_schema
from src.sandbox.normalizer import ExecutionEnvelope, normalize, to_milliseconds

LOGGER = logging.getLogger(__name__)

QUERY_REQUIRED_MESSAGE = "Query is required"
DEFAULT_SESSION_ID = "anonymous"


def require_query(query: Any) -> str:
    """Return *query* when it is non-blank text, else raise `ValidationError`."""

    if not isinstance(query, str) or not query.strip():
        raise ValidationError(QUERY_REQUIRED_MESSAGE)
    return query


@dataclass(slots=True)
class SqlSandbox:
    """Executes learner-submitted SQL against the shared store."""

    store: SQLiteStore
    guard: StatementGuard = field(default_factory=StatementGuard)
    query_logger: QueryObservationSink = field(default_factory=NullQueryLogger)
    clock: Callable[[], float] = time.perf_counter
    executor: QueryExecutor = field(init=False)

    def __post_init__(self) -> None:
        self.executor = QueryExecutor(engine=self.store)

    def execute(self, query: Any, *, session_id: str = DEFAULT_SESSION_ID) -> ExecutionEnvelope:
        statement = require_query(query)
        self.query_logger.log_event(session_id, "query_received", {"query": statement})

        try:
            kind = self.guard.check(statement)
        except PolicyViolation as exc:
            LOGGER.warning("Rejected statement: %s", truncate_for_log(statement))
            self.query_logger.log_event(session_id, "query_rejected", {"reason": exc.message})
            raise

        started = self.clock()
        try:
            raw = self.executor.run(statement, kind)
        except ExecutionError as exc:
            LOGGER.warning("Error executing query: %s", exc.message)
            self.query_logger.log_event(session_id, "query_failed", {"error": exc.message})
            raise
        execution_time = to_milliseconds(self.clock() - started)

        envelope = normalize(raw, execution_time)
        LOGGER.debug(
            "Executed %s statement in %sms rows=%s",
            kind,
            execution_time,
            len(envelope.rows),
        )
        self.query_logger.log_event(
            session_id,
            "query_completed",
            {
                "kind": kind,
                "execution_time_ms": execution_time,
                "row_count": len(envelope.rows),
                "changes": envelope.metadata.changes,
            },
        )
        return envelope

    def describe_schema(self) -> SchemaDescription:
        try:
            return describe_schema(self.store)
        except CatalogError as exc:
            LOGGER.error("Error getting schema: %s", exc.message)
            raise
        except Exception as exc:
            LOGGER.exception("Error getting schema")
            raise CatalogError(str(exc)) from exc
