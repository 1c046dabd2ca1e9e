"""Tests for the FastAPI backend."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Iterator

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from src.core.config import DatabaseSettings, PathsSettings, Settings
from src.core.webapp import create_app
from src.integrations.seed_data import SEEDED_TABLES
from src.integrations.sqlite_store import SQLiteStore

POLICY_MESSAGE = (
    "Harmful operations like DROP, DELETE, TRUNCATE are not allowed in this learning environment"
)


def _settings(**overrides) -> Settings:
    return Settings(
        database=DatabaseSettings(seed=3, users=20, products=20, employees=10, orders=15),
        **overrides,
    )


@pytest.fixture()
def client() -> Iterator[TestClient]:
    with TestClient(create_app(settings=_settings())) as test_client:
        yield test_client


def _execute(client: TestClient, query: object):
    return client.post("/api/execute-sql", json={"query": query})


def test_select_returns_envelope(client: TestClient) -> None:
    response = _execute(client, "SELECT * FROM users LIMIT 2;")

    assert response.status_code == 200
    payload = response.json()
    assert len(payload["rows"]) == 2
    assert payload["columns"] == ["id", "name", "email", "age", "created_at"]
    assert payload["metadata"]["highlightedRows"] == []
    assert payload["metadata"]["highlightedCells"] == []
    assert payload["metadata"]["executionTime"] >= 0
    assert "changes" not in payload["metadata"]


def test_drop_is_forbidden(client: TestClient) -> None:
    response = _execute(client, "DROP TABLE users;")

    assert response.status_code == 403
    assert response.json() == {"error": POLICY_MESSAGE}


@pytest.mark.parametrize(
    "query",
    ["delete from orders", "TRUNCATE products", "alter table users add x", "PRAGMA writable_schema = 1"],
)
def test_other_destructive_statements_are_forbidden(client: TestClient, query: str) -> None:
    response = _execute(client, query)

    assert response.status_code == 403
    assert response.json()["error"] == POLICY_MESSAGE


def test_insert_reports_affected_rows(client: TestClient) -> None:
    response = _execute(client, "INSERT INTO categories (name) VALUES ('Toys');")

    assert response.status_code == 200
    payload = response.json()
    assert payload["columns"] == ["Result"]
    assert payload["rows"] == [{"Result": "Query executed successfully. 1 row(s) affected."}]
    assert payload["metadata"]["changes"] == 1
    assert "highlightedRows" not in payload["metadata"]

    follow_up = _execute(client, "SELECT name FROM categories WHERE name = 'Toys'")
    assert follow_up.json()["rows"] == [{"name": "Toys"}]


def test_unknown_table_returns_engine_message(client: TestClient) -> None:
    response = _execute(client, "SELECT * FROM nonexistent;")

    assert response.status_code == 400
    assert "no such table" in response.json()["error"]


@pytest.mark.parametrize("body", [{"query": ""}, {"query": "   "}, {"query": 5}, {}])
def test_missing_query_is_rejected(client: TestClient, body: dict) -> None:
    response = client.post("/api/execute-sql", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Query is required"}


def test_non_object_body_is_rejected(client: TestClient) -> None:
    response = client.post("/api/execute-sql", json=["SELECT 1"])

    assert response.status_code == 400
    assert response.json() == {"error": "Query is required"}


def test_empty_result_has_no_columns(client: TestClient) -> None:
    response = _execute(client, "SELECT * FROM users WHERE id < 0")

    assert response.status_code == 200
    assert response.json()["columns"] == []
    assert response.json()["rows"] == []


def test_identifier_containing_blocked_word_is_allowed(client: TestClient) -> None:
    created = _execute(client, "CREATE TABLE notes (truncated INTEGER)")
    assert created.status_code == 200
    assert created.json()["metadata"]["changes"] == 0

    inserted = _execute(client, "INSERT INTO notes (truncated) VALUES (1), (0)")
    assert inserted.json()["metadata"]["changes"] == 2

    selected = _execute(client, "SELECT truncated FROM notes ORDER BY truncated")
    assert selected.json()["rows"] == [{"truncated": 0}, {"truncated": 1}]


def test_repeated_reads_match(client: TestClient) -> None:
    first = _execute(client, "SELECT * FROM employees ORDER BY id").json()
    second = _execute(client, "SELECT * FROM employees ORDER BY id").json()

    assert first["columns"] == second["columns"]
    assert first["rows"] == second["rows"]


def test_schema_lists_seeded_tables_and_keys(client: TestClient) -> None:
    response = client.get("/api/schema")

    assert response.status_code == 200
    tables = response.json()["tables"]
    assert list(tables) == list(SEEDED_TABLES)
    assert tables["users"]["foreignKeys"] == []
    assert tables["users"]["columns"][0] == {"name": "id", "type": "INTEGER", "isPrimary": True}
    assert tables["products"]["foreignKeys"] == [
        {"column": "category_id", "reference": {"table": "categories", "column": "id"}}
    ]
    order_item_refs = {key["column"]: key["reference"]["table"] for key in tables["order_items"]["foreignKeys"]}
    assert order_item_refs == {"order_id": "orders", "product_id": "products"}
    assert tables["employees"]["foreignKeys"][0]["reference"] == {"table": "departments", "column": "id"}


def test_schema_catalog_failure_returns_500(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken(self: SQLiteStore) -> list[str]:
        raise sqlite3.OperationalError("catalog unavailable")

    monkeypatch.setattr(SQLiteStore, "list_tables", _broken)

    response = client.get("/api/schema")

    assert response.status_code == 500
    assert response.json() == {"error": "catalog unavailable"}


def test_practice_questions_endpoints(client: TestClient) -> None:
    listing = client.get("/api/practice/questions")
    assert listing.status_code == 200
    assert listing.json()["total"] == 8

    easy = client.get("/api/practice/questions", params={"difficulty": "easy"}).json()
    assert [question["id"] for question in easy["questions"]] == [1, 2]

    detail = client.get("/api/practice/questions/4")
    assert detail.status_code == 200
    assert detail.json()["title"] == "Find Top 5 Expensive Products"

    missing = client.get("/api/practice/questions/404")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Practice question not found"}


def test_practice_answer_check(client: TestClient) -> None:
    correct = client.post(
        "/api/practice/questions/2/check",
        json={"query": "select *   from users\nwhere age > 30;"},
    )
    assert correct.status_code == 200
    assert correct.json() == {
        "question_id": 2,
        "correct": True,
        "message": "Great job! Your query is correct.",
    }

    wrong = client.post("/api/practice/questions/2/check", json={"query": "SELECT name FROM users"})
    assert wrong.json()["correct"] is False

    blank = client.post("/api/practice/questions/2/check", json={"query": ""})
    assert blank.status_code == 400
    assert blank.json() == {"error": "Query is required"}


def test_query_log_written_per_session(tmp_path: Path) -> None:
    logs_dir = tmp_path / "logs"
    app = create_app(settings=_settings(paths=PathsSettings(query_logs_dir=str(logs_dir))))

    with TestClient(app) as client:
        response = client.post(
            "/api/execute-sql",
            json={"query": "SELECT 1 AS one"},
            headers={"X-Session-Id": "learner-7"},
        )
        assert response.status_code == 200

    files = list(logs_dir.glob("*-learner-7.jsonl"))
    assert len(files) == 1
    events = [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]
    assert [event["event"] for event in events] == ["query_received", "query_completed"]


def test_create_app_loads_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
database:
  seed: 1
  users: 3
  products: 3
  employees: 2
  orders: 2
guard:
  blocked_patterns: ["update"]
""",
        encoding="utf-8",
    )

    with TestClient(create_app(config_path=str(config_path))) as client:
        count = client.post("/api/execute-sql", json={"query": "SELECT COUNT(*) AS n FROM users"})
        assert count.json()["rows"] == [{"n": 3}]
        blocked = client.post("/api/execute-sql", json={"query": "UPDATE users SET age = 1"})
        assert blocked.status_code == 403


def test_debug_events_emit_logs(caplog: pytest.LogCaptureFixture) -> None:
    app = create_app(settings=_settings(), debug_events=True)

    with TestClient(app) as client, caplog.at_level(logging.INFO):
        response = client.post("/api/execute-sql", json={"query": "SELECT 1 AS one"})
        assert response.status_code == 200

    assert "Query[anonymous]" in caplog.text


def test_overflowing_real_renders_as_null(client: TestClient) -> None:
    response = _execute(client, "SELECT 9e999 AS big")

    assert response.status_code == 200
    assert response.json()["rows"] == [{"big": None}]
    assert response.json()["columns"] == ["big"]


def test_unexpected_schema_failure_returns_error_body(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _broken(self: SQLiteStore, table: str) -> list[dict]:
        raise RuntimeError("boom")

    monkeypatch.setattr(SQLiteStore, "table_info", _broken)

    response = client.get("/api/schema")

    assert response.status_code == 500
    assert response.json() == {"error": "boom"}


def test_oversized_session_header_is_capped(tmp_path: Path) -> None:
    logs_dir = tmp_path / "logs"
    app = create_app(settings=_settings(paths=PathsSettings(query_logs_dir=str(logs_dir))))

    with TestClient(app) as client:
        response = client.post(
            "/api/execute-sql",
            json={"query": "SELECT 1 AS one"},
            headers={"X-Session-Id": "a" * 300},
        )
        assert response.status_code == 200
        assert response.json()["rows"] == [{"one": 1}]

    files = list(logs_dir.glob("*.jsonl"))
    assert len(files) == 1
    assert files[0].stem.split("-", 1)[1] == "a" * 64
