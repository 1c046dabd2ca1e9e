"""FastAPI-powered backend for the interactive SQL learning sandbox."""

from __future__ import annotations

import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Literal

from fastapi import FastAPI, Header, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from src.core.config import Settings, load_settings
from src.core.dependencies import build_dependencies
from src.core.errors import NotFoundError, SandboxError
from src.core.logging_utils import truncate_for_log
from src.sandbox.practice import PracticeQuestion, check_answer
from src.sandbox.service import DEFAULT_SESSION_ID, QUERY_REQUIRED_MESSAGE, require_query


LOGGER = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]
FRONTEND_DIR = REPO_ROOT / "assets" / "frontend"
EXECUTE_SQL_PATH = "/api/execute-sql"


class ExecuteSqlRequest(BaseModel):
    # Left untyped so a non-string query maps to "Query is required" rather than a 422.
    query: Any = None


class PracticeQuestionResponse(BaseModel):
    id: int
    title: str
    description: str
    difficulty: str
    hint: str
    expected: str
    solution: str


class PracticeQuestionListResponse(BaseModel):
    questions: list[PracticeQuestionResponse]
    total: int


class CheckAnswerRequest(BaseModel):
    query: Any = None


class CheckAnswerResponse(BaseModel):
    question_id: int
    correct: bool
    message: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = Field("ok")


def _question_response(question: PracticeQuestion) -> PracticeQuestionResponse:
    return PracticeQuestionResponse(**question.to_payload())


async def _sandbox_error_handler(request: Request, exc: SandboxError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    if request.url.path == EXECUTE_SQL_PATH:
        LOGGER.warning("Execute request rejected: unreadable body")
        return JSONResponse({"error": QUERY_REQUIRED_MESSAGE}, status_code=400)
    return await request_validation_exception_handler(request, exc)


def create_app(
    config_path: str = "configs/dev.yaml",
    *,
    settings: Settings | None = None,
    debug_events: bool = False,
) -> FastAPI:
    if settings is None:
        LOGGER.info("Initialising web application with config '%s'", config_path)
        settings = load_settings(config_path)
    dependencies = build_dependencies(settings)
    sandbox = dependencies.sandbox
    practice = dependencies.practice

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        LOGGER.info("Shutting down; discarding in-memory store")
        dependencies.store.close()

    app = FastAPI(title="SQL Learning Sandbox", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.dependencies = dependencies
    app.state.debug_events = debug_events
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SandboxError, _sandbox_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    if FRONTEND_DIR.exists():
        app.mount("/assets", StaticFiles(directory=str(FRONTEND_DIR), html=False), name="assets")

    @app.get("/", response_model=None)
    def index():  # type: ignore[override]
        if FRONTEND_DIR.exists():
            index_path = FRONTEND_DIR / "index.html"
            if index_path.exists():
                return FileResponse(index_path)
        return JSONResponse({"message": "Frontend assets not found"}, status_code=404)

    @app.get("/api/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:  # pragma: no cover - trivial
        return HealthResponse()

    # The store handlers are coroutines so every statement runs on the event
    # loop thread, one at a time.
    @app.post(EXECUTE_SQL_PATH, response_model=None)
    async def execute_sql(
        payload: ExecuteSqlRequest | None = None,
        x_session_id: str | None = Header(None),
    ) -> JSONResponse:
        query = payload.query if payload is not None else None
        session_id = x_session_id or DEFAULT_SESSION_ID
        LOGGER.info(
            "Execute request session_id=%s query=%s",
            session_id,
            truncate_for_log(query) if isinstance(query, str) else None,
        )
        envelope = sandbox.execute(query, session_id=session_id)
        if debug_events:
            LOGGER.info(
                "Query[%s] columns=%s rows=%s time=%sms",
                session_id,
                envelope.columns,
                len(envelope.rows),
                envelope.metadata.execution_time,
            )
        return JSONResponse(envelope.to_payload())

    @app.get("/api/schema", response_model=None)
    async def get_schema() -> JSONResponse:
        LOGGER.debug("Schema requested")
        return JSONResponse(sandbox.describe_schema().to_payload())

    @app.get("/api/practice/questions", response_model=PracticeQuestionListResponse)
    def list_practice_questions(
        difficulty: Literal["easy", "medium", "hard"] | None = Query(None),
    ) -> PracticeQuestionListResponse:
        questions = practice.questions_for(difficulty)
        return PracticeQuestionListResponse(
            questions=[_question_response(question) for question in questions],
            total=len(questions),
        )

    @app.get("/api/practice/questions/{question_id}", response_model=PracticeQuestionResponse)
    def get_practice_question(question_id: int) -> PracticeQuestionResponse:
        question = practice.get(question_id)
        if question is None:
            raise NotFoundError("Practice question not found")
        return _question_response(question)

    @app.post(
        "/api/practice/questions/{question_id}/check",
        response_model=CheckAnswerResponse,
    )
    def check_practice_answer(question_id: int, payload: CheckAnswerRequest) -> CheckAnswerResponse:
        question = practice.get(question_id)
        if question is None:
            raise NotFoundError("Practice question not found")
        query = require_query(payload.query)
        feedback = check_answer(question, query)
        LOGGER.info(
            "Practice answer checked question_id=%s correct=%s",
            question_id,
            feedback.correct,
        )
        return CheckAnswerResponse(
            question_id=question_id,
            correct=feedback.correct,
            message=feedback.message,
        )

    return app


def _configure_logging(debug: bool) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        if debug:
            root_logger.setLevel(logging.DEBUG)
        return
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Launch the SQL sandbox server")
    parser.add_argument("--config", default="configs/dev.yaml", help="Path to configuration file")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind the server")
    parser.add_argument("--port", type=int, default=5000, help="Port to bind the server")
    parser.add_argument(
        "--debug-events",
        action="store_true",
        help="Log a summary of every executed statement",
    )
    args = parser.parse_args()

    _configure_logging(debug=args.debug_events)
    app = create_app(config_path=args.config, debug_events=args.debug_events)

    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise SystemExit("uvicorn must be installed to run the server") from exc

    LOGGER.info(
        "Starting uvicorn on %s:%s (debug_events=%s)",
        args.host,
        args.port,
        args.debug_events,
    )
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
