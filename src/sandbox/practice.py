"""Practice question bank with naive, text-based answer checking."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Literal, Protocol

import yaml

Difficulty = Literal["easy", "medium", "hard"]
DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")

CORRECT_MESSAGE = "Great job! Your query is correct."
INCORRECT_MESSAGE = "Not quite right. Your query doesn't match the expected solution."

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class PracticeQuestion:
    id: int
    title: str
    description: str
    difficulty: str
    hint: str
    expected: str
    solution: str

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class AnswerFeedback:
    correct: bool
    message: str


class PracticeBank(Protocol):
    """Provides the practice questions offered to learners."""

    def load(self) -> list[PracticeQuestion]:  # pragma: no cover - interface
        """Return every available question."""


@dataclass(slots=True)
class YamlPracticeBank(PracticeBank):
    """Loads practice questions from a YAML file containing a top-level list."""

    path: Path

    def load(self) -> list[PracticeQuestion]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or []
        if not isinstance(payload, list):
            raise ValueError("Practice question file must contain a top-level list")
        questions: list[PracticeQuestion] = []
        seen: set[int] = set()
        for entry in payload:
            if not isinstance(entry, dict):
                raise ValueError("Practice question entries must be mappings")
            question = _parse_question(entry)
            if question.id in seen:
                raise ValueError(f"Duplicate practice question id {question.id}")
            seen.add(question.id)
            questions.append(question)
        return questions


def _parse_question(entry: dict[str, Any]) -> PracticeQuestion:
    difficulty = str(entry.get("difficulty", "easy")).lower()
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty '{difficulty}'")
    expected = str(entry.get("expected", "")).strip()
    if not expected:
        raise ValueError(f"Practice question {entry.get('id')} has no expected answer")
    return PracticeQuestion(
        id=int(entry["id"]),
        title=str(entry.get("title", "")),
        description=str(entry.get("description", "")),
        difficulty=difficulty,
        hint=str(entry.get("hint", "")),
        expected=expected,
        solution=str(entry.get("solution") or expected),
    )


def normalize_answer(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()


def check_answer(question: PracticeQuestion, query: str) -> AnswerFeedback:
    """Compare *query* to the expected answer as normalized text.

    This does not execute either statement, so equivalent queries written
    differently are reported as incorrect.
    """

    submitted = normalize_answer(query)
    expected = normalize_answer(question.expected)
    correct = submitted == expected or expected.replace(";", "", 1) in submitted
    return AnswerFeedback(
        correct=correct,
        message=CORRECT_MESSAGE if correct else INCORRECT_MESSAGE,
    )


@dataclass(slots=True)
class PracticeCatalog:
    """In-memory index over the loaded questions."""

    questions: list[PracticeQuestion]

    def questions_for(self, difficulty: str | None = None) -> list[PracticeQuestion]:
        if difficulty is None:
            return list(self.questions)
        wanted = difficulty.lower()
        return [question for question in self.questions if question.difficulty == wanted]

    def get(self, question_id: int) -> PracticeQuestion | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None
