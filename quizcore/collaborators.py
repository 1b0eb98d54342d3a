"""
Collaborator protocols consumed by the assessment engine.

Concrete implementations live in quizcore.stores (in-memory),
quizcore.db (SQLAlchemy) and quizcore.integrations (HTTP).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from quizcore.models import AttemptStatus, Question, Quiz, QuizAttempt, QuizStats


class QuizRepository(Protocol):
    """Read access to quiz configuration plus the rolling stats write-back."""

    def get(self, quiz_id: str) -> Quiz | None:
        ...

    def save_stats(self, quiz_id: str, stats: QuizStats) -> None:
        ...


class QuestionBank(Protocol):
    """Question definitions, including correct answers."""

    def get_questions(self, quiz_id: str) -> list[Question]:
        ...


class AttemptStore(Protocol):
    """Attempt persistence with an atomic status-guarded update."""

    def load(self, attempt_id: str) -> QuizAttempt | None:
        ...

    def create(self, attempt: QuizAttempt) -> None:
        ...

    def update_if_status(self, attempt: QuizAttempt, expected: AttemptStatus) -> bool:
        """Persist the attempt only if the stored status still equals ``expected``."""
        ...

    def count_by_user_and_status(
        self, quiz_id: str, user_id: str, statuses: Sequence[AttemptStatus]
    ) -> int:
        ...

    def list_by_quiz(
        self,
        quiz_id: str,
        statuses: Sequence[AttemptStatus],
        user_id: str | None = None,
    ) -> list[QuizAttempt]:
        ...


class CompletionLookup(Protocol):
    """Answers whether a user completed a quiz, module or assignment."""

    def is_completed(self, reference: str, user_id: str, minimum_score: float = 0) -> bool:
        ...


class AudioTranscriber(Protocol):
    """Speech-to-text for audio-response answers."""

    def transcribe(self, audio: Any) -> str:
        ...


class StatsRefresher(Protocol):
    """Recomputes a quiz's rolling statistics after a submission."""

    def refresh(self, quiz_id: str) -> None:
        ...
