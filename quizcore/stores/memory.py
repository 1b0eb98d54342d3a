"""
Thread-safe in-memory stores.

Used by tests, the offline CLI and embedders that keep state elsewhere.
Every read and write goes through a deep copy so callers never share
mutable state with the store.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from quizcore.models import AttemptStatus, Question, Quiz, QuizAttempt, QuizStats


class InMemoryQuizRepository:
    def __init__(self, quizzes: Iterable[Quiz] = ()):
        self._lock = threading.Lock()
        self._quizzes: dict[str, Quiz] = {quiz.id: quiz.model_copy(deep=True) for quiz in quizzes}

    def add(self, quiz: Quiz) -> None:
        with self._lock:
            self._quizzes[quiz.id] = quiz.model_copy(deep=True)

    def get(self, quiz_id: str) -> Quiz | None:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
            return quiz.model_copy(deep=True) if quiz else None

    def save_stats(self, quiz_id: str, stats: QuizStats) -> None:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
            if quiz is not None:
                quiz.stats = stats.model_copy()


class InMemoryQuestionBank:
    def __init__(self, questions: dict[str, list[Question]] | None = None):
        self._questions: dict[str, list[Question]] = {
            quiz_id: list(items) for quiz_id, items in (questions or {}).items()
        }

    def add(self, quiz_id: str, *questions: Question) -> None:
        self._questions.setdefault(quiz_id, []).extend(questions)

    def get_questions(self, quiz_id: str) -> list[Question]:
        return [question.model_copy(deep=True) for question in self._questions.get(quiz_id, [])]


class InMemoryAttemptStore:
    """
    Attempt store guarded by a single lock.

    ``update_if_status`` is the compare-and-swap that keeps two concurrent
    submissions from both grading the same attempt.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._attempts: dict[str, QuizAttempt] = {}

    def load(self, attempt_id: str) -> QuizAttempt | None:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
            return attempt.model_copy(deep=True) if attempt else None

    def create(self, attempt: QuizAttempt) -> None:
        with self._lock:
            if attempt.id in self._attempts:
                raise ValueError(f"Attempt {attempt.id} already exists")
            self._attempts[attempt.id] = attempt.model_copy(deep=True)

    def update_if_status(self, attempt: QuizAttempt, expected: AttemptStatus) -> bool:
        with self._lock:
            current = self._attempts.get(attempt.id)
            if current is None or current.status != expected:
                return False
            self._attempts[attempt.id] = attempt.model_copy(deep=True)
            return True

    def count_by_user_and_status(
        self, quiz_id: str, user_id: str, statuses: Sequence[AttemptStatus]
    ) -> int:
        with self._lock:
            return sum(
                1 for attempt in self._attempts.values()
                if attempt.quiz_id == quiz_id
                and attempt.user_id == user_id
                and attempt.status in statuses
            )

    def list_by_quiz(
        self,
        quiz_id: str,
        statuses: Sequence[AttemptStatus],
        user_id: str | None = None,
    ) -> list[QuizAttempt]:
        with self._lock:
            return [
                attempt.model_copy(deep=True)
                for attempt in self._attempts.values()
                if attempt.quiz_id == quiz_id
                and attempt.status in statuses
                and (user_id is None or attempt.user_id == user_id)
            ]
