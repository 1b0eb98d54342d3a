"""
SQLAlchemy-backed collaborators.

Every method opens its own transactional scope, so the stores can be
shared between threads. Pass a ``sessionmaker`` to bind them to a
specific engine (tests use in-memory SQLite).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, sessionmaker

from quizcore.models import AttemptStatus, Question, Quiz, QuizAttempt, QuizStats

from .database import session_scope
from .models import QuizAttemptRecord, QuizQuestionRecord, QuizRecord


def _status_values(statuses: Sequence[AttemptStatus]) -> list[str]:
    return [AttemptStatus(status).value for status in statuses]


# =============================================================================
# Quizzes
# =============================================================================


class SqlQuizRepository:
    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self.session_factory = session_factory

    def add(self, quiz: Quiz) -> None:
        """Insert or replace a quiz."""
        data = quiz.model_dump(mode="json")
        with session_scope(self.session_factory) as session:
            session.merge(
                QuizRecord(
                    id=quiz.id,
                    title=quiz.title,
                    status=quiz.status.value,
                    settings=data["settings"],
                    schedule=data["schedule"],
                    prerequisites=data["prerequisites"],
                    stats=data["stats"],
                )
            )

    def get(self, quiz_id: str) -> Quiz | None:
        with session_scope(self.session_factory) as session:
            record = session.get(QuizRecord, quiz_id)
            if record is None:
                return None
            return Quiz.model_validate(
                {
                    "id": record.id,
                    "title": record.title,
                    "status": record.status,
                    "settings": record.settings or {},
                    "schedule": record.schedule or {},
                    "prerequisites": record.prerequisites or [],
                    "stats": record.stats or {},
                }
            )

    def save_stats(self, quiz_id: str, stats: QuizStats) -> None:
        with session_scope(self.session_factory) as session:
            session.execute(
                update(QuizRecord)
                .where(QuizRecord.id == quiz_id)
                .values(stats=stats.model_dump(mode="json"))
                .execution_options(synchronize_session=False)
            )


# =============================================================================
# Question bank
# =============================================================================


class SqlQuestionBank:
    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self.session_factory = session_factory

    def add(self, quiz_id: str, questions: Iterable[Question]) -> None:
        """Append question definitions to a quiz, after any existing ones."""
        with session_scope(self.session_factory) as session:
            position = session.scalar(
                select(func.count()).select_from(QuizQuestionRecord).where(
                    QuizQuestionRecord.quiz_id == quiz_id
                )
            ) or 0
            for question in questions:
                session.merge(
                    QuizQuestionRecord(
                        id=question.id,
                        quiz_id=quiz_id,
                        position=position,
                        question_type=question.type,
                        definition=question.model_dump(mode="json"),
                    )
                )
                position += 1

    def get_questions(self, quiz_id: str) -> list[Question]:
        with session_scope(self.session_factory) as session:
            records = session.scalars(
                select(QuizQuestionRecord)
                .where(QuizQuestionRecord.quiz_id == quiz_id)
                .order_by(QuizQuestionRecord.position)
            ).all()
            return [Question.model_validate(record.definition) for record in records]


# =============================================================================
# Attempts
# =============================================================================


class SqlAttemptStore:
    """
    Attempt store whose status transitions are single conditional UPDATEs.

    ``update_if_status`` issues ``UPDATE ... WHERE id = :id AND status =
    :expected`` and reports whether exactly one row changed.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self.session_factory = session_factory

    def load(self, attempt_id: str) -> QuizAttempt | None:
        with session_scope(self.session_factory) as session:
            record = session.get(QuizAttemptRecord, attempt_id)
            return QuizAttempt.model_validate(record.payload) if record else None

    def create(self, attempt: QuizAttempt) -> None:
        with session_scope(self.session_factory) as session:
            session.add(
                QuizAttemptRecord(
                    id=attempt.id,
                    quiz_id=attempt.quiz_id,
                    user_id=attempt.user_id,
                    status=attempt.status.value,
                    score=attempt.score,
                    start_time=attempt.start_time,
                    end_time=attempt.end_time,
                    payload=attempt.model_dump(mode="json"),
                )
            )

    def update_if_status(self, attempt: QuizAttempt, expected: AttemptStatus) -> bool:
        with session_scope(self.session_factory) as session:
            result = session.execute(
                update(QuizAttemptRecord)
                .where(
                    QuizAttemptRecord.id == attempt.id,
                    QuizAttemptRecord.status == AttemptStatus(expected).value,
                )
                .values(
                    status=attempt.status.value,
                    score=attempt.score,
                    end_time=attempt.end_time,
                    payload=attempt.model_dump(mode="json"),
                )
                .execution_options(synchronize_session=False)
            )
            updated = result.rowcount == 1
        if not updated:
            logger.debug(f"Conditional update of attempt {attempt.id} lost (expected {expected})")
        return updated

    def count_by_user_and_status(
        self, quiz_id: str, user_id: str, statuses: Sequence[AttemptStatus]
    ) -> int:
        with session_scope(self.session_factory) as session:
            return session.scalar(
                select(func.count())
                .select_from(QuizAttemptRecord)
                .where(
                    QuizAttemptRecord.quiz_id == quiz_id,
                    QuizAttemptRecord.user_id == user_id,
                    QuizAttemptRecord.status.in_(_status_values(statuses)),
                )
            ) or 0

    def list_by_quiz(
        self,
        quiz_id: str,
        statuses: Sequence[AttemptStatus],
        user_id: str | None = None,
    ) -> list[QuizAttempt]:
        query = select(QuizAttemptRecord).where(
            QuizAttemptRecord.quiz_id == quiz_id,
            QuizAttemptRecord.status.in_(_status_values(statuses)),
        )
        if user_id is not None:
            query = query.where(QuizAttemptRecord.user_id == user_id)

        with session_scope(self.session_factory) as session:
            records = session.scalars(query.order_by(QuizAttemptRecord.start_time)).all()
            return [QuizAttempt.model_validate(record.payload) for record in records]
