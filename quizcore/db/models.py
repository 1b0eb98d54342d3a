"""
SQLAlchemy models for quizzes, question definitions and attempts.

Implements:
- QuizRecord: quiz configuration (settings, schedule, prerequisites, stats as JSON)
- QuizQuestionRecord: one question definition, including correct answers
- QuizAttemptRecord: attempt row; status is a real column so the
  conditional update can filter on it, the rest of the aggregate is JSON
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType


class QuizRecord(Base):
    __tablename__ = "quizzes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(16), default="draft", index=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    schedule: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    prerequisites: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    stats: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)

    def __repr__(self) -> str:
        return f"<QuizRecord id={self.id} status={self.status}>"


class QuizQuestionRecord(Base):
    """
    Question definition.

    ``definition`` holds the full Question model (content with answers,
    scoring). ``position`` keeps the authoring order.
    """

    __tablename__ = "quiz_questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    quiz_id: Mapped[str] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    question_type: Mapped[str] = mapped_column(String(32), nullable=False)
    definition: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)

    def __repr__(self) -> str:
        return f"<QuizQuestionRecord id={self.id} type={self.question_type}>"


class QuizAttemptRecord(Base):
    __tablename__ = "quiz_attempts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    quiz_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    score: Mapped[float] = mapped_column(Float, default=0.0)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)

    __table_args__ = (
        Index("idx_attempts_quiz_user_status", "quiz_id", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<QuizAttemptRecord id={self.id} status={self.status} score={self.score}>"
