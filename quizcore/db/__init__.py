"""SQL persistence for quizzes, question definitions and attempts."""

from .base import Base
from .database import get_engine, get_session_factory, init_db, make_engine, session_scope
from .repositories import SqlAttemptStore, SqlQuestionBank, SqlQuizRepository

__all__ = [
    "Base",
    "SqlAttemptStore",
    "SqlQuestionBank",
    "SqlQuizRepository",
    "get_engine",
    "get_session_factory",
    "init_db",
    "make_engine",
    "session_scope",
]
