"""In-memory collaborator implementations."""

from .memory import InMemoryAttemptStore, InMemoryQuestionBank, InMemoryQuizRepository

__all__ = [
    "InMemoryAttemptStore",
    "InMemoryQuestionBank",
    "InMemoryQuizRepository",
]
