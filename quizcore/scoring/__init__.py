"""
Question scorers.

Each question type has one pure scoring function registered under its type
tag. A scorer takes ``(question, answer, context)`` and returns a
``ScoreResult``; it never touches attempt state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from quizcore.models import QuestionType

if TYPE_CHECKING:
    from .base import Scorer


# Scorer registry - populated by @register decorator
SCORERS: dict[QuestionType, "Scorer"] = {}


def register(*question_types: QuestionType):
    """Decorator to register a scorer for one or more question types."""
    def decorator(func):
        for question_type in question_types:
            SCORERS[question_type] = func
        return func
    return decorator


def get_scorer(question_type: str | QuestionType) -> "Scorer | None":
    """Get the scorer for a question type."""
    if isinstance(question_type, str):
        try:
            question_type = QuestionType(question_type.lower())
        except ValueError:
            return None
    return SCORERS.get(question_type)


# Import scorers to trigger registration
from . import choice
from . import pairing
from . import spatial
from . import text
from . import equation
from . import composite

__all__ = [
    "SCORERS",
    "get_scorer",
    "register",
]
