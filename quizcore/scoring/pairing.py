"""
Structure scorers: matching, drag-drop and sequence ordering.
"""

from __future__ import annotations

from typing import Any

from quizcore.errors import MalformedAnswerError
from quizcore.models import Answer, Question, QuestionType

from . import register
from .base import ScoreResult, ScoringContext, award, require_content, require_response


def _same(first: Any, second: Any) -> bool:
    if isinstance(first, str) and isinstance(second, str):
        return first.strip() == second.strip()
    return first == second


@register(QuestionType.MATCHING, QuestionType.DRAG_DROP)
def score_pairs(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """
    Count correctly paired keys over total pairs.

    For matching the keys are terms and the values definitions; for
    drag-drop the keys are item ids and the values drop-zone ids.
    """
    expected: dict[str, Any] = require_content(question, "correct_answer", dict)
    submitted: dict[str, Any] = require_response(answer, dict, "a mapping of pairs")
    if not expected:
        raise MalformedAnswerError(f"Question {question.id} defines no pairs")

    correct = sum(
        1 for key, value in expected.items()
        if key in submitted and _same(submitted[key], value)
    )
    total = len(expected)

    return award(
        question,
        correct / total,
        correct == total,
        feedback=f"{correct}/{total} correct",
        details={"correct_pairs": correct, "total_pairs": total},
    )


@register(QuestionType.SEQUENCE)
def score_sequence(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """Positional equality between the submitted and the correct ordering."""
    expected: list[Any] = require_content(question, "correct_answer", list)
    submitted: list[Any] = require_response(answer, list, "an ordered list")
    if not expected:
        raise MalformedAnswerError(f"Question {question.id} defines an empty sequence")

    correct_positions = sum(
        1 for i, item in enumerate(expected)
        if i < len(submitted) and _same(submitted[i], item)
    )
    is_correct = correct_positions == len(expected) and len(submitted) == len(expected)

    if is_correct:
        feedback = "Correct! All items in the right order."
    else:
        feedback = f"{correct_positions}/{len(expected)} items in correct position."

    return award(
        question,
        correct_positions / len(expected),
        is_correct,
        feedback=feedback,
        details={"correct_positions": correct_positions},
    )
