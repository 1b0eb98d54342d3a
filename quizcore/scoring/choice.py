"""
Selection and short-text scorers: multiple-choice, true-false, fill-blank.
"""

from __future__ import annotations

from typing import Any

from quizcore.errors import MalformedAnswerError
from quizcore.models import Answer, Question, QuestionType

from . import register
from .base import ScoreResult, ScoringContext, award, require_content, require_response
from .similarity import normalize_text

_BOOLEAN_WORDS = {"true": True, "t": True, "yes": True, "false": False, "f": False, "no": False}


def _as_bool(value: Any) -> Any:
    if isinstance(value, str):
        return _BOOLEAN_WORDS.get(value.strip().lower(), value)
    return value


@register(QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)
def score_choice(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """Exact equality of the selected option with the correct answer."""
    if "correct_answer" not in question.content:
        raise MalformedAnswerError(f"Question {question.id} has no correct_answer")
    expected = question.content["correct_answer"]

    if isinstance(expected, list):
        # Multi-select: order of selection does not matter
        selected = require_response(answer, list, "a list of options")
        is_correct = set(map(str, selected)) == set(map(str, expected))
    elif question.type == QuestionType.TRUE_FALSE.value:
        is_correct = _as_bool(answer.response) == _as_bool(expected)
    else:
        is_correct = answer.response == expected

    return award(
        question,
        1.0 if is_correct else 0.0,
        is_correct,
        details={"expected": expected, "actual": answer.response},
    )


def _accepted(reference: Any) -> list[str]:
    if isinstance(reference, (list, tuple)):
        return [str(item) for item in reference]
    return [str(reference)]


def _matches(response: Any, accepted: list[str]) -> bool:
    if response is None:
        return False
    if str(response) in accepted:
        return True
    normalized = normalize_text(response)
    return any(normalize_text(option) == normalized for option in accepted)


@register(QuestionType.FILL_BLANK)
def score_fill_blank(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """
    Exact or normalized-text equality against the reference answer(s).

    With ``blanks`` in the content the response is a list, one entry per
    blank, and partial credit is the share of blanks filled correctly.
    """
    if "blanks" in question.content:
        blanks = require_content(question, "blanks", list)
        responses = require_response(answer, list, "a list with one entry per blank")
        hits = [
            i < len(responses) and _matches(responses[i], _accepted(blank))
            for i, blank in enumerate(blanks)
        ]
        correct = sum(hits)
        total = len(blanks)
        return award(
            question,
            correct / total if total else 0.0,
            total > 0 and correct == total,
            feedback=f"{correct}/{total} blanks correct",
            details={"correct_blanks": correct, "total_blanks": total},
        )

    reference = require_content(question, "correct_answer", (str, int, float, list))
    is_correct = _matches(answer.response, _accepted(reference))
    return award(
        question,
        1.0 if is_correct else 0.0,
        is_correct,
        feedback="Correct!" if is_correct else f"Incorrect. Expected: {_accepted(reference)[0]}",
    )
