"""
Base types shared by all question scorers.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from quizcore.errors import MalformedAnswerError
from quizcore.models import Answer, Question

if TYPE_CHECKING:
    from quizcore.collaborators import AudioTranscriber


@dataclass
class ScoreResult:
    """
    Result of scoring one answer.

    ``points`` is None when the question cannot be graded automatically yet
    (essay, coding, peer review below quorum). Callers must keep that apart
    from a numeric zero.
    """

    points: float | None
    max_points: float
    correct: bool
    feedback: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def pending(self) -> bool:
        return self.points is None

    def clamped(self) -> ScoreResult:
        """Return a copy with points forced into [0, max_points]."""
        if self.points is None:
            return self
        points = min(max(self.points, 0.0), self.max_points)
        return ScoreResult(
            points=points,
            max_points=self.max_points,
            correct=self.correct,
            feedback=self.feedback,
            details=self.details,
        )


@dataclass(frozen=True)
class ScoringContext:
    """Collaborators and thresholds handed to every scorer."""

    score: Callable[[Question, Answer], ScoreResult]
    transcriber: AudioTranscriber | None = None
    math_tolerance: float = 0.0001
    math_sample_points: Sequence[float] = (-2.0, -1.0, 0.0, 1.0, 2.0)
    text_full_credit_threshold: float = 0.8
    label_partial_threshold: float = 0.7


Scorer = Callable[[Question, Answer, ScoringContext], ScoreResult]


def award(
    question: Question,
    fraction: float,
    full: bool,
    feedback: str = "",
    details: dict[str, Any] | None = None,
) -> ScoreResult:
    """
    Apply the question's partial-credit policy.

    Args:
        question: Question being scored
        fraction: Share of the points earned under partial credit (0.0-1.0)
        full: Whether the answer meets the all-or-nothing criterion
        feedback: Message for the learner
        details: Diagnostic data

    Returns:
        ScoreResult with points in [0, points]
    """
    points = question.scoring.points
    if question.scoring.partial_credit:
        earned = min(max(fraction, 0.0), 1.0) * points
    else:
        earned = points if full else 0.0

    return ScoreResult(
        points=earned,
        max_points=points,
        correct=full,
        feedback=feedback or ("Correct!" if full else "Incorrect."),
        details=details or {},
    )


def pending_review(question: Question, feedback: str, **details: Any) -> ScoreResult:
    """Ungraded result awaiting a human or peer decision."""
    return ScoreResult(
        points=None,
        max_points=question.max_points,
        correct=False,
        feedback=feedback,
        details={"status": "pending_review", **details},
    )


def require_content(question: Question, key: str, kind: type | tuple[type, ...]) -> Any:
    """Fetch a content field, raising MalformedAnswerError when missing or mistyped."""
    value = question.content.get(key)
    if not isinstance(value, kind):
        raise MalformedAnswerError(
            f"Question {question.id} ({question.type}) has no valid '{key}' in content"
        )
    return value


def require_response(answer: Answer, kind: type | tuple[type, ...], what: str) -> Any:
    """Fetch the response, raising MalformedAnswerError when it has the wrong shape."""
    if not isinstance(answer.response, kind):
        raise MalformedAnswerError(
            f"Answer to {answer.question_id} must be {what}, got {type(answer.response).__name__}"
        )
    return answer.response
