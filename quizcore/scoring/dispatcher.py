"""
Scoring dispatcher.

Looks up the scorer for each question type, runs it with a shared
ScoringContext, and folds per-question results into a GradingOutcome.

Usage:
    dispatcher = ScoringDispatcher(transcriber=HttpAudioTranscriber(...))
    outcome = dispatcher.grade(questions, answers)
    outcome.score          # percentage of points_possible
    outcome.feedback       # one QuestionFeedback per question, in order
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from quizcore.errors import UnsupportedQuestionTypeError
from quizcore.models import Answer, Question, QuestionFeedback

from . import get_scorer
from .base import ScoreResult, ScoringContext

if TYPE_CHECKING:
    from config import Settings
    from quizcore.collaborators import AudioTranscriber


@dataclass
class GradingOutcome:
    """Per-question feedback plus attempt totals."""

    feedback: list[QuestionFeedback] = field(default_factory=list)
    points_earned: float = 0.0
    points_possible: float = 0.0
    pending_review: bool = False

    @property
    def score(self) -> float:
        """Percentage of points_possible earned, rounded to 2 decimals."""
        if self.points_possible <= 0:
            return 0.0
        return round(self.points_earned / self.points_possible * 100, 2)


class ScoringDispatcher:
    """
    Routes each question to its registered scorer.

    Unknown question types raise UnsupportedQuestionTypeError. Any other
    failure inside a scorer is logged and scored as 0 so one malformed
    question never blocks the rest of the attempt.
    """

    def __init__(
        self,
        transcriber: AudioTranscriber | None = None,
        settings: Settings | None = None,
        max_workers: int | None = None,
    ):
        if settings is None:
            from config import get_settings

            settings = get_settings()

        self.max_workers = max_workers or settings.scoring_max_workers
        self.context = ScoringContext(
            score=self.score_question,
            transcriber=transcriber,
            math_tolerance=settings.math_tolerance,
            math_sample_points=tuple(settings.math_sample_points),
            text_full_credit_threshold=settings.text_full_credit_threshold,
            label_partial_threshold=settings.label_partial_threshold,
        )

    def score_question(self, question: Question, answer: Answer) -> ScoreResult:
        """
        Score one answer.

        Raises:
            UnsupportedQuestionTypeError: No scorer is registered for the type
        """
        scorer = get_scorer(question.type)
        if scorer is None:
            raise UnsupportedQuestionTypeError(question.type)

        try:
            result = scorer(question, answer, self.context)
        except UnsupportedQuestionTypeError:
            raise
        except Exception as e:
            logger.warning(f"Scoring failed for question {question.id} ({question.type}): {e}")
            return ScoreResult(
                points=0.0,
                max_points=question.max_points,
                correct=False,
                feedback="This answer could not be scored.",
                details={"error": str(e), "error_type": type(e).__name__},
            )

        return result.clamped()

    def grade(self, questions: list[Question], answers: list[Answer]) -> GradingOutcome:
        """
        Score a full submission against the given question definitions.

        Answers for ids outside ``questions`` are ignored; when one question
        has several answers the last one wins; a question without an answer
        earns 0.
        """
        known = {question.id for question in questions}
        by_question: dict[str, Answer] = {}
        for answer in answers:
            if answer.question_id not in known:
                logger.warning(f"Ignoring answer for unknown question {answer.question_id}")
                continue
            if answer.question_id in by_question:
                logger.warning(f"Duplicate answer for question {answer.question_id}, keeping the last one")
            by_question[answer.question_id] = answer

        # Unknown types fail the whole submission before anything is scored
        for question in questions:
            if get_scorer(question.type) is None:
                raise UnsupportedQuestionTypeError(question.type)

        answered = [(q, by_question[q.id]) for q in questions if q.id in by_question]
        if self.max_workers > 1 and len(answered) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(lambda pair: self.score_question(*pair), answered))
        else:
            results = [self.score_question(question, answer) for question, answer in answered]
        scored = {question.id: result for (question, _), result in zip(answered, results)}

        outcome = GradingOutcome()
        for question in questions:
            result = scored.get(question.id)
            if result is None:
                result = ScoreResult(
                    points=0.0,
                    max_points=question.max_points,
                    correct=False,
                    feedback="No answer provided.",
                )
            outcome.feedback.append(_to_feedback(question, result))
            outcome.points_possible += result.max_points
            if result.pending:
                outcome.pending_review = True
            else:
                outcome.points_earned += result.points

        logger.debug(
            "Graded {} questions: {}/{} points{}",
            len(questions),
            outcome.points_earned,
            outcome.points_possible,
            " (pending review)" if outcome.pending_review else "",
        )
        return outcome


def _to_feedback(question: Question, result: ScoreResult) -> QuestionFeedback:
    suggestions = []
    if not result.correct and not result.pending and question.explanation:
        suggestions.append("Review the explanation for this question.")
    return QuestionFeedback(
        question_id=question.id,
        correct=result.correct,
        points=result.points,
        max_points=result.max_points,
        message=result.feedback,
        explanation=question.explanation,
        suggestions=suggestions,
        pending_review=result.pending,
    )
