"""
Scorers that aggregate other results or defer to people:
case-study, peer-review, essay and coding.
"""

from __future__ import annotations

from typing import Any

from quizcore.errors import MalformedAnswerError
from quizcore.models import Answer, PeerReview, Question, QuestionType

from . import register
from .base import ScoreResult, ScoringContext, award, pending_review

FULL_MARKS_EPSILON = 1e-9


# =============================================================================
# Case study
# =============================================================================


def _sub_answers(answer: Answer) -> dict[str, Any]:
    """
    Sub-answers keyed by sub-question id.

    Accepts ``{"q1": ..., "q2": ...}`` or a list of answer objects.
    """
    response = answer.response
    if response is None:
        return {}
    if isinstance(response, dict):
        return response
    if isinstance(response, list):
        keyed = {}
        for item in response:
            if not isinstance(item, dict) or "question_id" not in item:
                raise MalformedAnswerError(
                    f"Case-study answer {answer.question_id} has an entry without question_id"
                )
            keyed[item["question_id"]] = item.get("response")
        return keyed
    raise MalformedAnswerError(f"Case-study answer {answer.question_id} must be a mapping or list")


@register(QuestionType.CASE_STUDY)
def score_case_study(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """
    Score every sub-question with its own scorer and sum the results.

    The parent's ``points`` is ignored. An ungraded sub-result counts 0 and
    marks the whole case study as pending review.
    """
    sub_questions = question.sub_questions
    if not sub_questions:
        raise MalformedAnswerError(f"Case study {question.id} has no sub-questions")
    responses = _sub_answers(answer)

    earned = 0.0
    pending = False
    all_correct = True
    breakdown = []
    for sub_question in sub_questions:
        if sub_question.id in responses:
            sub_answer = Answer(question_id=sub_question.id, response=responses[sub_question.id])
            result = context.score(sub_question, sub_answer)
        else:
            result = ScoreResult(
                points=0.0,
                max_points=sub_question.max_points,
                correct=False,
                feedback="No answer provided.",
            )

        if result.pending:
            pending = True
        else:
            earned += result.points
        all_correct = all_correct and result.correct
        breakdown.append({
            "question_id": sub_question.id,
            "points": result.points,
            "max_points": result.max_points,
            "correct": result.correct,
        })

    max_points = question.max_points
    details: dict[str, Any] = {"sub_results": breakdown}
    if pending:
        details["status"] = "pending_review"
        return ScoreResult(
            points=None,
            max_points=max_points,
            correct=False,
            feedback="Part of this case study awaits review.",
            details={**details, "provisional_points": earned},
        )

    return ScoreResult(
        points=earned,
        max_points=max_points,
        correct=all_correct,
        feedback=f"{earned:g}/{max_points:g} points across {len(sub_questions)} parts",
        details=details,
    )


# =============================================================================
# Peer review
# =============================================================================


def weighted_review_average(reviews: list[PeerReview], weight_for) -> float:
    """
    Rubric-weighted mean of reviewer scores in [0, 1].

    Raises:
        MalformedAnswerError: If the reviews carry no weight at all
    """
    weighted = 0.0
    total_weight = 0.0
    for review in reviews:
        for criterion, score in review.scores.items():
            weight = weight_for(criterion)
            weighted += min(max(float(score), 0.0), 1.0) * weight
            total_weight += weight
    if total_weight <= 0:
        raise MalformedAnswerError("Peer reviews carry no weighted scores")
    return weighted / total_weight


@register(QuestionType.PEER_REVIEW)
def score_peer_review(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    config = question.scoring.peer_review
    if config is None or not config.enabled:
        return pending_review(question, "Awaiting peer review.", reviews=len(answer.peer_reviews))

    received = len(answer.peer_reviews)
    if received < config.min_reviewers:
        return pending_review(
            question,
            f"Awaiting peer review ({received}/{config.min_reviewers} reviews).",
            reviews=received,
            required=config.min_reviewers,
        )

    average = weighted_review_average(answer.peer_reviews, config.weight_for)
    return award(
        question,
        average,
        average >= 1.0 - FULL_MARKS_EPSILON,
        feedback=f"Peer review average: {average:.0%}",
        details={"average": average, "reviews": received},
    )


# =============================================================================
# Manual grading
# =============================================================================


@register(QuestionType.ESSAY, QuestionType.CODING)
def score_manual(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """Essays and code go to an instructor; nothing is awarded here."""
    return pending_review(question, "Submitted for instructor review.")
