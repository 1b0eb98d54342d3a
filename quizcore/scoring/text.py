"""
Free-text similarity scorers: audio-response and diagram-label.
"""

from __future__ import annotations

from quizcore.errors import MalformedAnswerError, TranscriptionError
from quizcore.models import Answer, Question, QuestionType

from . import register
from .base import ScoreResult, ScoringContext, award, require_content, require_response
from .similarity import text_similarity

LABEL_PARTIAL_WEIGHT = 0.5


@register(QuestionType.AUDIO_RESPONSE)
def score_audio_response(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """Transcribe the recording and compare it with the reference answer."""
    reference = require_content(question, "correct_answer", str)
    if answer.response is None:
        raise MalformedAnswerError(f"Answer to {answer.question_id} carries no audio")
    if context.transcriber is None:
        raise TranscriptionError("No audio transcriber configured")

    transcription = context.transcriber.transcribe(answer.response)
    similarity = text_similarity(transcription, reference)
    is_correct = similarity > context.text_full_credit_threshold

    if is_correct:
        feedback = "Correct!"
    else:
        feedback = f"Your response matched {similarity:.0%} of the expected answer."

    return award(
        question,
        similarity,
        is_correct,
        feedback=feedback,
        details={"similarity": similarity, "transcription": transcription},
    )


@register(QuestionType.DIAGRAM_LABEL)
def score_diagram_label(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """
    Per-label similarity.

    A label counts fully at similarity 1 and half when similarity exceeds
    the partial threshold.
    """
    expected: dict[str, str] = require_content(question, "correct_answer", dict)
    submitted: dict[str, str] = require_response(answer, dict, "a mapping of part ids to labels")
    if not expected:
        raise MalformedAnswerError(f"Question {question.id} defines no labels")

    correct = 0
    partial = 0
    for part_id, label in expected.items():
        if part_id not in submitted:
            continue
        similarity = text_similarity(submitted[part_id], label)
        if similarity == 1.0:
            correct += 1
        elif similarity > context.label_partial_threshold:
            partial += 1

    total = len(expected)
    return award(
        question,
        (correct + LABEL_PARTIAL_WEIGHT * partial) / total,
        correct == total,
        feedback=f"{correct}/{total} labels correct, {partial} close",
        details={"correct_labels": correct, "partial_labels": partial},
    )
