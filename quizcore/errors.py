"""
Error taxonomy for the assessment engine.

Every lifecycle precondition fails with one of these before anything is
written. Callers (thin controllers) map ``code`` to their own transport.
"""

from __future__ import annotations


class AssessmentError(Exception):
    """Base class for all assessment engine errors."""

    code = "assessment_error"

    def __init__(self, message: str | None = None):
        self.message = message or (self.__doc__ or self.code).strip()
        super().__init__(self.message)


# =============================================================================
# Not found / forbidden
# =============================================================================


class NotFoundError(AssessmentError):
    """Requested entity does not exist."""

    code = "not_found"


class QuizNotFoundError(NotFoundError):
    """Quiz not found."""


class AttemptNotFoundError(NotFoundError):
    """Quiz attempt not found."""


class ForbiddenError(AssessmentError):
    """Not authorized to act on this attempt."""

    code = "forbidden"


# =============================================================================
# State errors
# =============================================================================


class InvalidStateError(AssessmentError):
    """Operation not allowed in the current state."""

    code = "invalid_state"


class QuizNotAvailableError(InvalidStateError):
    """Quiz is not available."""


class AlreadySubmittedError(InvalidStateError):
    """Quiz already submitted."""


class NotReadyForReviewError(InvalidStateError):
    """Quiz not ready for review."""


class LimitExceededError(AssessmentError):
    """A configured limit has been reached."""

    code = "limit_exceeded"


class MaxAttemptsReachedError(LimitExceededError):
    """Maximum attempts reached."""


class SchedulingError(AssessmentError):
    """Outside the quiz availability window."""

    code = "scheduling_error"


class QuizNotStartedError(SchedulingError):
    """Quiz has not started yet."""


class QuizEndedError(SchedulingError):
    """Quiz has ended."""


class PrerequisitesNotMetError(AssessmentError):
    """Prerequisites not completed."""

    code = "prerequisites_not_met"


# =============================================================================
# Scoring errors
# =============================================================================


class UnsupportedQuestionTypeError(AssessmentError):
    """Question type has no registered scorer (data/config defect)."""

    code = "unsupported_question_type"

    def __init__(self, question_type: str):
        super().__init__(f"Unsupported question type: {question_type}")
        self.question_type = question_type


class MalformedAnswerError(AssessmentError):
    """Submitted answer or question content has an unexpected shape."""

    code = "malformed_answer"


class TranscriptionError(AssessmentError):
    """Audio response could not be transcribed."""

    code = "transcription_failed"
