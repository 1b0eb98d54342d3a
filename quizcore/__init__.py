"""
quizcore: quiz attempt lifecycle and multi-type scoring engine.
"""

from quizcore.attempts import AttemptLifecycleManager
from quizcore.errors import AssessmentError
from quizcore.models import (
    Answer,
    AttemptStatus,
    Question,
    QuestionFeedback,
    QuestionType,
    Quiz,
    QuizAttempt,
)
from quizcore.scoring.dispatcher import GradingOutcome, ScoringDispatcher
from quizcore.statistics import AttemptStatistics, StatisticsCalculator

__version__ = "0.1.0"

__all__ = [
    "Answer",
    "AssessmentError",
    "AttemptLifecycleManager",
    "AttemptStatistics",
    "AttemptStatus",
    "GradingOutcome",
    "Question",
    "QuestionFeedback",
    "QuestionType",
    "Quiz",
    "QuizAttempt",
    "ScoringDispatcher",
    "StatisticsCalculator",
]
