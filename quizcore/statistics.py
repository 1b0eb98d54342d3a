"""
Quiz statistics and item analysis.

Computes:
- Attempt-level aggregates (average score, pass rate, time on task)
- Score distribution in five 20-point bins
- Spread (median, population standard deviation, quartiles)
- Per-question discrimination index and difficulty

Only finished attempts (completed or graded) are considered. Empty input
always yields a zero-valued result.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np

from quizcore.models import (
    FINISHED_STATUSES,
    AttemptStatus,
    Question,
    QuizAttempt,
    QuizStats,
)

# Upper bound of each bucket (inclusive)
SCORE_BUCKETS: tuple[tuple[str, float], ...] = (
    ("0-20", 20),
    ("21-40", 40),
    ("41-60", 60),
    ("61-80", 80),
    ("81-100", math.inf),
)

DEFAULT_GROUP_FRACTION = 0.27
MIN_MEANINGFUL_ATTEMPTS = 2

EASY_THRESHOLD = 0.8
MEDIUM_THRESHOLD = 0.4


# =============================================================================
# Data Models
# =============================================================================


def _empty_distribution() -> dict[str, int]:
    return {label: 0 for label, _ in SCORE_BUCKETS}


@dataclass
class AttemptStatistics:
    """Aggregate statistics over the finished attempts of one quiz."""

    total_attempts: int = 0
    completions: int = 0
    average_score: float = 0.0
    pass_rate: float = 0.0
    average_time: float = 0.0  # seconds
    score_distribution: dict[str, int] = field(default_factory=_empty_distribution)
    median_score: float = 0.0
    score_std_dev: float = 0.0
    percentiles: dict[int, float] = field(default_factory=dict)

    def to_quiz_stats(self) -> QuizStats:
        return QuizStats(
            attempts=self.total_attempts,
            completions=self.completions,
            average_score=self.average_score,
            pass_rate=self.pass_rate,
            average_time=self.average_time,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ItemStatistics:
    """Psychometric summary of one question."""

    question_id: str
    responses: int = 0
    correct_rate: float = 0.0
    difficulty: str = "unknown"  # easy, medium, hard
    discrimination: float = 0.0
    advisory: bool = True  # too few attempts for the numbers to mean much

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Calculator
# =============================================================================


def finished(attempts: Iterable[QuizAttempt]) -> list[QuizAttempt]:
    return [attempt for attempt in attempts if attempt.status in FINISHED_STATUSES]


def bucket_for(score: float) -> str:
    for label, upper in SCORE_BUCKETS:
        if score <= upper:
            return label
    return SCORE_BUCKETS[-1][0]


class StatisticsCalculator:
    """
    Stateless calculator over attempt snapshots.

    Example:
        calc = StatisticsCalculator()
        stats = calc.compute_statistics(attempts, passing_score=70)
        calc.discrimination_index(attempts, "q1")
    """

    def __init__(self, group_fraction: float = DEFAULT_GROUP_FRACTION):
        self.group_fraction = group_fraction

    def compute_statistics(
        self,
        attempts: Iterable[QuizAttempt],
        passing_score: float | None = None,
    ) -> AttemptStatistics:
        """
        Aggregate statistics for finished attempts.

        Args:
            attempts: Attempts of one quiz; unfinished ones are skipped
            passing_score: When given, overrides each attempt's ``passed`` flag

        Returns:
            AttemptStatistics (zero-valued for empty input)
        """
        pool = finished(attempts)
        if not pool:
            return AttemptStatistics()

        scores = np.array([attempt.score for attempt in pool], dtype=float)
        if passing_score is None:
            passed = sum(1 for attempt in pool if attempt.passed)
        else:
            passed = int(np.count_nonzero(scores >= passing_score))

        durations = [
            attempt.duration.total_seconds()
            for attempt in pool
            if attempt.duration is not None
        ]

        distribution = _empty_distribution()
        for score in scores:
            distribution[bucket_for(float(score))] += 1

        quartiles = np.percentile(scores, [25, 50, 75])

        return AttemptStatistics(
            total_attempts=len(pool),
            completions=sum(1 for attempt in pool if attempt.status == AttemptStatus.GRADED),
            average_score=round(float(scores.mean()), 2),
            pass_rate=round(passed / len(pool) * 100, 2),
            average_time=round(float(np.mean(durations)), 2) if durations else 0.0,
            score_distribution=distribution,
            median_score=round(float(np.median(scores)), 2),
            score_std_dev=round(float(scores.std()), 2),
            percentiles={p: round(float(v), 2) for p, v in zip((25, 50, 75), quartiles)},
        )

    def discrimination_index(self, attempts: Iterable[QuizAttempt], question_id: str) -> float:
        """
        Upper-lower discrimination index for one question.

        Attempts are sorted by score; the top and bottom ``group_fraction``
        (at least one attempt each) are compared on how often they got the
        question right. Result is in [-1, 1]; 0.0 for no attempts.
        """
        pool = sorted(finished(attempts), key=lambda attempt: attempt.score, reverse=True)
        if not pool:
            return 0.0

        group_size = max(1, math.floor(len(pool) * self.group_fraction))
        top = pool[:group_size]
        bottom = pool[-group_size:]

        correct_top = sum(1 for attempt in top if _answered_correctly(attempt, question_id))
        correct_bottom = sum(1 for attempt in bottom if _answered_correctly(attempt, question_id))
        return (correct_top - correct_bottom) / group_size

    def item_analysis(
        self,
        attempts: Iterable[QuizAttempt],
        questions: Iterable[Question],
    ) -> list[ItemStatistics]:
        """Difficulty and discrimination for each question."""
        pool = finished(attempts)
        advisory = len(pool) < MIN_MEANINGFUL_ATTEMPTS
        items = []

        for question in questions:
            graded = [
                feedback
                for feedback in (attempt.feedback_for(question.id) for attempt in pool)
                if feedback is not None and not feedback.pending_review
            ]
            item = ItemStatistics(question_id=question.id, responses=len(graded), advisory=advisory)
            if graded:
                item.correct_rate = round(sum(1 for f in graded if f.correct) / len(graded), 4)
                item.difficulty = difficulty_label(item.correct_rate)
                item.discrimination = round(self.discrimination_index(pool, question.id), 4)
            items.append(item)

        return items


def difficulty_label(correct_rate: float) -> str:
    if correct_rate >= EASY_THRESHOLD:
        return "easy"
    if correct_rate >= MEDIUM_THRESHOLD:
        return "medium"
    return "hard"


def _answered_correctly(attempt: QuizAttempt, question_id: str) -> bool:
    feedback = attempt.feedback_for(question_id)
    return feedback is not None and feedback.correct
