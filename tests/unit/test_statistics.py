"""
Tests for quiz statistics and item analysis.
"""

from datetime import timedelta

import pytest

from quizcore.models import AttemptStatus, QuestionFeedback, QuizAttempt
from quizcore.statistics import (
    SCORE_BUCKETS,
    AttemptStatistics,
    StatisticsCalculator,
    bucket_for,
    difficulty_label,
)


@pytest.fixture
def attempt_factory(now):
    counter = iter(range(1, 1000))

    def _attempt(score, status=AttemptStatus.GRADED, minutes=10, correct=(), wrong=(), pending=()):
        feedback = (
            [QuestionFeedback(question_id=q, correct=True, points=1, max_points=1) for q in correct]
            + [QuestionFeedback(question_id=q, correct=False, points=0, max_points=1) for q in wrong]
            + [QuestionFeedback(question_id=q, points=None, max_points=1, pending_review=True) for q in pending]
        )
        return QuizAttempt(
            id=f"a{next(counter)}",
            quiz_id="quiz-1",
            user_id="user-1",
            start_time=now,
            end_time=now + timedelta(minutes=minutes) if status != AttemptStatus.IN_PROGRESS else None,
            time_limit=30,
            status=status,
            score=score,
            passed=score >= 70,
            feedback=feedback,
        )

    return _attempt


@pytest.fixture
def calculator():
    return StatisticsCalculator()


class TestComputeStatistics:
    def test_aggregates(self, calculator, attempt_factory):
        attempts = [attempt_factory(score) for score in (40, 60, 80, 100)]

        stats = calculator.compute_statistics(attempts, passing_score=70)

        assert stats.total_attempts == 4
        assert stats.completions == 4
        assert stats.average_score == 70
        assert stats.pass_rate == 50
        assert stats.median_score == 70
        assert stats.score_std_dev == pytest.approx(22.36)
        assert stats.percentiles == {25: 55, 50: 70, 75: 85}
        assert stats.average_time == 600
        assert stats.score_distribution == {
            "0-20": 0,
            "21-40": 1,
            "41-60": 1,
            "61-80": 1,
            "81-100": 1,
        }

    def test_pass_flag_used_without_passing_score(self, calculator, attempt_factory):
        attempts = [attempt_factory(90), attempt_factory(50)]
        attempts[1] = attempts[1].model_copy(update={"passed": True})

        assert calculator.compute_statistics(attempts).pass_rate == 100

    def test_only_finished_attempts_count(self, calculator, attempt_factory):
        attempts = [
            attempt_factory(80),
            attempt_factory(60, status=AttemptStatus.COMPLETED),
            attempt_factory(0, status=AttemptStatus.IN_PROGRESS),
            attempt_factory(10, status=AttemptStatus.TIMED_OUT),
        ]

        stats = calculator.compute_statistics(attempts)

        assert stats.total_attempts == 2
        assert stats.completions == 1
        assert stats.average_score == 70

    def test_empty_input(self, calculator):
        stats = calculator.compute_statistics([])

        assert stats == AttemptStatistics()
        assert stats.average_score == 0
        assert sum(stats.score_distribution.values()) == 0

    def test_to_quiz_stats(self, calculator, attempt_factory):
        stats = calculator.compute_statistics([attempt_factory(100, minutes=5)]).to_quiz_stats()

        assert stats.attempts == 1
        assert stats.average_score == 100
        assert stats.pass_rate == 100
        assert stats.average_time == 300


class TestBuckets:
    @pytest.mark.parametrize(
        "score,label",
        [(0, "0-20"), (20, "0-20"), (20.5, "21-40"), (40, "21-40"), (60, "41-60"), (80, "61-80"), (100, "81-100")],
    )
    def test_bucket_edges(self, score, label):
        assert bucket_for(score) == label

    def test_five_buckets(self):
        assert len(SCORE_BUCKETS) == 5


class TestDiscrimination:
    def test_top_group_right_bottom_wrong(self, calculator, attempt_factory):
        attempts = [
            attempt_factory(100, correct=["q1"]),
            attempt_factory(80, correct=["q1"]),
            attempt_factory(60, wrong=["q1"]),
            attempt_factory(40, wrong=["q1"]),
        ]

        assert calculator.discrimination_index(attempts, "q1") == 1.0

    def test_inverted_item(self, calculator, attempt_factory):
        attempts = [
            attempt_factory(100, wrong=["q1"]),
            attempt_factory(80, wrong=["q1"]),
            attempt_factory(60, correct=["q1"]),
            attempt_factory(40, correct=["q1"]),
        ]

        assert calculator.discrimination_index(attempts, "q1") == -1.0

    def test_no_attempts(self, calculator):
        assert calculator.discrimination_index([], "q1") == 0.0

    def test_single_attempt_compares_with_itself(self, calculator, attempt_factory):
        assert calculator.discrimination_index([attempt_factory(90, correct=["q1"])], "q1") == 0.0

    def test_group_fraction(self, attempt_factory):
        attempts = [attempt_factory(100 - i * 10, correct=["q1"] if i < 5 else [], wrong=[] if i < 5 else ["q1"]) for i in range(10)]

        assert StatisticsCalculator(group_fraction=0.5).discrimination_index(attempts, "q1") == 1.0


class TestItemAnalysis:
    def test_difficulty_and_discrimination(self, calculator, attempt_factory, sample_questions):
        attempts = [
            attempt_factory(100, correct=["q1", "q2", "q3"]),
            attempt_factory(60, correct=["q1", "q2"], wrong=["q3"]),
            attempt_factory(30, correct=["q1"], wrong=["q2", "q3"]),
        ]

        items = {item.question_id: item for item in calculator.item_analysis(attempts, sample_questions)}

        assert items["q1"].correct_rate == 1.0
        assert items["q1"].difficulty == "easy"
        assert items["q1"].discrimination == 0.0
        assert items["q2"].difficulty == "medium"
        assert items["q3"].difficulty == "hard"
        assert items["q3"].discrimination == 1.0
        assert not items["q1"].advisory

    def test_pending_feedback_is_skipped(self, calculator, attempt_factory, make_question):
        essay = make_question("essay", "essay", {"prompt": "Explain"})
        attempts = [attempt_factory(50, pending=["essay"]), attempt_factory(60, pending=["essay"])]

        item = calculator.item_analysis(attempts, [essay])[0]

        assert item.responses == 0
        assert item.difficulty == "unknown"

    def test_single_attempt_is_advisory(self, calculator, attempt_factory, sample_questions):
        items = calculator.item_analysis([attempt_factory(100, correct=["q1"])], sample_questions)

        assert all(item.advisory for item in items)


@pytest.mark.parametrize("rate,label", [(1.0, "easy"), (0.8, "easy"), (0.5, "medium"), (0.4, "medium"), (0.1, "hard")])
def test_difficulty_label(rate, label):
    assert difficulty_label(rate) == label
