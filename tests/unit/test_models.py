"""
Unit tests for the assessment data model.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from quizcore.models import (
    AttemptStatus,
    LateSubmission,
    Question,
    QuizAttempt,
    QuizSettings,
    QuizStatus,
    Schedule,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestQuestionRedaction:
    def test_answer_keys_are_stripped(self):
        question = Question(
            id="q",
            type="multiple-choice",
            content={"options": ["A", "B"], "correct_answer": "B"},
            explanation="B is right because...",
        )
        redacted = question.redacted()

        assert redacted.content == {"options": ["A", "B"]}
        assert redacted.explanation is None
        assert question.content["correct_answer"] == "B"

    def test_hotspot_geometry_is_hidden(self):
        question = Question(
            id="q",
            type="hotspot",
            content={"media": [{"url": "img.png", "hotspots": [{"x": 1, "y": 1, "radius": 2}]}]},
        )
        assert question.redacted().content == {"media": [{"url": "img.png"}]}

    def test_blank_count_survives_redaction(self):
        question = Question(id="q", type="fill-blank", content={"text": "_ and _", "blanks": [["a"], ["b"]]})
        assert question.redacted().content == {"text": "_ and _", "blank_count": 2}

    def test_case_study_sub_questions_are_redacted(self):
        question = Question(
            id="case",
            type="case-study",
            content={
                "scenario": "...",
                "sub_questions": [
                    {"id": "s1", "type": "true-false", "content": {"correct_answer": True}},
                ],
            },
        )
        sub = question.redacted().sub_questions[0]

        assert sub.id == "s1"
        assert "correct_answer" not in sub.content

    def test_redacted_copy_shares_no_state(self):
        question = Question(id="q", type="matching", content={"left": ["a"], "correct_answer": {"a": "1"}})
        redacted = question.redacted()
        redacted.content["left"].append("b")

        assert question.content["left"] == ["a"]


class TestQuizConfiguration:
    def test_settings_bounds(self):
        with pytest.raises(ValidationError):
            QuizSettings(time_limit=0)
        with pytest.raises(ValidationError):
            QuizSettings(passing_score=101)

    def test_end_date_after_start_date(self):
        with pytest.raises(ValidationError):
            Schedule(start_date=T0, end_date=T0 - timedelta(days=1))

    def test_late_deadline_after_end_date(self):
        with pytest.raises(ValidationError):
            Schedule(end_date=T0, late_submission=LateSubmission(allowed=True, deadline=T0))

    def test_late_window(self):
        schedule = Schedule(
            end_date=T0,
            late_submission=LateSubmission(allowed=True, deadline=T0 + timedelta(days=2), penalty=10),
        )

        assert schedule.late_window_open(T0 + timedelta(days=1)) is True
        assert schedule.late_window_open(T0 - timedelta(hours=1)) is False
        assert schedule.late_window_open(T0 + timedelta(days=3)) is False

    def test_quiz_statuses(self):
        assert {status.value for status in QuizStatus} == {"draft", "published", "archived"}
        with pytest.raises(ValueError):
            QuizStatus("scheduled")


class TestAttemptTiming:
    def make_attempt(self, **kwargs):
        return QuizAttempt(id="a", quiz_id="quiz", user_id="u", start_time=T0, time_limit=30, **kwargs)

    def test_remaining_minutes(self):
        attempt = self.make_attempt()

        assert attempt.remaining_minutes(T0 + timedelta(minutes=10)) == pytest.approx(20)
        assert attempt.remaining_minutes(T0 + timedelta(minutes=45)) == 0

    def test_time_expired(self):
        attempt = self.make_attempt()

        assert attempt.is_time_expired(T0 + timedelta(minutes=30)) is False
        assert attempt.is_time_expired(T0 + timedelta(minutes=30, seconds=1)) is True

    def test_closed_attempt_has_no_time_left(self):
        attempt = self.make_attempt(status=AttemptStatus.GRADED, end_time=T0 + timedelta(minutes=5))

        assert attempt.remaining_minutes(T0 + timedelta(minutes=10)) == 0
        assert attempt.duration == timedelta(minutes=5)
