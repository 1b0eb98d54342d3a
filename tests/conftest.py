"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from quizcore.models import (  # noqa: E402
    Question,
    QuestionScoring,
    Quiz,
    QuizSettings,
    QuizStatus,
)
from quizcore.scoring.dispatcher import ScoringDispatcher  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite in memory)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings with defaults only (no .env, no environment overrides)."""
    return Settings(_env_file=None)


@pytest.fixture
def dispatcher(settings):
    """Sequential dispatcher without a transcriber."""
    return ScoringDispatcher(settings=settings)


@pytest.fixture
def now():
    return datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def rng():
    return random.Random(1234)


def _make_question(qid: str, qtype: str, content: dict, points: float = 1.0, partial: bool = False, **scoring):
    """Build a question definition with the given scoring policy."""
    return Question(
        id=qid,
        type=qtype,
        content=content,
        scoring=QuestionScoring(points=points, partial_credit=partial, **scoring),
    )


@pytest.fixture
def make_question():
    return _make_question


@pytest.fixture
def sample_questions():
    """Three auto-gradable questions worth 1 + 2 + 3 points."""
    return [
        _make_question("q1", "multiple-choice", {"options": ["A", "B", "C"], "correct_answer": "B"}),
        _make_question("q2", "true-false", {"correct_answer": True}, points=2),
        _make_question(
            "q3",
            "sequence",
            {"items": ["a", "b", "c"], "correct_answer": ["a", "b", "c"]},
            points=3,
            partial=True,
        ),
    ]


@pytest.fixture
def published_quiz(now):
    """Published quiz: 30 minute limit, one attempt, pass mark 70, no shuffling."""
    return Quiz(
        id="quiz-1",
        title="Networking basics",
        status=QuizStatus.PUBLISHED,
        settings=QuizSettings(
            time_limit=30,
            attempts_allowed=1,
            passing_score=70,
            shuffle_questions=False,
        ),
    )


@pytest.fixture
def later(now):
    """Factory for points in time after ``now``."""
    def _later(**delta):
        return now + timedelta(**delta)
    return _later
