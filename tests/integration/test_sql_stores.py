"""
Integration tests for the SQLAlchemy stores against in-memory SQLite.

Usage:
    pytest tests/integration/test_sql_stores.py -v
"""

from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from quizcore.attempts import AttemptLifecycleManager, InlineStatsRefresher
from quizcore.db import SqlAttemptStore, SqlQuestionBank, SqlQuizRepository, init_db, make_engine
from quizcore.errors import AlreadySubmittedError, MaxAttemptsReachedError
from quizcore.models import AttemptStatus, QuizAttempt, QuizStats

pytestmark = pytest.mark.integration


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def quizzes(session_factory, published_quiz):
    repo = SqlQuizRepository(session_factory)
    repo.add(published_quiz)
    return repo


@pytest.fixture
def bank(session_factory, quizzes, sample_questions):
    bank = SqlQuestionBank(session_factory)
    bank.add("quiz-1", sample_questions)
    return bank


@pytest.fixture
def store(session_factory):
    return SqlAttemptStore(session_factory)


class TestSqlQuizRepository:
    def test_roundtrip(self, quizzes, published_quiz):
        assert quizzes.get("quiz-1") == published_quiz
        assert quizzes.get("missing") is None

    def test_save_stats(self, quizzes):
        quizzes.save_stats("quiz-1", QuizStats(attempts=4, average_score=62.5, pass_rate=50))

        stats = quizzes.get("quiz-1").stats
        assert stats.attempts == 4
        assert stats.average_score == 62.5

    def test_add_replaces(self, quizzes, published_quiz):
        quizzes.add(published_quiz.model_copy(update={"title": "Renamed"}))

        assert quizzes.get("quiz-1").title == "Renamed"


class TestSqlQuestionBank:
    def test_definitions_keep_answers_and_order(self, bank, sample_questions, make_question):
        bank.add("quiz-1", [make_question("q4", "essay", {"prompt": "Why?"})])

        questions = bank.get_questions("quiz-1")

        assert [q.id for q in questions] == ["q1", "q2", "q3", "q4"]
        assert questions[0] == sample_questions[0]
        assert questions[2].content["correct_answer"] == ["a", "b", "c"]

    def test_unknown_quiz(self, bank):
        assert bank.get_questions("other") == []


class TestSqlAttemptStore:
    def _attempt(self, now, **changes):
        attempt = QuizAttempt(id="a1", quiz_id="quiz-1", user_id="user-1", start_time=now, time_limit=30)
        return attempt.model_copy(update=changes)

    def test_create_and_load(self, store, now):
        attempt = self._attempt(now)
        store.create(attempt)

        assert store.load("a1") == attempt
        assert store.load("missing") is None

    def test_conditional_update(self, store, now, later):
        store.create(self._attempt(now))
        graded = self._attempt(now, status=AttemptStatus.GRADED, score=75.0, end_time=later(minutes=9))

        assert store.update_if_status(graded, AttemptStatus.IN_PROGRESS) is True
        assert store.update_if_status(graded, AttemptStatus.IN_PROGRESS) is False

        loaded = store.load("a1")
        assert loaded.status == AttemptStatus.GRADED
        assert loaded.score == 75.0

    def test_count_and_list(self, store, now, later):
        store.create(self._attempt(now, status=AttemptStatus.GRADED))
        store.create(self._attempt(later(hours=1), id="a2", status=AttemptStatus.COMPLETED))
        store.create(self._attempt(later(hours=2), id="a3"))
        store.create(self._attempt(now, id="a4", user_id="user-2", status=AttemptStatus.GRADED))

        finished = (AttemptStatus.COMPLETED, AttemptStatus.GRADED)
        assert store.count_by_user_and_status("quiz-1", "user-1", finished) == 2
        assert store.count_by_user_and_status("quiz-1", "user-3", finished) == 0
        assert {a.id for a in store.list_by_quiz("quiz-1", finished)} == {"a1", "a2", "a4"}
        assert [a.id for a in store.list_by_quiz("quiz-1", finished, user_id="user-1")] == ["a1", "a2"]


class TestLifecycleOnSql:
    def test_full_flow(self, quizzes, bank, store, dispatcher, rng, now, later):
        manager = AttemptLifecycleManager(
            quizzes, bank, store,
            dispatcher=dispatcher,
            refresher=InlineStatsRefresher(quizzes, store),
            rng=rng,
        )

        attempt = manager.start_attempt("quiz-1", "user-1", now)
        answers = [
            {"question_id": "q1", "response": "B"},
            {"question_id": "q2", "response": True},
            {"question_id": "q3", "response": ["a", "c", "b"]},
        ]
        result = manager.submit_attempt(attempt.id, answers, "user-1", later(minutes=12))

        assert result.status == AttemptStatus.GRADED
        assert result.points_earned == pytest.approx(4.0)
        assert result.score == pytest.approx(66.67)
        assert result.passed is False
        assert store.load(attempt.id) == result

        with pytest.raises(AlreadySubmittedError):
            manager.submit_attempt(attempt.id, answers, "user-1", later(minutes=13))
        with pytest.raises(MaxAttemptsReachedError):
            manager.start_attempt("quiz-1", "user-1", later(minutes=14))

        stats = quizzes.get("quiz-1").stats
        assert stats.attempts == 1
        assert stats.average_score == pytest.approx(66.67)
        assert stats.average_time == 720

        assert [a.id for a in manager.list_results("quiz-1", "user-1")] == [attempt.id]
        assert manager.time_remaining(attempt.id, later(minutes=15)) == 0
