"""
Attempt lifecycle manager.

Drives a quiz attempt through its states:

    in_progress -> completed -> graded     (manual review)
    in_progress -> graded                  (automatic grading)
    in_progress -> timed_out               (submitted past the time limit)

Every precondition fails with a typed AssessmentError before anything is
written. Status transitions are persisted with a compare-and-swap on the
previous status, so two concurrent submissions cannot both grade one
attempt. The current time is always passed in by the caller.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any
from uuid import uuid4

from loguru import logger

from quizcore.collaborators import AttemptStore, QuestionBank, QuizRepository, StatsRefresher
from quizcore.errors import (
    AlreadySubmittedError,
    AttemptNotFoundError,
    ForbiddenError,
    MaxAttemptsReachedError,
    NotReadyForReviewError,
    PrerequisitesNotMetError,
    QuizEndedError,
    QuizNotAvailableError,
    QuizNotFoundError,
    QuizNotStartedError,
)
from quizcore.models import (
    FINISHED_STATUSES,
    Answer,
    AttemptStatus,
    GradingType,
    Question,
    QuestionFeedback,
    Quiz,
    QuizAttempt,
    QuizStatus,
)
from quizcore.prerequisites import PrerequisiteChecker
from quizcore.scoring.dispatcher import ScoringDispatcher
from quizcore.statistics import AttemptStatistics, ItemStatistics, StatisticsCalculator

from .stats_refresh import BackgroundStatsRefresher
from .utils import apply_late_penalty, fisher_yates_shuffle


def _new_attempt_id() -> str:
    return uuid4().hex


class AttemptLifecycleManager:
    """
    Service object for starting, submitting and reviewing quiz attempts.

    All collaborators are injected; nothing is read from module state.

    Example:
        manager = AttemptLifecycleManager(
            quizzes=quiz_repo,
            bank=question_bank,
            store=attempt_store,
            rng=random.Random(42),
        )
        attempt = manager.start_attempt("quiz-1", "user-1", now)
        attempt = manager.submit_attempt(attempt.id, answers, "user-1", later)
    """

    def __init__(
        self,
        quizzes: QuizRepository,
        bank: QuestionBank,
        store: AttemptStore,
        prerequisites: PrerequisiteChecker | None = None,
        dispatcher: ScoringDispatcher | None = None,
        refresher: StatsRefresher | None = None,
        calculator: StatisticsCalculator | None = None,
        rng: random.Random | None = None,
        id_factory: Callable[[], str] = _new_attempt_id,
    ):
        self.quizzes = quizzes
        self.bank = bank
        self.store = store
        self.prerequisites = prerequisites or PrerequisiteChecker()
        self.dispatcher = dispatcher or ScoringDispatcher()
        self.calculator = calculator or StatisticsCalculator()
        self.refresher = refresher or BackgroundStatsRefresher.from_settings(quizzes, store, calculator=calculator)
        self.rng = rng or random.Random()
        self.id_factory = id_factory

    def close(self) -> None:
        """Stop the stats refresher's workers, if it has any."""
        shutdown = getattr(self.refresher, "shutdown", None)
        if shutdown is not None:
            shutdown()

    # =========================================================================
    # Start
    # =========================================================================

    def start_attempt(self, quiz_id: str, user_id: str, now: datetime) -> QuizAttempt:
        """
        Create a new in-progress attempt with a redacted question snapshot.

        Raises:
            QuizNotFoundError: Unknown quiz
            QuizNotAvailableError: Quiz is not published
            QuizNotStartedError: Before the schedule's start date
            QuizEndedError: After the end date and outside any late window
            MaxAttemptsReachedError: Finished attempts reached attempts_allowed
            PrerequisitesNotMetError: A prerequisite is not satisfied
        """
        quiz = self._get_quiz(quiz_id)
        if quiz.status != QuizStatus.PUBLISHED:
            raise QuizNotAvailableError()

        schedule = quiz.schedule
        if schedule.start_date and now < schedule.start_date:
            raise QuizNotStartedError()
        if schedule.end_date and now > schedule.end_date and not schedule.late_window_open(now):
            raise QuizEndedError()

        finished_count = self.store.count_by_user_and_status(quiz_id, user_id, FINISHED_STATUSES)
        if finished_count >= quiz.settings.attempts_allowed:
            raise MaxAttemptsReachedError()

        if quiz.prerequisites and not self.prerequisites.all_satisfied(quiz.prerequisites, user_id):
            raise PrerequisitesNotMetError()

        snapshot = [question.redacted() for question in self.bank.get_questions(quiz_id)]
        if quiz.settings.shuffle_questions:
            snapshot = fisher_yates_shuffle(snapshot, self.rng)

        attempt = QuizAttempt(
            id=self.id_factory(),
            quiz_id=quiz_id,
            user_id=user_id,
            start_time=now,
            time_limit=quiz.settings.time_limit,
            status=AttemptStatus.IN_PROGRESS,
            questions=snapshot,
            points_possible=sum(question.max_points for question in snapshot),
        )
        self.store.create(attempt)
        logger.info(
            f"Started attempt {attempt.id} on quiz {quiz_id} for user {user_id} "
            f"({len(snapshot)} questions, {attempt.time_limit:g} min)"
        )
        return attempt

    # =========================================================================
    # Submit
    # =========================================================================

    def submit_attempt(
        self,
        attempt_id: str,
        answers: Iterable[Answer | dict[str, Any]],
        user_id: str,
        now: datetime,
    ) -> QuizAttempt:
        """
        Grade the submitted answers and close the attempt.

        Answers submitted after the time limit are still graded; the attempt
        is then marked timed_out.

        Raises:
            AttemptNotFoundError: Unknown attempt
            ForbiddenError: The attempt belongs to another user
            AlreadySubmittedError: The attempt is no longer in progress
            UnsupportedQuestionTypeError: A snapshot question has no scorer
        """
        attempt = self._get_attempt(attempt_id)
        if attempt.user_id != user_id:
            raise ForbiddenError()
        if attempt.status != AttemptStatus.IN_PROGRESS:
            raise AlreadySubmittedError()

        quiz = self._get_quiz(attempt.quiz_id)
        timed_out = attempt.is_time_expired(now)
        submitted = _effective_answers(attempt, [_as_answer(item) for item in answers])

        outcome = self.dispatcher.grade(self._grading_questions(attempt), submitted)

        score = outcome.score
        late_penalty = late_penalty_rate = 0.0
        if quiz.schedule.late_window_open(now):
            late_penalty_rate = quiz.schedule.late_submission.penalty
            score, late_penalty = apply_late_penalty(score, late_penalty_rate)

        if timed_out:
            status = AttemptStatus.TIMED_OUT
        elif quiz.settings.grading_type == GradingType.AUTOMATIC and not outcome.pending_review:
            status = AttemptStatus.GRADED
        else:
            status = AttemptStatus.COMPLETED

        graded = attempt.model_copy(
            update={
                "end_time": now,
                "status": status,
                "answers": submitted,
                "feedback": outcome.feedback,
                "points_earned": outcome.points_earned,
                "points_possible": outcome.points_possible,
                "score": score,
                "passed": score >= quiz.settings.passing_score,
                "late_penalty": late_penalty,
                "late_penalty_rate": late_penalty_rate,
            },
            deep=True,
        )

        if not self.store.update_if_status(graded, AttemptStatus.IN_PROGRESS):
            logger.warning(f"Attempt {attempt_id} was submitted concurrently; rejecting duplicate")
            raise AlreadySubmittedError()

        logger.info(
            f"Attempt {attempt_id} submitted: {status.value}, score {score:.2f}% "
            f"({outcome.points_earned:g}/{outcome.points_possible:g})"
        )
        self._refresh_stats(attempt.quiz_id)
        return graded

    def _grading_questions(self, attempt: QuizAttempt) -> list[Question]:
        """Unredacted definitions for the snapshot, in snapshot order."""
        definitions = {question.id: question for question in self.bank.get_questions(attempt.quiz_id)}
        questions = []
        for snapshot in attempt.questions:
            definition = definitions.get(snapshot.id)
            if definition is None:
                logger.error(
                    f"Question {snapshot.id} of attempt {attempt.id} is no longer in the bank; "
                    "scoring against the snapshot"
                )
                definition = snapshot
            questions.append(definition)
        return questions

    # =========================================================================
    # Review
    # =========================================================================

    def review_attempt(
        self,
        attempt_id: str,
        feedback: Iterable[QuestionFeedback | dict[str, Any]],
        reviewer_id: str,
        now: datetime,
    ) -> QuizAttempt:
        """
        Apply a reviewer's per-question feedback and mark the attempt graded.

        Reviewed entries replace the feedback for their question; points are
        clamped to the question's maximum. Totals, score and pass flag are
        recomputed from the merged feedback.

        Raises:
            AttemptNotFoundError: Unknown attempt
            NotReadyForReviewError: The attempt is not awaiting review
        """
        attempt = self._get_attempt(attempt_id)
        if attempt.status != AttemptStatus.COMPLETED:
            raise NotReadyForReviewError()
        quiz = self._get_quiz(attempt.quiz_id)

        merged = {item.question_id: item for item in attempt.feedback}
        for item in feedback:
            reviewed = item if isinstance(item, QuestionFeedback) else QuestionFeedback.model_validate(item)
            existing = merged.get(reviewed.question_id)
            if existing is None:
                logger.warning(f"Ignoring review feedback for unknown question {reviewed.question_id}")
                continue
            points = reviewed.points
            if points is not None:
                points = min(max(points, 0.0), existing.max_points)
            merged[reviewed.question_id] = reviewed.model_copy(
                update={
                    "points": points,
                    "max_points": existing.max_points,
                    "pending_review": points is None,
                }
            )

        still_pending = [item.question_id for item in merged.values() if item.points is None]
        if still_pending:
            logger.warning(
                f"Review of attempt {attempt_id} left {len(still_pending)} question(s) ungraded; "
                "counting them as 0"
            )

        ordered = [merged[item.question_id] for item in attempt.feedback]
        points_earned = sum(item.points or 0.0 for item in ordered)
        points_possible = attempt.points_possible or sum(item.max_points for item in ordered)
        score = round(points_earned / points_possible * 100, 2) if points_possible > 0 else 0.0
        # Rate fixed at submission; later schedule edits do not apply
        late_penalty = 0.0
        if attempt.late_penalty_rate > 0:
            score, late_penalty = apply_late_penalty(score, attempt.late_penalty_rate)

        reviewed_attempt = attempt.model_copy(
            update={
                "feedback": ordered,
                "points_earned": points_earned,
                "points_possible": points_possible,
                "score": score,
                "passed": score >= quiz.settings.passing_score,
                "late_penalty": late_penalty,
                "status": AttemptStatus.GRADED,
                "reviewed_by": reviewer_id,
                "reviewed_at": now,
            },
            deep=True,
        )

        if not self.store.update_if_status(reviewed_attempt, AttemptStatus.COMPLETED):
            raise NotReadyForReviewError()

        logger.info(f"Attempt {attempt_id} reviewed by {reviewer_id}: score {score:.2f}%")
        self._refresh_stats(attempt.quiz_id)
        return reviewed_attempt

    # =========================================================================
    # Queries
    # =========================================================================

    def time_remaining(self, attempt_id: str, now: datetime) -> float:
        """Minutes left on an in-progress attempt; 0 once it is closed or expired."""
        return self._get_attempt(attempt_id).remaining_minutes(now)

    def list_results(self, quiz_id: str, user_id: str) -> list[QuizAttempt]:
        """The user's finished attempts on a quiz, newest first."""
        attempts = self.store.list_by_quiz(quiz_id, FINISHED_STATUSES, user_id=user_id)
        return sorted(
            attempts,
            key=lambda attempt: attempt.end_time or attempt.start_time,
            reverse=True,
        )

    def compute_statistics(self, quiz_id: str) -> AttemptStatistics:
        attempts = self.store.list_by_quiz(quiz_id, FINISHED_STATUSES)
        return self.calculator.compute_statistics(attempts)

    def item_analysis(self, quiz_id: str) -> list[ItemStatistics]:
        attempts = self.store.list_by_quiz(quiz_id, FINISHED_STATUSES)
        return self.calculator.item_analysis(attempts, self.bank.get_questions(quiz_id))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self.quizzes.get(quiz_id)
        if quiz is None:
            raise QuizNotFoundError()
        return quiz

    def _get_attempt(self, attempt_id: str) -> QuizAttempt:
        attempt = self.store.load(attempt_id)
        if attempt is None:
            raise AttemptNotFoundError()
        return attempt

    def _refresh_stats(self, quiz_id: str) -> None:
        try:
            self.refresher.refresh(quiz_id)
        except Exception as e:
            logger.error(f"Could not schedule stats refresh for quiz {quiz_id}: {e}")


def _as_answer(item: Answer | dict[str, Any]) -> Answer:
    return item if isinstance(item, Answer) else Answer.model_validate(item)


def _effective_answers(attempt: QuizAttempt, answers: list[Answer]) -> list[Answer]:
    """
    Answers for snapshot questions only, last answer per question winning.

    Peer reviews are recorded by reviewers, never by the learner, so any
    attached to a submitted answer are discarded.
    """
    known = {question.id for question in attempt.questions}
    latest: dict[str, Answer] = {}
    for answer in answers:
        if answer.question_id not in known:
            logger.warning(f"Attempt {attempt.id}: ignoring answer for unknown question {answer.question_id}")
            continue
        if answer.peer_reviews:
            logger.warning(
                f"Attempt {attempt.id}: discarding {len(answer.peer_reviews)} learner-supplied "
                f"peer review(s) on question {answer.question_id}"
            )
            answer = answer.model_copy(update={"peer_reviews": []})
        latest[answer.question_id] = answer
    return list(latest.values())
