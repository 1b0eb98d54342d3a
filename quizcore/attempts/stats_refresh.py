"""
Quiz statistics refresh after submissions.

Refreshing is best-effort: failures are logged and never reach the
submission that triggered them. Stale stats are corrected by the next
successful refresh.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_for_futures
from dataclasses import dataclass, field

from loguru import logger

from quizcore.collaborators import AttemptStore, QuizRepository
from quizcore.models import FINISHED_STATUSES, QuizStats
from quizcore.statistics import StatisticsCalculator


def recompute_quiz_stats(
    quiz_id: str,
    quizzes: QuizRepository,
    store: AttemptStore,
    calculator: StatisticsCalculator | None = None,
) -> QuizStats:
    """Recompute a quiz's rolling stats from its finished attempts and save them."""
    calculator = calculator or StatisticsCalculator()
    attempts = store.list_by_quiz(quiz_id, FINISHED_STATUSES)
    stats = calculator.compute_statistics(attempts).to_quiz_stats()
    quizzes.save_stats(quiz_id, stats)
    logger.debug(
        "Refreshed stats for quiz {}: {} attempts, avg {:.1f}",
        quiz_id,
        stats.attempts,
        stats.average_score,
    )
    return stats


@dataclass
class InlineStatsRefresher:
    """Refresh synchronously in the caller's thread."""

    quizzes: QuizRepository
    store: AttemptStore
    calculator: StatisticsCalculator = field(default_factory=StatisticsCalculator)

    def refresh(self, quiz_id: str) -> None:
        try:
            recompute_quiz_stats(quiz_id, self.quizzes, self.store, self.calculator)
        except Exception as e:
            logger.error(f"Stats refresh failed for quiz {quiz_id}: {e}")


@dataclass
class BackgroundStatsRefresher:
    """
    Refresh on a small daemon thread pool.

    Usage:
        refresher = BackgroundStatsRefresher(quizzes, store, max_workers=2)
        manager = AttemptLifecycleManager(..., refresher=refresher)
        # ... submissions ...
        refresher.shutdown()
    """

    quizzes: QuizRepository
    store: AttemptStore
    calculator: StatisticsCalculator = field(default_factory=StatisticsCalculator)
    max_workers: int = 2

    # Internal state
    _executor: ThreadPoolExecutor | None = field(default=None, repr=False)
    _pending: set[Future] = field(default_factory=set, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="quizcore-stats",
        )

    @classmethod
    def from_settings(
        cls,
        quizzes: QuizRepository,
        store: AttemptStore,
        settings=None,
        calculator: StatisticsCalculator | None = None,
    ) -> BackgroundStatsRefresher:
        """Pool size, and discrimination grouping unless a calculator is given, taken from settings."""
        if settings is None:
            from config import get_settings

            settings = get_settings()
        return cls(
            quizzes,
            store,
            calculator=calculator or StatisticsCalculator(settings.discrimination_group_fraction),
            max_workers=settings.stats_refresh_workers,
        )

    def refresh(self, quiz_id: str) -> None:
        try:
            future = self._executor.submit(self._run, quiz_id)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning(f"Stats refresh for quiz {quiz_id} not scheduled: {e}")
            return
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _run(self, quiz_id: str) -> None:
        try:
            recompute_quiz_stats(quiz_id, self.quizzes, self.store, self.calculator)
        except Exception as e:
            logger.error(f"Background stats refresh failed for quiz {quiz_id}: {e}")

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def wait(self, timeout: float | None = None) -> None:
        """Block until every scheduled refresh has finished."""
        with self._lock:
            pending = list(self._pending)
        wait_for_futures(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
