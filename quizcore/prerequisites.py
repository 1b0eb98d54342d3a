"""
Prerequisite checking.

Each prerequisite kind (quiz, module, assignment) is answered by its own
CompletionLookup. Anything the checker cannot confirm counts as unmet.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from quizcore.collaborators import AttemptStore, CompletionLookup
from quizcore.models import FINISHED_STATUSES, Prerequisite


class PrerequisiteChecker:
    """
    Dispatch prerequisites to the lookup registered for their kind.

    Example:
        checker = PrerequisiteChecker({
            "quiz": QuizCompletionLookup(store),
            "module": HttpCompletionLookup("module", base_url),
        })
        checker.all_satisfied(quiz.prerequisites, user_id)
    """

    def __init__(self, resolvers: dict[str, CompletionLookup] | None = None):
        self.resolvers: dict[str, CompletionLookup] = dict(resolvers or {})

    def register(self, kind: str, lookup: CompletionLookup) -> None:
        self.resolvers[kind] = lookup

    def is_satisfied(self, prerequisite: Prerequisite, user_id: str) -> bool:
        lookup = self.resolvers.get(prerequisite.type)
        if lookup is None:
            logger.warning(
                f"No completion lookup for prerequisite kind '{prerequisite.type}' "
                f"({prerequisite.reference}); treating as unmet"
            )
            return False

        try:
            return bool(
                lookup.is_completed(prerequisite.reference, user_id, prerequisite.minimum_score)
            )
        except Exception as e:
            logger.error(
                f"Completion lookup failed for {prerequisite.type} {prerequisite.reference}: {e}"
            )
            return False

    def all_satisfied(self, prerequisites: Iterable[Prerequisite], user_id: str) -> bool:
        return all(self.is_satisfied(prerequisite, user_id) for prerequisite in prerequisites)


class StaticCompletionLookup:
    """Completion lookup backed by a fixed set of (reference, user_id) pairs."""

    def __init__(self, completed: Iterable[tuple[str, str]] = ()):
        self.completed = set(completed)

    def mark_completed(self, reference: str, user_id: str) -> None:
        self.completed.add((reference, user_id))

    def is_completed(self, reference: str, user_id: str, minimum_score: float = 0) -> bool:
        return (reference, user_id) in self.completed


class QuizCompletionLookup:
    """A quiz counts as completed when the user passed it with at least minimum_score."""

    def __init__(self, store: AttemptStore):
        self.store = store

    def is_completed(self, reference: str, user_id: str, minimum_score: float = 0) -> bool:
        attempts = self.store.list_by_quiz(reference, FINISHED_STATUSES, user_id=user_id)
        return any(attempt.passed and attempt.score >= minimum_score for attempt in attempts)


def default_checker(store: AttemptStore, settings=None) -> PrerequisiteChecker:
    """
    Checker wired from settings.

    Quiz prerequisites are answered from the local attempt store; module and
    assignment prerequisites go to the progress service.
    """
    from quizcore.integrations import HttpCompletionLookup

    if settings is None:
        from config import get_settings

        settings = get_settings()

    checker = PrerequisiteChecker({"quiz": QuizCompletionLookup(store)})
    for kind in ("module", "assignment"):
        checker.register(
            kind,
            HttpCompletionLookup(
                kind,
                settings.completion_service_url,
                timeout_ms=settings.http_timeout_ms,
                retry_attempts=settings.http_retry_attempts,
            ),
        )
    return checker
