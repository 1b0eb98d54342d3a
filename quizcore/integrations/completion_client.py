"""
Completion lookups backed by the progress service.

    GET {base_url}/{kind}s/{reference}/completion?user_id=...&minimum_score=...
    -> {"completed": true, "score": 87.5}
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from .base import ServiceClient


class HttpCompletionLookup(ServiceClient):
    """CompletionLookup for one prerequisite kind (module, assignment, quiz)."""

    service_name = "Completion service"

    def __init__(self, kind: str, base_url: str, **kwargs: Any):
        super().__init__(base_url, **kwargs)
        self.kind = kind

    def is_completed(self, reference: str, user_id: str, minimum_score: float = 0) -> bool:
        response = self.request(
            "GET",
            f"/{self.kind}s/{reference}/completion",
            params={"user_id": user_id, "minimum_score": minimum_score},
        )
        data = response.json()
        completed = bool(data.get("completed", False))

        score = data.get("score")
        if completed and score is not None and float(score) < minimum_score:
            logger.debug(
                f"{self.kind} {reference} completed by {user_id} below minimum "
                f"({score} < {minimum_score})"
            )
            return False
        return completed
