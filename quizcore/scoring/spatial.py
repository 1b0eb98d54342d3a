"""
Hotspot scorer: clicks on an image graded by distance to hotspot centers.
"""

from __future__ import annotations

from typing import Any

from quizcore.errors import MalformedAnswerError
from quizcore.models import Answer, Question, QuestionType

from . import register
from .base import ScoreResult, ScoringContext, award, require_response
from .similarity import point_in_hotspot

INCORRECT_CLICK_PENALTY = 0.5


def _hotspots(question: Question) -> list[dict[str, Any]]:
    media = question.content.get("media")
    if isinstance(media, list) and media and isinstance(media[0], dict):
        hotspots = media[0].get("hotspots")
    else:
        hotspots = question.content.get("hotspots")
    if not isinstance(hotspots, list) or not hotspots:
        raise MalformedAnswerError(f"Question {question.id} defines no hotspots")
    return hotspots


@register(QuestionType.HOTSPOT)
def score_hotspot(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """
    A click is correct if it falls within some hotspot's radius.

    Each hotspot counts once; further clicks inside an already-hit hotspot
    are ignored. Clicks outside every hotspot are penalised at half weight
    under partial credit.
    """
    hotspots = _hotspots(question)
    clicks = require_response(answer, list, "a list of clicks")

    hit: set[int] = set()
    incorrect = 0
    for click in clicks:
        inside = [i for i, spot in enumerate(hotspots) if point_in_hotspot(click, spot)]
        if not inside:
            incorrect += 1
            continue
        fresh = [i for i in inside if i not in hit]
        if fresh:
            hit.add(fresh[0])

    total = len(hotspots)
    correct = len(hit)
    fraction = max(0.0, correct / total - INCORRECT_CLICK_PENALTY * incorrect / total)

    return award(
        question,
        fraction,
        correct == total and incorrect == 0,
        feedback=f"{correct}/{total} hotspots found, {incorrect} incorrect click(s)",
        details={"correct_clicks": correct, "incorrect_clicks": incorrect},
    )
