"""
Text similarity and point-in-region helpers used by several scorers.
"""

from __future__ import annotations

import math
import re
from typing import Any

from rapidfuzz.distance import JaroWinkler

from quizcore.errors import MalformedAnswerError

_WORD = re.compile(r"[A-Za-z0-9]+")


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens."""
    return _WORD.findall(str(text).lower())


def normalize_text(text: Any) -> str:
    """Case- and whitespace-insensitive form of a free-text answer."""
    return " ".join(str(text).lower().split())


def text_similarity(first: Any, second: Any) -> float:
    """
    Jaro-Winkler similarity over tokenized, lower-cased text.

    Returns:
        1.0 for identical token streams, 0.0 when either side is empty
    """
    left = " ".join(tokenize(first))
    right = " ".join(tokenize(second))
    if not left or not right:
        return 0.0
    return JaroWinkler.similarity(left, right)


def as_point(value: Any) -> tuple[float, float]:
    """Read a click as {"x": .., "y": ..} or an [x, y] pair."""
    try:
        if isinstance(value, dict):
            return float(value["x"]), float(value["y"])
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return float(value[0]), float(value[1])
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedAnswerError(f"Invalid point: {value!r}") from exc
    raise MalformedAnswerError(f"Invalid point: {value!r}")


def distance(first: tuple[float, float], second: tuple[float, float]) -> float:
    return math.hypot(first[0] - second[0], first[1] - second[1])


def point_in_hotspot(point: Any, hotspot: dict[str, Any]) -> bool:
    """True when the point lies within the hotspot's radius (inclusive)."""
    center = as_point(hotspot)
    try:
        radius = float(hotspot["radius"])
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedAnswerError(f"Hotspot without radius: {hotspot!r}") from exc
    return distance(as_point(point), center) <= radius
