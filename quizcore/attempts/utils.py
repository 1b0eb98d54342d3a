"""
Shuffling, timing and penalty helpers for the attempt lifecycle.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import timedelta
from typing import TypeVar

T = TypeVar("T")


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> list[T]:
    """
    Return a shuffled copy of ``items``.

    Walks from the last index down, swapping each element with a random
    earlier (or same) position drawn from ``rng``. The input is not modified.
    """
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def apply_late_penalty(score: float, penalty: float) -> tuple[float, float]:
    """
    Deduct ``penalty`` percent of the score.

    Returns:
        (penalized score, points deducted), both rounded to 2 decimals
    """
    penalty = min(max(penalty, 0.0), 100.0)
    deduction = round(score * penalty / 100, 2)
    return round(max(score - deduction, 0.0), 2), deduction


def format_duration(duration: timedelta | float | None) -> str:
    """Format a duration (timedelta or seconds) as 1h 02m 03s / 2m 03s / 45s."""
    if duration is None:
        return "-"
    seconds = int(duration.total_seconds() if isinstance(duration, timedelta) else duration)
    hours, remainder = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"
