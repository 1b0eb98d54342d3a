"""
Attempt lifecycle: start, submit, review, and the stats refresh that
follows each submission.
"""

from .lifecycle import AttemptLifecycleManager
from .stats_refresh import BackgroundStatsRefresher, InlineStatsRefresher, recompute_quiz_stats
from .utils import apply_late_penalty, fisher_yates_shuffle, format_duration

__all__ = [
    "AttemptLifecycleManager",
    "BackgroundStatsRefresher",
    "InlineStatsRefresher",
    "apply_late_penalty",
    "fisher_yates_shuffle",
    "format_duration",
    "recompute_quiz_stats",
]
