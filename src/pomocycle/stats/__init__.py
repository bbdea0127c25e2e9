"""Statistics over the session log."""

from pomocycle.stats.engine import Stats, StatsEngine, compute_stats, current_streak, longest_streak

__all__ = ["Stats", "StatsEngine", "compute_stats", "current_streak", "longest_streak"]
