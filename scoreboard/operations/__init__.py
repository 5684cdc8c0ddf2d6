"""
Ranking operations for the leaderboard engine.

Pure transformations over play history, independent of storage.
"""

from .leaderboard_engine import LeaderboardEngine

__all__ = ['LeaderboardEngine']
