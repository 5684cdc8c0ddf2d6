"""
Services package for the leaderboard engine.
"""

from .base import BaseService
from .award_index import AwardIndex
from .leaderboard import LeaderboardService

__all__ = ['BaseService', 'AwardIndex', 'LeaderboardService']
