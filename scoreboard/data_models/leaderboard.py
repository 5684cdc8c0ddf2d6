"""
Leaderboard data models for the first-award ranking engine.

Provides immutable data transfer objects for play history, derived awards
and the paginated leaderboard response.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

AwardKey = Tuple[str, str, str]


class LeaderboardWindow(str, Enum):
    """Recency filter applied to award inclusion."""
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"
    ALL = "all"

    @property
    def duration(self) -> Optional[timedelta]:
        """Length of the window, None for all-time."""
        return _WINDOW_DURATIONS.get(self)


_WINDOW_DURATIONS = {
    LeaderboardWindow.DAY: timedelta(hours=24),
    LeaderboardWindow.WEEK: timedelta(days=7),
    LeaderboardWindow.MONTH: timedelta(days=30),
}


@dataclass(frozen=True)
class RegisteredUser:
    """A ranking subject."""
    user_id: str
    username: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class PlayEvent:
    """One recorded game session. Sequence is the insertion order."""
    user_id: str
    game_id: str
    difficulty: str
    score: int
    started_at: datetime
    sequence: int = 0

    def __post_init__(self):
        if self.score < 0:
            raise ValueError(f"score must be non-negative, got {self.score}")

    @property
    def key(self) -> AwardKey:
        return (self.user_id, self.game_id, self.difficulty)


@dataclass(frozen=True)
class AwardedEvent:
    """The single counted session for a (user, game, difficulty) key."""
    user_id: str
    game_id: str
    difficulty: str
    score: int
    started_at: datetime
    sequence: int = 0

    @property
    def key(self) -> AwardKey:
        return (self.user_id, self.game_id, self.difficulty)

    @classmethod
    def from_event(cls, event: PlayEvent) -> "AwardedEvent":
        return cls(
            user_id=event.user_id,
            game_id=event.game_id,
            difficulty=event.difficulty,
            score=event.score,
            started_at=event.started_at,
            sequence=event.sequence,
        )


@dataclass(frozen=True)
class UserScore:
    """Windowed award total for one registered user."""
    user_id: str
    username: Optional[str]
    created_at: datetime
    score: int


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single leaderboard row. Rank is positional across the full ordering."""
    rank: int
    user_id: str
    username: Optional[str]
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "score": self.score,
            "rank": self.rank,
        }


@dataclass(frozen=True)
class SelfRank:
    """
    One user's score and count-rank.

    The rank is one plus the number of users with a strictly greater score,
    so tied users share a rank. This is deliberately a different metric from
    LeaderboardEntry.rank, which breaks ties by registration time.
    """
    user_id: str
    username: Optional[str]
    score: int
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "score": self.score,
            "rank": self.rank,
        }


@dataclass(frozen=True)
class LeaderboardPage:
    """Paginated leaderboard data. Total counts every registered user."""
    window: LeaderboardWindow
    entries: List[LeaderboardEntry]
    total: int
    limit: int
    offset: int

    @property
    def has_prev(self) -> bool:
        return self.offset > 0

    @property
    def has_next(self) -> bool:
        return self.offset + len(self.entries) < self.total


@dataclass(frozen=True)
class LeaderboardResponse:
    """A leaderboard page plus the optional self-rank of a target user."""
    page: LeaderboardPage
    me: Optional[SelfRank] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape returned by the leaderboard query."""
        return {
            "window": self.page.window.value,
            "leaders": [entry.to_dict() for entry in self.page.entries],
            "me": self.me.to_dict() if self.me else None,
            "total": self.page.total,
            "limit": self.page.limit,
            "offset": self.page.offset,
            "hasPrev": self.page.has_prev,
            "hasNext": self.page.has_next,
        }
