"""
Incrementally maintained first-award index.

Keeps one award per (user, game, difficulty) and a running all-time total per
user, updated as sessions arrive, so the all-time leaderboard does not need a
full history scan. Bounded windows filter the stored awards, which is one row
per key rather than one per session.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional
import logging

from scoreboard.constants import PaginationConstants, ScoreConstants
from scoreboard.data_models.leaderboard import (
    AwardKey, AwardedEvent, LeaderboardResponse, LeaderboardWindow,
    PlayEvent, RegisteredUser, UserScore
)
from scoreboard.operations.leaderboard_engine import LeaderboardEngine
from scoreboard.utils.leaderboard_exceptions import ScoreOverflowError

logger = logging.getLogger(__name__)


class AwardIndex:
    """In-memory award index with per-user running totals."""

    def __init__(self):
        self._users: Dict[str, RegisteredUser] = {}
        self._awards: Dict[AwardKey, AwardedEvent] = {}
        self._totals: Dict[str, int] = {}

    @classmethod
    def from_history(cls, users: Iterable[RegisteredUser], events: Iterable[PlayEvent]) -> "AwardIndex":
        """Build an index from existing users and play history."""
        index = cls()
        for user in users:
            index.register_user(user)
        for event in events:
            index.record(event)
        logger.debug(f"Built award index with {len(index._awards)} awards for {len(index._users)} users")
        return index

    def register_user(self, user: RegisteredUser) -> None:
        self._users[user.user_id] = user
        self._totals.setdefault(user.user_id, 0)

    def record(self, event: PlayEvent) -> bool:
        """
        Apply one new session.

        A session for an unseen key becomes its award. A session for a known
        key only matters when it started before the current award (late
        delivery); it then replaces the award and the running total moves by
        the score difference.

        Returns:
            True if the award set changed
        """
        current = self._awards.get(event.key)
        if current is not None and LeaderboardEngine.award_order(event) >= LeaderboardEngine.award_order(current):
            return False

        previous_score = current.score if current is not None else 0
        total = self._totals.get(event.user_id, 0) - previous_score + event.score
        if total > ScoreConstants.MAX_TOTAL_SCORE:
            raise ScoreOverflowError(event.user_id, total)

        self._awards[event.key] = AwardedEvent.from_event(event)
        self._totals[event.user_id] = total
        if current is not None:
            logger.debug(f"Award for {event.key} replaced by earlier session")
        return True

    def awards(self) -> List[AwardedEvent]:
        return list(self._awards.values())

    def total_for(self, user_id: str) -> int:
        """All-time awarded total for a user, 0 when unknown."""
        return self._totals.get(user_id, 0)

    def _user_scores(self, window: LeaderboardWindow, now: Optional[datetime]) -> List[UserScore]:
        if window is LeaderboardWindow.ALL:
            return [
                UserScore(
                    user_id=user.user_id,
                    username=user.username,
                    created_at=user.created_at,
                    score=self._totals.get(user.user_id, 0)
                )
                for user in self._users.values()
            ]
        windowed = LeaderboardEngine.select_window(self._awards.values(), window, now)
        return LeaderboardEngine.aggregate_scores(windowed, self._users.values())

    def leaderboard(
        self,
        window: LeaderboardWindow = LeaderboardWindow.ALL,
        limit: int = PaginationConstants.DEFAULT_LIMIT,
        offset: int = PaginationConstants.DEFAULT_OFFSET,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> LeaderboardResponse:
        """Same result as LeaderboardEngine.compute over the recorded history."""
        scores = self._user_scores(window, now)
        page = LeaderboardEngine.rank_page(scores, window=window, limit=limit, offset=offset)
        me = LeaderboardEngine.resolve_self_rank(scores, user_id) if user_id else None
        return LeaderboardResponse(page=page, me=me)
