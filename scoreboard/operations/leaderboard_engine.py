"""
Leaderboard Engine - first-award ranking pipeline

Turns play history into a ranked leaderboard in explicit stages:
deduplicate awards -> select window -> aggregate scores -> rank and page,
with an independent self-rank lookup over the same aggregated population.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from scoreboard.constants import PaginationConstants, ScoreConstants
from scoreboard.data_models.leaderboard import (
    AwardKey, AwardedEvent, LeaderboardEntry, LeaderboardPage, LeaderboardResponse,
    LeaderboardWindow, PlayEvent, RegisteredUser, SelfRank, UserScore
)
from scoreboard.utils.leaderboard_exceptions import ScoreOverflowError
from scoreboard.utils.timestamps import as_utc, utcnow


class LeaderboardEngine:
    """Pure ranking pipeline over users and play events"""

    @staticmethod
    def award_order(event) -> tuple:
        """Sort key deciding which session of a key is the award."""
        return (as_utc(event.started_at), event.sequence)

    @staticmethod
    def deduplicate_awards(events: Iterable[PlayEvent]) -> Dict[AwardKey, AwardedEvent]:
        """
        Reduce play history to one award per (user, game, difficulty).

        The earliest started_at wins; equal instants fall back to the lower
        sequence, then to whichever was seen first. The result does not
        depend on the order events arrive in as long as sequences differ.

        Args:
            events: Full play history (must not be pre-filtered by window)

        Returns:
            Mapping of award key to the awarded event
        """
        awards: Dict[AwardKey, AwardedEvent] = {}
        for event in events:
            current = awards.get(event.key)
            if current is None or LeaderboardEngine.award_order(event) < LeaderboardEngine.award_order(current):
                awards[event.key] = AwardedEvent.from_event(event)
        return awards

    @staticmethod
    def window_since(window: LeaderboardWindow, now: Optional[datetime] = None) -> Optional[datetime]:
        """Start of a bounded window, None for all-time."""
        duration = window.duration
        if duration is None:
            return None
        return as_utc(now or utcnow()) - duration

    @staticmethod
    def select_window(
        awards: Iterable[AwardedEvent],
        window: LeaderboardWindow,
        now: Optional[datetime] = None
    ) -> List[AwardedEvent]:
        """
        Keep the awards whose first-ever occurrence falls inside the window.

        Replays are never awards, so a replay inside the window of a key
        first played before it contributes nothing.
        """
        since = LeaderboardEngine.window_since(window, now)
        if since is None:
            return list(awards)
        return [award for award in awards if as_utc(award.started_at) >= since]

    @staticmethod
    def aggregate_scores(
        awards: Iterable[AwardedEvent],
        users: Iterable[RegisteredUser]
    ) -> List[UserScore]:
        """
        Sum award scores per registered user, zero for users without awards.

        Awards belonging to ids that are not registered users are dropped.

        Raises:
            ScoreOverflowError: If a total leaves the signed 64-bit range
        """
        users = list(users)
        totals = {user.user_id: 0 for user in users}
        for award in awards:
            if award.user_id not in totals:
                continue
            total = totals[award.user_id] + award.score
            if total > ScoreConstants.MAX_TOTAL_SCORE:
                raise ScoreOverflowError(award.user_id, total)
            totals[award.user_id] = total

        return [
            UserScore(
                user_id=user.user_id,
                username=user.username,
                created_at=user.created_at,
                score=totals[user.user_id],
            )
            for user in users
        ]

    @staticmethod
    def order_scores(scores: Iterable[UserScore]) -> List[UserScore]:
        """Score descending, earlier registration first, then user id."""
        return sorted(scores, key=lambda s: (-s.score, as_utc(s.created_at), s.user_id))

    @staticmethod
    def rank_page(
        scores: Iterable[UserScore],
        window: LeaderboardWindow = LeaderboardWindow.ALL,
        limit: int = PaginationConstants.DEFAULT_LIMIT,
        offset: int = PaginationConstants.DEFAULT_OFFSET
    ) -> LeaderboardPage:
        """
        Order the full population and slice out one page.

        Ranks are positional: the i-th user of the full ordering has rank
        i + 1 even when scores tie.

        Args:
            scores: One UserScore per registered user
            window: Window echoed back on the page
            limit: Page size, already normalized
            offset: Page start, already normalized

        Returns:
            LeaderboardPage for [offset, offset + limit)
        """
        ordered = LeaderboardEngine.order_scores(scores)
        entries = [
            LeaderboardEntry(
                rank=offset + i + 1,
                user_id=score.user_id,
                username=score.username,
                score=score.score,
            )
            for i, score in enumerate(ordered[offset:offset + limit])
        ]
        return LeaderboardPage(
            window=window,
            entries=entries,
            total=len(ordered),
            limit=limit,
            offset=offset,
        )

    @staticmethod
    def resolve_self_rank(scores: Iterable[UserScore], user_id: str) -> Optional[SelfRank]:
        """
        Count-rank of one user: one plus the users with a strictly greater score.

        Returns:
            SelfRank, or None when user_id is not a registered user
        """
        scores = list(scores)
        target = next((s for s in scores if s.user_id == user_id), None)
        if target is None:
            return None
        higher = sum(1 for s in scores if s.score > target.score)
        return SelfRank(
            user_id=target.user_id,
            username=target.username,
            score=target.score,
            rank=higher + 1,
        )

    @classmethod
    def compute(
        cls,
        users: Iterable[RegisteredUser],
        events: Iterable[PlayEvent],
        window: LeaderboardWindow = LeaderboardWindow.ALL,
        limit: int = PaginationConstants.DEFAULT_LIMIT,
        offset: int = PaginationConstants.DEFAULT_OFFSET,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> LeaderboardResponse:
        """Run the whole pipeline once and build the response."""
        awards = cls.deduplicate_awards(events)
        windowed = cls.select_window(awards.values(), window, now)
        scores = cls.aggregate_scores(windowed, users)

        page = cls.rank_page(scores, window=window, limit=limit, offset=offset)
        me = cls.resolve_self_rank(scores, user_id) if user_id else None
        return LeaderboardResponse(page=page, me=me)
