"""
Leaderboard service for the first-award ranking engine.

Answers leaderboard queries (window, limit, offset, optional target user)
from the session history, either with CTE queries run by the database or by
loading the history and running the Python pipeline.
"""

from datetime import datetime
from typing import Any, Callable, List, Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from scoreboard.config import Config
from scoreboard.services.base import BaseService
from scoreboard.data_models.leaderboard import (
    LeaderboardEntry, LeaderboardPage, LeaderboardResponse, LeaderboardWindow,
    PlayEvent, RegisteredUser, SelfRank
)
from scoreboard.database.models import User, GameSession
from scoreboard.operations.leaderboard_engine import LeaderboardEngine
from scoreboard.utils.leaderboard_exceptions import DatabaseError
from scoreboard.utils.query_params import parse_window, parse_limit, parse_offset
from scoreboard.utils.ranking import RankingUtility
from scoreboard.utils.timestamps import as_utc, utcnow

logger = logging.getLogger(__name__)


class LeaderboardService(BaseService):
    """Service for windowed leaderboard pages and self-rank lookups."""

    def __init__(self, session_factory, backend: Optional[str] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        super().__init__(session_factory)
        self.backend = (backend or Config.LEADERBOARD_BACKEND).lower()
        if self.backend not in Config.ALLOWED_BACKENDS:
            raise ValueError(
                f"backend must be one of {', '.join(Config.ALLOWED_BACKENDS)}, got '{self.backend}'"
            )
        self.clock = clock or utcnow

    async def get_leaderboard(
        self,
        window: Any = None,
        limit: Any = None,
        offset: Any = None,
        user_id: Optional[str] = None
    ) -> LeaderboardResponse:
        """
        Get one leaderboard page and, when user_id is given, that user's rank.

        Raw query values are accepted as-is: unknown windows read as all-time
        and malformed limits/offsets fall back to their defaults.

        Raises:
            DatabaseError: If any read fails; no partial result is returned
        """
        window = parse_window(window)
        limit = parse_limit(limit)
        offset = parse_offset(offset)
        user_id = user_id if isinstance(user_id, str) and user_id else None
        now = self.clock()

        logger.debug(
            f"Leaderboard query window={window.value} limit={limit} offset={offset} "
            f"user_id={user_id} backend={self.backend}"
        )

        try:
            async with self.get_session() as session:
                if self.backend == "memory":
                    return await self._compute_in_memory(session, window, limit, offset, user_id, now)
                return await self._compute_with_sql(session, window, limit, offset, user_id, now)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {window.value} leaderboard: {e}", exc_info=True)
            raise DatabaseError("leaderboard query", str(e)) from e

    async def _compute_with_sql(
        self, session: "AsyncSession", window: LeaderboardWindow, limit: int, offset: int,
        user_id: Optional[str], now: datetime
    ) -> LeaderboardResponse:
        """Run the award pipeline as CTE queries inside one session."""
        since = LeaderboardEngine.window_since(window, now)
        user_scores = RankingUtility.create_user_score_cte(since)

        total = await session.scalar(RankingUtility.total_users_query()) or 0

        result = await session.execute(RankingUtility.page_query(user_scores, limit, offset))
        entries = [
            LeaderboardEntry(
                rank=offset + i + 1,
                user_id=row.user_id,
                username=row.username,
                score=int(row.score or 0)
            )
            for i, row in enumerate(result)
        ]
        page = LeaderboardPage(window=window, entries=entries, total=total, limit=limit, offset=offset)

        me = None
        if user_id:
            me = await self._resolve_self_rank_with_sql(session, user_scores, user_id)

        return LeaderboardResponse(page=page, me=me)

    async def _resolve_self_rank_with_sql(
        self, session: "AsyncSession", user_scores, user_id: str
    ) -> Optional[SelfRank]:
        result = await session.execute(RankingUtility.self_score_query(user_scores, user_id))
        row = result.first()
        if row is None:
            logger.debug(f"Self-rank target {user_id} is not a registered user")
            return None

        score = int(row.score or 0)
        higher = await session.scalar(RankingUtility.higher_score_count_query(user_scores, score)) or 0
        return SelfRank(user_id=row.user_id, username=row.username, score=score, rank=higher + 1)

    async def _compute_in_memory(
        self, session: "AsyncSession", window: LeaderboardWindow, limit: int, offset: int,
        user_id: Optional[str], now: datetime
    ) -> LeaderboardResponse:
        """Load users and history in one session and run the Python pipeline."""
        users = await self._load_users(session)
        events = await self._load_events(session)
        return LeaderboardEngine.compute(
            users, events, window=window, limit=limit, offset=offset, user_id=user_id, now=now
        )

    async def _load_users(self, session: "AsyncSession") -> List[RegisteredUser]:
        result = await session.execute(select(User.id, User.username, User.created_at))
        return [
            RegisteredUser(user_id=row.id, username=row.username, created_at=as_utc(row.created_at))
            for row in result
        ]

    async def _load_events(self, session: "AsyncSession") -> List[PlayEvent]:
        result = await session.execute(
            select(
                GameSession.id,
                GameSession.user_id,
                GameSession.game_id,
                GameSession.difficulty,
                GameSession.score,
                GameSession.started_at
            ).order_by(GameSession.id)
        )
        return [
            PlayEvent(
                user_id=row.user_id,
                game_id=row.game_id,
                difficulty=row.difficulty,
                score=int(row.score),
                started_at=as_utc(row.started_at),
                sequence=row.id
            )
            for row in result
        ]
