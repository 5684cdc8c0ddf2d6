"""
Shared ranking queries for the SQL leaderboard backend.

Expresses the award pipeline as CTEs so the database does the work:
first_sessions (one award per key) -> sums (windowed totals) ->
user_scores (every registered user, zero when no awards).
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.sql import Select
from sqlalchemy.sql.selectable import CTE

from scoreboard.database.models import User, GameSession
from scoreboard.utils.timestamps import to_naive_utc


class RankingUtility:
    """Shared ranking logic for consistent CTE pattern usage."""

    @staticmethod
    def create_first_award_cte() -> CTE:
        """
        One row per (user, game, difficulty): the earliest session, ties by id.

        Always built over the full history; windows are applied afterwards
        so a replay can never stand in for an older first session.
        """
        award_order = func.row_number().over(
            partition_by=[GameSession.user_id, GameSession.game_id, GameSession.difficulty],
            order_by=[GameSession.started_at.asc(), GameSession.id.asc()]
        ).label('award_order')

        ordered_sessions = select(
            GameSession.user_id,
            GameSession.game_id,
            GameSession.difficulty,
            GameSession.score,
            GameSession.started_at,
            award_order
        ).subquery('ordered_sessions')

        return (
            select(
                ordered_sessions.c.user_id,
                ordered_sessions.c.game_id,
                ordered_sessions.c.difficulty,
                ordered_sessions.c.score,
                ordered_sessions.c.started_at
            )
            .where(ordered_sessions.c.award_order == 1)
            .cte('first_sessions')
        )

    @staticmethod
    def create_user_score_cte(since: Optional[datetime] = None) -> CTE:
        """
        Windowed award total for every registered user.

        Args:
            since: Window start, None for all-time
        """
        first_sessions = RankingUtility.create_first_award_cte()

        sums_query = select(
            first_sessions.c.user_id,
            func.sum(first_sessions.c.score).label('total')
        )
        if since is not None:
            sums_query = sums_query.where(first_sessions.c.started_at >= to_naive_utc(since))
        sums = sums_query.group_by(first_sessions.c.user_id).cte('sums')

        return (
            select(
                User.id.label('user_id'),
                User.username,
                User.created_at,
                func.coalesce(sums.c.total, 0).label('score')
            )
            .select_from(User)
            .outerjoin(sums, sums.c.user_id == User.id)
            .cte('user_scores')
        )

    @staticmethod
    def page_query(user_scores: CTE, limit: int, offset: int) -> Select:
        """Score descending, earlier registration first, then user id."""
        return (
            select(user_scores)
            .order_by(
                user_scores.c.score.desc(),
                user_scores.c.created_at.asc(),
                user_scores.c.user_id.asc()
            )
            .limit(limit)
            .offset(offset)
        )

    @staticmethod
    def self_score_query(user_scores: CTE, user_id: str) -> Select:
        return select(user_scores).where(user_scores.c.user_id == user_id)

    @staticmethod
    def higher_score_count_query(user_scores: CTE, score: int) -> Select:
        """Number of users with a strictly greater score."""
        return select(func.count()).select_from(user_scores).where(user_scores.c.score > score)

    @staticmethod
    def total_users_query() -> Select:
        return select(func.count(User.id))
