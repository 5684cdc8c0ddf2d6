"""
Tests for score aggregation, page ranking and self-rank resolution.
"""

from datetime import datetime, timezone

import pytest

from scoreboard.constants import ScoreConstants
from scoreboard.data_models.leaderboard import AwardedEvent, LeaderboardWindow, UserScore
from scoreboard.operations.leaderboard_engine import LeaderboardEngine
from scoreboard.utils.leaderboard_exceptions import ScoreOverflowError, LeaderboardException
from conftest import NOW, ago, make_event, make_user


def _award(user_id, game_id, score, difficulty="easy"):
    return AwardedEvent(user_id, game_id, difficulty, score, ago(days=1))


def _score(user_id, score, minutes=0):
    user = make_user(user_id, minutes=minutes)
    return UserScore(user.user_id, user.username, user.created_at, score)


class TestAggregateScores:
    """Tests for LeaderboardEngine.aggregate_scores."""

    def test_users_without_awards_get_zero(self):
        users = [make_user("a"), make_user("b", 1)]
        scores = LeaderboardEngine.aggregate_scores([_award("a", "g1", 7)], users)
        assert {s.user_id: s.score for s in scores} == {"a": 7, "b": 0}

    def test_sums_all_awards_of_a_user(self):
        users = [make_user("a")]
        awards = [_award("a", "g1", 7), _award("a", "g2", 5), _award("a", "g1", 1, difficulty="hard")]
        assert LeaderboardEngine.aggregate_scores(awards, users)[0].score == 13

    def test_awards_of_unregistered_users_dropped(self):
        scores = LeaderboardEngine.aggregate_scores([_award("ghost", "g1", 100)], [make_user("a")])
        assert [(s.user_id, s.score) for s in scores] == [("a", 0)]

    def test_no_users_no_scores(self):
        assert LeaderboardEngine.aggregate_scores([_award("a", "g1", 1)], []) == []

    def test_total_at_limit_allowed(self):
        awards = [_award("a", "g1", ScoreConstants.MAX_TOTAL_SCORE)]
        assert LeaderboardEngine.aggregate_scores(awards, [make_user("a")])[0].score == ScoreConstants.MAX_TOTAL_SCORE

    def test_overflow_is_fatal(self):
        awards = [_award("a", "g1", ScoreConstants.MAX_TOTAL_SCORE), _award("a", "g2", 1)]
        with pytest.raises(ScoreOverflowError) as exc_info:
            LeaderboardEngine.aggregate_scores(awards, [make_user("a")])
        assert exc_info.value.user_id == "a"
        assert isinstance(exc_info.value, LeaderboardException)


class TestRankPage:
    """Tests for LeaderboardEngine.rank_page."""

    def test_empty_population(self):
        page = LeaderboardEngine.rank_page([], limit=50, offset=0)
        assert page.entries == []
        assert page.total == 0
        assert page.has_prev is False
        assert page.has_next is False

    def test_sorted_by_score_then_registration(self):
        scores = [_score("late", 10, minutes=5), _score("top", 20, minutes=9), _score("early", 10, minutes=1)]
        page = LeaderboardEngine.rank_page(scores)
        assert [e.user_id for e in page.entries] == ["top", "early", "late"]
        assert [e.rank for e in page.entries] == [1, 2, 3]

    def test_equal_scores_get_distinct_consecutive_ranks(self):
        scores = [_score(f"u{i}", 0, minutes=i) for i in range(5)]
        page = LeaderboardEngine.rank_page(scores)
        assert [e.rank for e in page.entries] == [1, 2, 3, 4, 5]

    def test_user_id_breaks_full_ties(self):
        scores = [_score("b", 3), _score("a", 3)]
        assert [e.user_id for e in LeaderboardEngine.rank_page(scores).entries] == ["a", "b"]

    def test_ranks_continue_from_offset(self):
        scores = [_score(f"u{i}", 100 - i, minutes=i) for i in range(10)]
        page = LeaderboardEngine.rank_page(scores, limit=3, offset=4)
        assert [e.rank for e in page.entries] == [5, 6, 7]
        assert [e.user_id for e in page.entries] == ["u4", "u5", "u6"]
        assert page.total == 10
        assert page.has_prev is True
        assert page.has_next is True

    def test_last_page_has_no_next(self):
        scores = [_score(f"u{i}", i, minutes=i) for i in range(5)]
        page = LeaderboardEngine.rank_page(scores, limit=3, offset=3)
        assert len(page.entries) == 2
        assert page.has_next is False

    def test_offset_past_end(self):
        scores = [_score("a", 1)]
        page = LeaderboardEngine.rank_page(scores, limit=10, offset=5)
        assert page.entries == []
        assert page.total == 1
        assert page.has_prev is True
        assert page.has_next is False

    def test_window_echoed(self):
        page = LeaderboardEngine.rank_page([], window=LeaderboardWindow.MONTH)
        assert page.window is LeaderboardWindow.MONTH


class TestResolveSelfRank:
    """Tests for LeaderboardEngine.resolve_self_rank."""

    def test_unknown_user_is_none(self):
        assert LeaderboardEngine.resolve_self_rank([_score("a", 5)], "nobody") is None

    def test_rank_counts_strictly_greater_scores(self):
        scores = [_score("a", 30), _score("b", 20), _score("c", 20), _score("d", 10)]
        assert LeaderboardEngine.resolve_self_rank(scores, "c").rank == 2
        assert LeaderboardEngine.resolve_self_rank(scores, "b").rank == 2
        assert LeaderboardEngine.resolve_self_rank(scores, "d").rank == 4

    def test_everyone_zero_shares_rank_one(self):
        scores = [_score(f"u{i}", 0, minutes=i) for i in range(4)]
        for i in range(4):
            assert LeaderboardEngine.resolve_self_rank(scores, f"u{i}").rank == 1

    def test_carries_username_and_score(self):
        me = LeaderboardEngine.resolve_self_rank([_score("a", 12)], "a")
        assert (me.user_id, me.username, me.score) == ("a", "A", 12)


class TestComputeScenarios:
    """End-to-end pipeline scenarios."""

    def test_tie_break_diverges_between_page_and_self_rank(self):
        """
        A registers before B. A scores 10 then replays for 5; B scores 10.
        Page: A rank 1, B rank 2. Self-rank for B: rank 1.
        """
        users = [make_user("a", minutes=1), make_user("b", minutes=2)]
        events = [
            make_event("a", "game1", "easy", 10, datetime(2026, 10, 1, 1, tzinfo=timezone.utc), sequence=1),
            make_event("a", "game1", "easy", 5, datetime(2026, 10, 1, 2, tzinfo=timezone.utc), sequence=2),
            make_event("b", "game1", "easy", 10, datetime(2026, 10, 1, 3, tzinfo=timezone.utc), sequence=3),
        ]
        response = LeaderboardEngine.compute(users, events, user_id="b", now=NOW)

        assert [(e.user_id, e.score, e.rank) for e in response.page.entries] == [("a", 10, 1), ("b", 10, 2)]
        assert (response.me.score, response.me.rank) == (10, 1)

    def test_total_counts_users_with_zero_score(self):
        users = [make_user("a"), make_user("b", 1), make_user("c", 2)]
        events = [make_event("a", "g1", "easy", 3, ago(days=1), sequence=1)]
        response = LeaderboardEngine.compute(users, events, limit=1, now=NOW)
        assert response.page.total == 3
        assert len(response.page.entries) == 1
        assert response.page.has_next is True

    def test_all_time_total_is_sum_of_awards(self):
        users = [make_user("a")]
        events = [
            make_event("a", "g1", "easy", 3, ago(days=100), sequence=1),
            make_event("a", "g1", "hard", 4, ago(days=50), sequence=2),
            make_event("a", "g2", "easy", 5, ago(days=1), sequence=3),
            make_event("a", "g2", "easy", 500, ago(hours=1), sequence=4),
        ]
        response = LeaderboardEngine.compute(users, events, user_id="a", now=NOW)
        assert response.me.score == 12

    def test_unknown_target_yields_no_self_rank(self):
        response = LeaderboardEngine.compute([make_user("a")], [], user_id="missing", now=NOW)
        assert response.me is None

    def test_no_target_no_self_rank(self):
        response = LeaderboardEngine.compute([make_user("a")], [], now=NOW)
        assert response.me is None

    def test_response_wire_shape(self):
        users = [make_user("a", username="alice"), make_user("b", 1, username="bob")]
        events = [make_event("b", "g1", "easy", 9, ago(hours=2), sequence=1)]
        response = LeaderboardEngine.compute(
            users, events, window=LeaderboardWindow.DAY, limit=1, offset=0, user_id="a", now=NOW
        )
        assert response.to_dict() == {
            "window": "24h",
            "leaders": [{"userId": "b", "username": "bob", "score": 9, "rank": 1}],
            "me": {"userId": "a", "username": "alice", "score": 0, "rank": 2},
            "total": 2,
            "limit": 1,
            "offset": 0,
            "hasPrev": False,
            "hasNext": True,
        }
