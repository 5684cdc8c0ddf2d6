"""
Shared fixtures for leaderboard engine tests.
"""

import os

# Keep test runs from writing log files
os.environ.setdefault('LOG_DIR', '')

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from scoreboard.data_models.leaderboard import PlayEvent, RegisteredUser
from scoreboard.database.database import Database

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def ago(**kwargs) -> datetime:
    """Instant relative to the fixed test clock."""
    return NOW - timedelta(**kwargs)


def make_user(user_id: str, minutes: int = 0, username: str = None) -> RegisteredUser:
    """User registered `minutes` after a fixed epoch, so lower minutes rank first on ties."""
    return RegisteredUser(
        user_id=user_id,
        username=username if username is not None else user_id.upper(),
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    )


def make_event(user_id: str, game_id: str, difficulty: str, score: int,
               started_at: datetime, sequence: int = 0) -> PlayEvent:
    return PlayEvent(
        user_id=user_id,
        game_id=game_id,
        difficulty=difficulty,
        score=score,
        started_at=started_at,
        sequence=sequence,
    )


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'leaderboard_test.db'}")
    await db.initialize()
    yield db
    await db.close()
