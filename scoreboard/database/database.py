from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from scoreboard.config import Config
from scoreboard.database.models import Base, User, GameSession
from scoreboard.utils.logger import setup_logger
from scoreboard.utils.timestamps import to_naive_utc, utcnow

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.engine = None
        self.async_session = None

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")
        Config.validate()

        database_url = Config.get_async_database_url(self.database_url)

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All writes made through the yielded session are committed together
        on success, or rolled back together on failure.

        Usage:
            async with db.transaction() as session:
                session.add(User(username="alice"))
                session.add(GameSession(user_id=..., game_id="g1", ...))
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    # User operations
    async def create_user(self, username: Optional[str] = None, created_at: Optional[datetime] = None,
                          user_id: Optional[str] = None) -> User:
        """Register a new user"""
        async with self.transaction() as session:
            user = User(
                username=username,
                created_at=to_naive_utc(created_at or utcnow())
            )
            if user_id is not None:
                user.id = user_id
            session.add(user)
            await session.flush()
            await session.refresh(user)
            return user

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by id"""
        async with self.get_session() as session:
            result = await session.execute(
                select(User).where(User.id == user_id)
            )
            return result.scalar_one_or_none()

    async def get_all_users(self) -> List[User]:
        """Get all registered users in registration order"""
        async with self.get_session() as session:
            result = await session.execute(
                select(User).order_by(User.created_at, User.id)
            )
            return result.scalars().all()

    # Session operations
    async def record_session(self, user_id: str, game_id: str, difficulty: str,
                             score: int, started_at: Optional[datetime] = None) -> GameSession:
        """Append a play session to the history"""
        if score < 0:
            raise ValueError(f"score must be non-negative, got {score}")

        async with self.transaction() as session:
            game_session = GameSession(
                user_id=user_id,
                game_id=game_id,
                difficulty=difficulty,
                score=int(score),
                started_at=to_naive_utc(started_at or utcnow())
            )
            session.add(game_session)
            await session.flush()
            await session.refresh(game_session)
            return game_session

    async def get_all_sessions(self) -> List[GameSession]:
        """Get the full play history in insertion order"""
        async with self.get_session() as session:
            result = await session.execute(
                select(GameSession).order_by(GameSession.id)
            )
            return result.scalars().all()
