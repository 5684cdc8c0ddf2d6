"""
Base service class for the leaderboard engine.

Provides async database session management for all service layer reads.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

class BaseService:
    """Base class for all services with async database session management."""
    
    def __init__(self, session_factory):
        """
        Initialize base service with session factory.
        
        Args:
            session_factory: Async session factory from Database class
        """
        self.session_factory = session_factory
    
    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a single read scope for async database operations.
        
        All queries of one request share this session and its transaction,
        which gives a single snapshot on backends with snapshot isolation.
        """
        session = self.session_factory()
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()
