import uuid

from sqlalchemy import (
    Column, Integer, BigInteger, String, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base

from scoreboard.utils.timestamps import utcnow, to_naive_utc

Base = declarative_base()

def _new_user_id() -> str:
    return str(uuid.uuid4())

def _naive_utcnow():
    return to_naive_utc(utcnow())

class User(Base):
    """Registered ranking subject. Written by the registration flow, read-only here."""
    __tablename__ = 'users'
    
    id = Column(String(36), primary_key=True, default=_new_user_id)
    username = Column(String(100), nullable=True)
    
    # Registration instant, naive UTC; tie-break for the page ordering
    created_at = Column(DateTime, nullable=False, default=_naive_utcnow)
    
    def __repr__(self):
        return f"<User(id='{self.id}', username='{self.username}')>"

class GameSession(Base):
    """
    Append-only play history.
    
    The autoincrement id is the insertion order and breaks ties between
    sessions of the same key that started at the same instant.
    """
    __tablename__ = 'game_sessions'
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    game_id = Column(String(100), nullable=False)
    difficulty = Column(String(50), nullable=False)
    score = Column(BigInteger, nullable=False, default=0)
    started_at = Column(DateTime, nullable=False, default=_naive_utcnow)
    
    __table_args__ = (
        CheckConstraint('score >= 0', name='non_negative_score_check'),
        Index('idx_game_sessions_award_key', 'user_id', 'game_id', 'difficulty', 'started_at', 'id'),
    )
    
    def __repr__(self):
        return (f"<GameSession(user_id='{self.user_id}', game_id='{self.game_id}', "
                f"difficulty='{self.difficulty}', score={self.score})>")
