import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Leaderboard engine configuration settings"""
    
    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///leaderboard.db')
    
    # Logging settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    
    # Ranking backend: "sql" runs the award pipeline as CTE queries,
    # "memory" loads users and sessions and runs it in Python
    LEADERBOARD_BACKEND = os.getenv('LEADERBOARD_BACKEND', 'sql').lower()
    
    ALLOWED_BACKENDS = ('sql', 'memory')
    
    @classmethod
    def get_async_database_url(cls, database_url: str = None) -> str:
        """Get the database URL with an async driver for sqlite"""
        url = database_url or cls.DATABASE_URL
        if url.startswith('sqlite:///'):
            url = url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        return url
    
    @classmethod
    def validate(cls):
        """Validate that configuration values are usable"""
        if not cls.DATABASE_URL:
            raise ValueError("DATABASE_URL is required")
        if cls.LEADERBOARD_BACKEND not in cls.ALLOWED_BACKENDS:
            raise ValueError(
                f"LEADERBOARD_BACKEND must be one of {', '.join(cls.ALLOWED_BACKENDS)}"
            )
