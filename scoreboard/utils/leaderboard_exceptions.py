"""
Custom exceptions for the leaderboard engine with caller-safe error messages.
"""

class LeaderboardException(Exception):
    """Base exception for leaderboard-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class DatabaseError(LeaderboardException):
    """Raised when loading the leaderboard from the database fails."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "Failed to load leaderboard"
        )
        self.operation = operation

class ScoreOverflowError(LeaderboardException):
    """Raised when a user's awarded total exceeds the 64-bit score range."""
    def __init__(self, user_id: str, total: int):
        super().__init__(
            f"Score total {total} for user {user_id} exceeds the supported range",
            "Failed to load leaderboard"
        )
        self.user_id = user_id
        self.total = total
