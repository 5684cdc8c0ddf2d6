"""
Engine-wide constants for the leaderboard ranking engine.

This module contains the paging limits and score bounds used throughout
the codebase so the parser, the pipeline and the SQL queries agree.
"""

class PaginationConstants:
    """Constants for paginated leaderboard queries."""
    
    # Page size when the caller gives none or a malformed one
    DEFAULT_LIMIT = 50
    
    # Hard upper bound on a single page
    MAX_LIMIT = 1000
    
    DEFAULT_OFFSET = 0
    
    # Largest offset a database can bind (signed 64-bit)
    MAX_OFFSET = 2 ** 63 - 1

class ScoreConstants:
    """Constants for score aggregation."""
    
    # Largest total a user can accumulate (signed 64-bit)
    MAX_TOTAL_SCORE = 2 ** 63 - 1
