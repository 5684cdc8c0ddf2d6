"""
Query parameter parsing for leaderboard requests.

Malformed input is never an error here: unknown windows fall back to
all-time, bad limits and offsets fall back to their defaults.
"""

import math
import re
from typing import Any, Optional

from scoreboard.constants import PaginationConstants
from scoreboard.data_models.leaderboard import LeaderboardWindow

_LEADING_INT_RE = re.compile(r"^\s*([+-]?[0-9]+)")


def parse_window(value: Any) -> LeaderboardWindow:
    """
    Normalize a window parameter.
    
    Matching is case-insensitive. Anything that is not one of
    24h, 7d, 30d or all (including None and non-strings) becomes all.
    """
    if isinstance(value, LeaderboardWindow):
        return value
    if not isinstance(value, str) or not value:
        return LeaderboardWindow.ALL
    try:
        return LeaderboardWindow(value.strip().lower())
    except ValueError:
        return LeaderboardWindow.ALL


def parse_int(value: Any) -> Optional[int]:
    """
    Parse an integer the lenient way query strings are usually read.
    
    Strings yield their leading integer ("12abc" -> 12, "3.9" -> 3),
    finite floats are truncated. Returns None when nothing usable is found.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if not match:
            return None
        return int(match.group(1))
    return None


def parse_limit(value: Any) -> int:
    """Parse a page size: must be positive, clamped to MAX_LIMIT."""
    limit = parse_int(value)
    if limit is None or limit <= 0:
        return PaginationConstants.DEFAULT_LIMIT
    return min(limit, PaginationConstants.MAX_LIMIT)


def parse_offset(value: Any) -> int:
    """Parse a page offset: must be zero or positive, clamped to MAX_OFFSET."""
    offset = parse_int(value)
    if offset is None or offset < 0:
        return PaginationConstants.DEFAULT_OFFSET
    return min(offset, PaginationConstants.MAX_OFFSET)
