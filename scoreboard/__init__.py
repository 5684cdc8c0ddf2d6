"""
First-award leaderboard engine.

Turns an append-only history of game sessions into a paginated,
time-windowed ranking of registered users plus a single-user rank lookup.
"""

__version__ = "1.0.0"
