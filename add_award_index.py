#!/usr/bin/env python3
"""
Add the award lookup index to an existing leaderboard database.

New databases get idx_game_sessions_award_key from the models. Databases
created before the index existed need this script so the first-session
window query (PARTITION BY user, game, difficulty ORDER BY started_at, id)
can read sessions in index order instead of sorting the whole history.

Usage:
    python add_award_index.py [path/to/leaderboard.db]
"""

import sqlite3
import os
import sys

from scoreboard.utils.logger import setup_logger

logger = setup_logger(__name__)

INDEX_NAME = "idx_game_sessions_award_key"


def add_award_index(db_path: str = "leaderboard.db") -> bool:
    """Add the award index to game_sessions. Returns True when the index exists afterwards."""
    if not os.path.exists(db_path):
        logger.error(f"Database file {db_path} not found")
        return False

    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()

        # Check if index already exists
        cursor.execute(
            "SELECT name FROM sqlite_master WHERE type='index' AND name=?",
            (INDEX_NAME,)
        )
        if cursor.fetchone():
            logger.info(f"Index {INDEX_NAME} already exists")
            return True

        logger.info(f"Creating index {INDEX_NAME} on game_sessions...")
        cursor.execute(f"""
            CREATE INDEX {INDEX_NAME}
            ON game_sessions(user_id, game_id, difficulty, started_at, id)
        """)
        conn.commit()

        logger.info(f"Successfully created index {INDEX_NAME}")
        return True

    except sqlite3.Error as e:
        logger.error(f"Error creating index: {e}")
        return False
    finally:
        conn.close()

if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else "leaderboard.db"
    sys.exit(0 if add_award_index(path) else 1)
