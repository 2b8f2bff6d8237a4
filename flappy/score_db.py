"""
score_db.py: SQLite persistence for the best score.
Storage problems never reach the game: reads fall back to 0 and writes become no-ops.
"""

import logging
import sqlite3
from typing import Optional

from .constants import BEST_SCORE_DB, BEST_SCORE_KEY

logger = logging.getLogger(__name__)


class BestScoreStore:
    """Handles all interaction with the SQLite database."""
    def __init__(self, db_file: str = BEST_SCORE_DB, key: str = BEST_SCORE_KEY):
        self.db_file = db_file
        self.key = key
        self.conn: Optional[sqlite3.Connection] = None
        try:
            self.conn = sqlite3.connect(db_file)
            self.setup()
        except sqlite3.Error as e:
            logger.warning("Best score storage unavailable (%s): %s", db_file, e)
            self.conn = None

    def setup(self):
        """Creates the table if it doesn't exist."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS BestScores (
                name TEXT PRIMARY KEY,
                best INTEGER NOT NULL DEFAULT 0
            )
        """)
        self.conn.commit()

    def load_best_score(self) -> int:
        """Returns the stored best, or 0 when missing, corrupt or unreadable."""
        if self.conn is None:
            return 0
        try:
            row = self.conn.execute(
                "SELECT best FROM BestScores WHERE name=?", (self.key,)).fetchone()
        except sqlite3.Error as e:
            logger.warning("Could not read best score: %s", e)
            return 0

        if row is None:
            return 0
        try:
            return max(int(row[0]), 0)
        except (TypeError, ValueError):
            logger.warning("Ignoring corrupt best score value %r", row[0])
            return 0

    def save_best_score(self, score: int):
        """Stores the score if it beats the stored one."""
        if self.conn is None:
            return
        try:
            self.conn.execute("""
                INSERT INTO BestScores (name, best) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET best = CASE
                    WHEN typeof(best) = 'integer' THEN MAX(best, excluded.best)
                    ELSE excluded.best END
            """, (self.key, int(score)))
            self.conn.commit()
        except sqlite3.Error as e:
            logger.warning("Could not save best score %s: %s", score, e)

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None
