"""
SQLite handle for users, lost items and claims.

A Database is built once at process start and passed to the DAO; nothing
here holds a module-level connection.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from .config import DB_PATH, ensure_db_directory
from ..util.logging import logger


class Database:
    """Owns the SQLite file path and hands out short-lived connections."""

    def __init__(self, path: str = None):
        self.path = path or DB_PATH
        if self.path != ":memory:":
            ensure_db_directory(self.path)

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a SQLite database connection."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self):
        """Initialize the database with required tables."""
        with self.connect() as conn:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS lost_items (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL,
                    status TEXT NOT NULL,
                    lost_by_id TEXT REFERENCES users(id),
                    found_by_id TEXT REFERENCES users(id),
                    stored_by_id TEXT REFERENCES users(id),
                    lost_on TEXT,
                    found_on TEXT,
                    stored_on TEXT,
                    returned_on TEXT,
                    created_at TEXT NOT NULL
                )
            ''')

            # similarity is written once per claim, together with the model that produced it
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS claims (
                    id TEXT PRIMARY KEY,
                    lost_item_id TEXT NOT NULL REFERENCES lost_items(id),
                    claimer_id TEXT NOT NULL REFERENCES users(id),
                    description TEXT NOT NULL,
                    success INTEGER NOT NULL DEFAULT 0,
                    similarity REAL NOT NULL,
                    embed_model TEXT,
                    created_at TEXT NOT NULL
                )
            ''')

            cursor.execute('CREATE INDEX IF NOT EXISTS idx_claims_item_similarity ON claims(lost_item_id, similarity DESC)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_claims_created_at ON claims(created_at)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_items_status_created_at ON lost_items(status, created_at)')

            conn.commit()

        logger.log_operation("db.init", "success", {"path": self.path})

    def health_check(self) -> bool:
        """Check that the database is reachable and the schema exists."""
        try:
            with self.connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
                table_names = [row[0] for row in cursor.fetchall()]
                required_tables = ['users', 'lost_items', 'claims']
                return all(table in table_names for table in required_tables)
        except sqlite3.Error as e:
            logger.warning(f"Database health check failed: {e}")
            return False
