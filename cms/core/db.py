"""SQLite database initialization and connection management."""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from . import config


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    conn = sqlite3.connect(config.DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def init_db():
    """Initialize the database with required tables."""
    config.ensure_db_directory()
    with get_db() as conn:
        cursor = conn.cursor()

        # One envelope per content type; values_json holds the whole array
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS form_data (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL UNIQUE,
                values_json TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS sessions (
                token TEXT PRIMARY KEY,
                email TEXT NOT NULL,
                created_at TEXT NOT NULL,
                expires_at TEXT NOT NULL
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_form_data_created_at ON form_data(created_at DESC)')

        conn.commit()


def health_check():
    """Check database health."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [table[0] for table in cursor.fetchall()]
            required_tables = ['form_data', 'sessions']
            return all(table in table_names for table in required_tables)
    except Exception:
        return False
