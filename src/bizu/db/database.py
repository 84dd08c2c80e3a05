"""SQLite database connection and schema management.

Provides connection management and schema initialization for the local
storage backend.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from bizu.db.store import StorageError

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/bizu.db")

# Current database (module-level for simplicity in CLI context)
_db_path: Path | None = None

# Files whose schema was already created in this process
_initialized_paths: set[Path] = set()


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/bizu.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    with get_db(_db_path) as conn:
        _create_schema(conn)

    logger.debug("database.initialized", path=str(_db_path))


def ensure_db(db_path: Path) -> None:
    """Initialize ``db_path`` once per process."""
    key = Path(db_path).resolve()
    if key in _initialized_paths:
        return
    init_db(db_path)
    _initialized_paths.add(key)


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on success, rolls back on error.

    Args:
        db_path: Explicit database file (defaults to the initialized one)

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM materials").fetchall()
    """
    db_path = db_path or _db_path or DEFAULT_DB_PATH

    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(db_path)
    except (OSError, sqlite3.Error) as e:
        logger.error("database.open_failed", path=str(db_path), error=str(e))
        raise StorageError(f"Cannot open database {db_path}: {e}") from e
    conn.row_factory = sqlite3.Row

    try:
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        logger.error("database.query_failed", path=str(db_path), error=str(e))
        raise StorageError(f"Database error: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Every table carries user_id so several local profiles can share a file.
    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS stats (
            user_id TEXT PRIMARY KEY,
            total_questions INTEGER NOT NULL DEFAULT 0,
            total_correct INTEGER NOT NULL DEFAULT 0,
            last_study_date TEXT NOT NULL DEFAULT '',
            current_streak INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS quiz_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            topic TEXT NOT NULL,
            total_questions INTEGER NOT NULL,
            score INTEGER NOT NULL,
            date TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS chat_messages (
            id TEXT NOT NULL,
            user_id TEXT NOT NULL,
            role TEXT NOT NULL CHECK(role IN ('user', 'model')),
            text TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            PRIMARY KEY (user_id, id)
        );

        CREATE TABLE IF NOT EXISTS materials (
            id TEXT NOT NULL,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT '',
            type TEXT NOT NULL CHECK(type IN ('PDF', 'VIDEO', 'ARTICLE')),
            duration TEXT NOT NULL DEFAULT '',
            summary TEXT NOT NULL DEFAULT '',
            updated_at TEXT NOT NULL DEFAULT '',
            content TEXT,
            PRIMARY KEY (user_id, id)
        );

        CREATE TABLE IF NOT EXISTS routine (
            user_id TEXT PRIMARY KEY,
            id TEXT NOT NULL DEFAULT 'user_routine',
            target_exam TEXT NOT NULL,
            hours_per_day REAL NOT NULL,
            week_schedule TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_quiz_history_user_date ON quiz_history(user_id, date);
        CREATE INDEX IF NOT EXISTS idx_chat_messages_user_ts ON chat_messages(user_id, timestamp);
        CREATE INDEX IF NOT EXISTS idx_materials_category ON materials(user_id, category);
        """
    )
