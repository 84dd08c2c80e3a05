"""Persistence layer.

Provides:
- StudyStore interface and backend selection (store)
- Local SQLite backend (local_store, database)
- Hosted Supabase backend (hosted_store)
"""

from bizu.db.database import ensure_db, get_db, init_db
from bizu.db.store import (
    DEFAULT_USER_ID,
    QuizResult,
    StorageConfigError,
    StorageError,
    StudyStore,
    create_store,
    select_backend,
)

__all__ = [
    "DEFAULT_USER_ID",
    "QuizResult",
    "StorageConfigError",
    "StorageError",
    "StudyStore",
    "create_store",
    "ensure_db",
    "get_db",
    "init_db",
    "select_backend",
]
