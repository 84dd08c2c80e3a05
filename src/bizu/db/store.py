"""Store interface and backend selection.

Both backends expose the same operations and are bound to one user, so
callers never pass the owner explicitly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import structlog

from bizu.config.app_config import StorageSettings
from bizu.core.materials import StudyMaterial
from bizu.core.routine_planner import StudyRoutine
from bizu.core.stats import UserStats
from bizu.core.tutor import ChatMessage

logger = structlog.get_logger(__name__)

DEFAULT_USER_ID = "local"

BackendName = Literal["local", "hosted"]


class StorageError(Exception):
    """Error reading or writing persisted data."""

    pass


class StorageConfigError(StorageError):
    """Requested backend is not configured."""

    pass


@dataclass
class QuizResult:
    """One finished quiz."""

    topic: str
    total_questions: int
    score: int
    date: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "totalQuestions": self.total_questions,
            "score": self.score,
            "date": self.date,
        }


class StudyStore(ABC):
    """Persistence operations for one user."""

    backend: BackendName
    user_id: str

    # Stats / quiz history
    @abstractmethod
    def get_user_stats(self) -> UserStats: ...

    @abstractmethod
    def save_quiz_result(
        self, topic: str, total: int, score: int, today: date | None = None
    ) -> UserStats:
        """Append a history row and update stats. ``today`` is for testing."""

    @abstractmethod
    def list_quiz_history(self, limit: int = 50) -> list[QuizResult]: ...

    # Chat
    @abstractmethod
    def save_chat_message(self, message: ChatMessage) -> None: ...

    @abstractmethod
    def get_chat_history(self) -> list[ChatMessage]: ...

    @abstractmethod
    def clear_chat_history(self) -> None: ...

    # Materials
    @abstractmethod
    def get_all_materials(self) -> list[StudyMaterial]: ...

    @abstractmethod
    def get_material(self, material_id: str) -> StudyMaterial | None: ...

    @abstractmethod
    def save_material(self, material: StudyMaterial) -> None: ...

    def save_materials_batch(self, materials: list[StudyMaterial]) -> None:
        for material in materials:
            self.save_material(material)

    @abstractmethod
    def clear_all_materials(self) -> None: ...

    # Routine
    @abstractmethod
    def get_study_routine(self) -> StudyRoutine | None: ...

    @abstractmethod
    def save_study_routine(self, routine: StudyRoutine) -> None: ...

    @abstractmethod
    def delete_study_routine(self) -> None: ...


def select_backend(settings: StorageSettings) -> BackendName:
    """Decide which backend to use.

    Raises:
        StorageConfigError: ``hosted`` forced without credentials
    """
    if settings.backend == "local":
        return "local"
    if settings.backend == "hosted":
        if not settings.hosted_configured():
            raise StorageConfigError(
                f"Hosted storage requires {settings.hosted_url_env} and {settings.hosted_key_env}"
            )
        return "hosted"
    return "hosted" if settings.hosted_configured() else "local"


@lru_cache(maxsize=4)
def _hosted_client(url: str, key: str) -> Any:
    from supabase import create_client

    return create_client(url, key)


def create_store(settings: StorageSettings, user_id: str = DEFAULT_USER_ID) -> StudyStore:
    """Build the configured store for a user.

    The local store always exists: it is the whole backend when hosted
    storage is not configured, and the routine cache otherwise.
    """
    from bizu.db.local_store import LocalStore

    backend = select_backend(settings)
    local = LocalStore(Path(settings.local_db_path), user_id=user_id)

    if backend == "local":
        return local

    from bizu.db.hosted_store import HostedStore

    client = _hosted_client(settings.get_hosted_url(), settings.get_hosted_key())
    return HostedStore(client, user_id=user_id, cache=local)
