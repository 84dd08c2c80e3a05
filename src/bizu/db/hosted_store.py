"""Hosted storage backend (Supabase tables).

Every query is filtered by ``user_id`` so row-level ownership holds even
when the anon key can see other rows. The routine is also written to a
local cache and read back from it when the hosted table is unreachable.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

import structlog
from postgrest.exceptions import APIError

from bizu.core.materials import StudyMaterial, normalize_material_type
from bizu.core.routine_planner import ROUTINE_ID, StudyRoutine, parse_week_schedule
from bizu.core.stats import UserStats, apply_quiz_result
from bizu.core.tutor import ChatMessage
from bizu.db.store import DEFAULT_USER_ID, QuizResult, StorageError, StudyStore

logger = structlog.get_logger(__name__)

STATS_TABLE = "stats"
QUIZ_HISTORY_TABLE = "quiz_history"
CHAT_TABLE = "chat_messages"
MATERIALS_TABLE = "materials"
ROUTINE_TABLE = "routine"


class HostedStore(StudyStore):
    """Supabase-backed store bound to one user.

    Args:
        client: ``supabase.Client`` (anything exposing ``table()``)
        user_id: Owner of every row read or written
        cache: Local store used as routine cache/fallback
    """

    backend = "hosted"

    def __init__(self, client: Any, user_id: str = DEFAULT_USER_ID, cache: StudyStore | None = None):
        self.client = client
        self.user_id = user_id
        self.cache = cache

    def _table(self, name: str) -> Any:
        return self.client.table(name)

    def _execute(self, operation: str, query: Any) -> list[dict[str, Any]]:
        """Run a query builder and return its rows."""
        try:
            response = query.execute()
        except APIError as e:
            logger.error("hosted.query_failed", operation=operation, error=e.message, code=e.code)
            raise StorageError(f"{operation} failed: {e.message}") from e
        return response.data or []

    # ------------------------------------------------------------------
    # Stats / quiz history
    # ------------------------------------------------------------------

    def _read_stats(self) -> UserStats | None:
        rows = self._execute(
            "get_user_stats",
            self._table(STATS_TABLE).select("*").eq("user_id", self.user_id).limit(1),
        )
        if not rows:
            return None
        row = rows[0]
        return UserStats(
            total_questions=int(row.get("total_questions") or 0),
            total_correct=int(row.get("total_correct") or 0),
            last_study_date=row.get("last_study_date") or "",
            current_streak=int(row.get("current_streak") or 0),
        )

    def get_user_stats(self) -> UserStats:
        return self._read_stats() or UserStats()

    def save_quiz_result(
        self, topic: str, total: int, score: int, today: date | None = None
    ) -> UserStats:
        self._execute(
            "save_quiz_result",
            self._table(QUIZ_HISTORY_TABLE).insert(
                {
                    "user_id": self.user_id,
                    "topic": topic,
                    "total_questions": total,
                    "score": score,
                    "date": datetime.now(timezone.utc).isoformat(),
                }
            ),
        )

        stats = apply_quiz_result(self._read_stats(), total, score, today)

        self._execute(
            "save_user_stats",
            self._table(STATS_TABLE).upsert(
                {
                    "user_id": self.user_id,
                    "total_questions": stats.total_questions,
                    "total_correct": stats.total_correct,
                    "last_study_date": stats.last_study_date,
                    "current_streak": stats.current_streak,
                },
                on_conflict="user_id",
            ),
        )

        logger.debug("quiz_result.saved", user_id=self.user_id, topic=topic, backend=self.backend)
        return stats

    def list_quiz_history(self, limit: int = 50) -> list[QuizResult]:
        rows = self._execute(
            "list_quiz_history",
            self._table(QUIZ_HISTORY_TABLE)
            .select("*")
            .eq("user_id", self.user_id)
            .order("date", desc=True)
            .limit(limit),
        )
        return [
            QuizResult(
                topic=row.get("topic", ""),
                total_questions=int(row.get("total_questions") or 0),
                score=int(row.get("score") or 0),
                date=row.get("date", ""),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def save_chat_message(self, message: ChatMessage) -> None:
        self._execute(
            "save_chat_message",
            self._table(CHAT_TABLE).insert({**message.to_dict(), "user_id": self.user_id}),
        )

    def get_chat_history(self) -> list[ChatMessage]:
        rows = self._execute(
            "get_chat_history",
            self._table(CHAT_TABLE)
            .select("*")
            .eq("user_id", self.user_id)
            .order("timestamp"),
        )
        return [ChatMessage.from_dict(row) for row in rows]

    def clear_chat_history(self) -> None:
        self._execute(
            "clear_chat_history",
            self._table(CHAT_TABLE).delete().eq("user_id", self.user_id),
        )

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    def get_all_materials(self) -> list[StudyMaterial]:
        rows = self._execute(
            "get_all_materials",
            self._table(MATERIALS_TABLE)
            .select("*")
            .eq("user_id", self.user_id)
            .order("id"),
        )
        return [_row_to_material(row) for row in rows]

    def get_material(self, material_id: str) -> StudyMaterial | None:
        rows = self._execute(
            "get_material",
            self._table(MATERIALS_TABLE)
            .select("*")
            .eq("user_id", self.user_id)
            .eq("id", material_id)
            .limit(1),
        )
        if not rows:
            return None
        return _row_to_material(rows[0])

    def save_material(self, material: StudyMaterial) -> None:
        self._execute(
            "save_material",
            self._table(MATERIALS_TABLE).upsert(
                _material_to_row(material, self.user_id), on_conflict="user_id,id"
            ),
        )

    def save_materials_batch(self, materials: list[StudyMaterial]) -> None:
        if not materials:
            return
        self._execute(
            "save_materials_batch",
            self._table(MATERIALS_TABLE).upsert(
                [_material_to_row(m, self.user_id) for m in materials],
                on_conflict="user_id,id",
            ),
        )
        logger.debug("materials.saved", user_id=self.user_id, count=len(materials))

    def clear_all_materials(self) -> None:
        self._execute(
            "clear_all_materials",
            self._table(MATERIALS_TABLE).delete().eq("user_id", self.user_id),
        )

    # ------------------------------------------------------------------
    # Routine (write-through to the local cache)
    # ------------------------------------------------------------------

    def get_study_routine(self) -> StudyRoutine | None:
        try:
            rows = self._execute(
                "get_study_routine",
                self._table(ROUTINE_TABLE)
                .select("*")
                .eq("user_id", self.user_id)
                .eq("id", ROUTINE_ID)
                .limit(1),
            )
        except StorageError:
            if self.cache is None:
                raise
            logger.warning("routine.hosted_unavailable", user_id=self.user_id, fallback="local")
            return self.cache.get_study_routine()

        if not rows:
            return None

        row = rows[0]
        routine = StudyRoutine(
            target_exam=row.get("target_exam", ""),
            hours_per_day=row.get("hours_per_day", 0),
            week_schedule=parse_week_schedule(row.get("week_schedule")),
            created_at=row.get("created_at", ""),
        )
        if self.cache is not None:
            self.cache.save_study_routine(routine)
        return routine

    def save_study_routine(self, routine: StudyRoutine) -> None:
        routine.id = ROUTINE_ID
        if self.cache is not None:
            self.cache.save_study_routine(routine)

        self._execute(
            "save_study_routine",
            self._table(ROUTINE_TABLE).upsert(
                {
                    "user_id": self.user_id,
                    "id": ROUTINE_ID,
                    "target_exam": routine.target_exam,
                    "hours_per_day": routine.hours_per_day,
                    "week_schedule": [d.to_dict() for d in routine.week_schedule],
                    "created_at": routine.created_at,
                },
                on_conflict="user_id,id",
            ),
        )
        logger.debug("routine.saved", user_id=self.user_id, backend=self.backend)

    def delete_study_routine(self) -> None:
        if self.cache is not None:
            self.cache.delete_study_routine()

        self._execute(
            "delete_study_routine",
            self._table(ROUTINE_TABLE)
            .delete()
            .eq("user_id", self.user_id)
            .eq("id", ROUTINE_ID),
        )


def _material_to_row(material: StudyMaterial, user_id: str) -> dict[str, Any]:
    return {
        "id": material.id,
        "user_id": user_id,
        "title": material.title,
        "category": material.category,
        "type": normalize_material_type(material.type),
        "duration": material.duration,
        "summary": material.summary,
        "updated_at": material.updated_at,
        "content": material.content,
    }


def _row_to_material(row: dict[str, Any]) -> StudyMaterial:
    return StudyMaterial(
        id=row["id"],
        title=row.get("title", ""),
        category=row.get("category", ""),
        type=normalize_material_type(row.get("type")),
        duration=row.get("duration") or "",
        summary=row.get("summary") or "",
        updated_at=row.get("updated_at") or "",
        content=row.get("content"),
    )
