"""Local storage backend (SQLite).

Used when no hosted backend is configured, and as the routine cache
of the hosted backend.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path

import structlog

from bizu.core.materials import StudyMaterial, normalize_material_type
from bizu.core.routine_planner import ROUTINE_ID, StudyRoutine, parse_week_schedule
from bizu.core.stats import UserStats, apply_quiz_result
from bizu.core.tutor import ChatMessage
from bizu.db.database import ensure_db, get_db
from bizu.db.store import DEFAULT_USER_ID, QuizResult, StudyStore

logger = structlog.get_logger(__name__)


class LocalStore(StudyStore):
    """SQLite-backed store bound to one user."""

    backend = "local"

    def __init__(self, db_path: Path, user_id: str = DEFAULT_USER_ID):
        self.db_path = db_path
        self.user_id = user_id
        ensure_db(db_path)

    # ------------------------------------------------------------------
    # Stats / quiz history
    # ------------------------------------------------------------------

    def _read_stats(self, conn: sqlite3.Connection) -> UserStats | None:
        row = conn.execute(
            "SELECT * FROM stats WHERE user_id = ?", (self.user_id,)
        ).fetchone()
        if row is None:
            return None
        return UserStats(
            total_questions=row["total_questions"],
            total_correct=row["total_correct"],
            last_study_date=row["last_study_date"],
            current_streak=row["current_streak"],
        )

    def get_user_stats(self) -> UserStats:
        with get_db(self.db_path) as conn:
            stats = self._read_stats(conn)
        return stats or UserStats()

    def save_quiz_result(
        self, topic: str, total: int, score: int, today: date | None = None
    ) -> UserStats:
        """Append history and update stats in one transaction."""
        now = datetime.now(timezone.utc).isoformat()

        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO quiz_history (user_id, topic, total_questions, score, date)
                VALUES (?, ?, ?, ?, ?)
                """,
                (self.user_id, topic, total, score, now),
            )

            stats = apply_quiz_result(self._read_stats(conn), total, score, today)

            conn.execute(
                """
                INSERT INTO stats (user_id, total_questions, total_correct, last_study_date, current_streak)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    total_questions = excluded.total_questions,
                    total_correct = excluded.total_correct,
                    last_study_date = excluded.last_study_date,
                    current_streak = excluded.current_streak
                """,
                (
                    self.user_id,
                    stats.total_questions,
                    stats.total_correct,
                    stats.last_study_date,
                    stats.current_streak,
                ),
            )

        logger.debug("quiz_result.saved", user_id=self.user_id, topic=topic, score=score)
        return stats

    def list_quiz_history(self, limit: int = 50) -> list[QuizResult]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT topic, total_questions, score, date FROM quiz_history
                WHERE user_id = ? ORDER BY date DESC, id DESC LIMIT ?
                """,
                (self.user_id, limit),
            ).fetchall()

        return [
            QuizResult(
                topic=row["topic"],
                total_questions=row["total_questions"],
                score=row["score"],
                date=row["date"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def save_chat_message(self, message: ChatMessage) -> None:
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO chat_messages (id, user_id, role, text, timestamp)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, id) DO UPDATE SET
                    role = excluded.role,
                    text = excluded.text,
                    timestamp = excluded.timestamp
                """,
                (message.id, self.user_id, message.role, message.text, message.timestamp),
            )

    def get_chat_history(self) -> list[ChatMessage]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT id, role, text, timestamp FROM chat_messages
                WHERE user_id = ? ORDER BY timestamp ASC, rowid ASC
                """,
                (self.user_id,),
            ).fetchall()

        return [
            ChatMessage(
                id=row["id"],
                role=row["role"],
                text=row["text"],
                timestamp=row["timestamp"],
            )
            for row in rows
        ]

    def clear_chat_history(self) -> None:
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM chat_messages WHERE user_id = ?", (self.user_id,)
            )
        logger.debug("chat_history.cleared", user_id=self.user_id, deleted=cursor.rowcount)

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    def get_all_materials(self) -> list[StudyMaterial]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM materials WHERE user_id = ? ORDER BY rowid ASC",
                (self.user_id,),
            ).fetchall()
        return [_row_to_material(row) for row in rows]

    def get_material(self, material_id: str) -> StudyMaterial | None:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM materials WHERE user_id = ? AND id = ?",
                (self.user_id, material_id),
            ).fetchone()
        if row is None:
            return None
        return _row_to_material(row)

    def save_material(self, material: StudyMaterial) -> None:
        with get_db(self.db_path) as conn:
            _upsert_material(conn, self.user_id, material)

    def save_materials_batch(self, materials: list[StudyMaterial]) -> None:
        """Upsert all materials in a single transaction."""
        with get_db(self.db_path) as conn:
            for material in materials:
                _upsert_material(conn, self.user_id, material)
        logger.debug("materials.saved", user_id=self.user_id, count=len(materials))

    def clear_all_materials(self) -> None:
        with get_db(self.db_path) as conn:
            conn.execute("DELETE FROM materials WHERE user_id = ?", (self.user_id,))

    # ------------------------------------------------------------------
    # Routine
    # ------------------------------------------------------------------

    def get_study_routine(self) -> StudyRoutine | None:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM routine WHERE user_id = ?", (self.user_id,)
            ).fetchone()

        if row is None:
            return None

        try:
            week_schedule = json.loads(row["week_schedule"])
        except json.JSONDecodeError:
            logger.warning("routine.invalid_schedule", user_id=self.user_id)
            week_schedule = []

        return StudyRoutine(
            target_exam=row["target_exam"],
            hours_per_day=row["hours_per_day"],
            week_schedule=parse_week_schedule(week_schedule),
            created_at=row["created_at"],
        )

    def save_study_routine(self, routine: StudyRoutine) -> None:
        routine.id = ROUTINE_ID
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO routine (user_id, id, target_exam, hours_per_day, week_schedule, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    target_exam = excluded.target_exam,
                    hours_per_day = excluded.hours_per_day,
                    week_schedule = excluded.week_schedule,
                    created_at = excluded.created_at
                """,
                (
                    self.user_id,
                    ROUTINE_ID,
                    routine.target_exam,
                    routine.hours_per_day,
                    json.dumps([d.to_dict() for d in routine.week_schedule], ensure_ascii=False),
                    routine.created_at,
                ),
            )
        logger.debug("routine.saved", user_id=self.user_id, backend=self.backend)

    def delete_study_routine(self) -> None:
        with get_db(self.db_path) as conn:
            conn.execute("DELETE FROM routine WHERE user_id = ?", (self.user_id,))


def _upsert_material(conn: sqlite3.Connection, user_id: str, material: StudyMaterial) -> None:
    conn.execute(
        """
        INSERT INTO materials (id, user_id, title, category, type, duration, summary, updated_at, content)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(user_id, id) DO UPDATE SET
            title = excluded.title,
            category = excluded.category,
            type = excluded.type,
            duration = excluded.duration,
            summary = excluded.summary,
            updated_at = excluded.updated_at,
            content = excluded.content
        """,
        (
            material.id,
            user_id,
            material.title,
            material.category,
            normalize_material_type(material.type),
            material.duration,
            material.summary,
            material.updated_at,
            material.content,
        ),
    )


def _row_to_material(row: sqlite3.Row) -> StudyMaterial:
    """Convert database row to StudyMaterial."""
    return StudyMaterial(
        id=row["id"],
        title=row["title"],
        category=row["category"],
        type=row["type"],
        duration=row["duration"],
        summary=row["summary"],
        updated_at=row["updated_at"],
        content=row["content"],
    )
