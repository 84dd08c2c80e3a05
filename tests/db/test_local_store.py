"""Tests specific to the local (SQLite) backend."""

import sqlite3
from unittest.mock import patch

import pytest

from bizu.core.materials import StudyMaterial
from bizu.db.database import get_db, init_db
from bizu.db.local_store import LocalStore
from bizu.db.store import StorageError


class TestSchema:
    def test_init_creates_tables(self, db_path):
        init_db(db_path)

        with get_db(db_path) as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }

        assert {"stats", "quiz_history", "chat_messages", "materials", "routine"} <= tables

    def test_init_is_idempotent(self, db_path):
        init_db(db_path)
        init_db(db_path)

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "bizu.db"
        LocalStore(path)
        assert path.exists()

    def test_get_db_rolls_back_on_error(self, db_path):
        init_db(db_path)
        with pytest.raises(RuntimeError):
            with get_db(db_path) as conn:
                conn.execute(
                    "INSERT INTO stats (user_id, total_questions) VALUES ('x', 1)"
                )
                raise RuntimeError("boom")

        with get_db(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM stats").fetchone()[0] == 0

    def test_directory_path_raises_storage_error(self, tmp_path):
        with pytest.raises(StorageError):
            LocalStore(tmp_path)

    def test_schema_created_once_per_path(self, tmp_path):
        path = tmp_path / "once.db"
        with patch("bizu.db.database.init_db", wraps=init_db) as spy:
            LocalStore(path)
            LocalStore(path, user_id="ana")
            LocalStore(path).get_user_stats()

        spy.assert_called_once_with(path)


class TestLocalBehavior:
    def test_history_most_recent_first(self, local_store):
        local_store.save_quiz_result("primeiro", 1, 1)
        local_store.save_quiz_result("segundo", 1, 0)

        assert [r.topic for r in local_store.list_quiz_history()] == ["segundo", "primeiro"]

    def test_materials_keep_insertion_order(self, local_store):
        for i in range(3):
            local_store.save_material(
                StudyMaterial(id=f"m{i}", title=f"Material {i}", category="c", type="PDF")
            )
        # Updating an existing row keeps its position
        local_store.save_material(StudyMaterial(id="m0", title="Atualizado", category="c", type="PDF"))

        assert [m.title for m in local_store.get_all_materials()] == [
            "Atualizado",
            "Material 1",
            "Material 2",
        ]

    def test_data_survives_new_instance(self, db_path):
        LocalStore(db_path).save_quiz_result("AFO", 3, 3)
        assert LocalStore(db_path).get_user_stats().total_correct == 3

    def test_corrupt_schedule_reads_as_empty(self, local_store, db_path):
        with get_db(db_path) as conn:
            conn.execute(
                """
                INSERT INTO routine (user_id, target_exam, hours_per_day, week_schedule, created_at)
                VALUES ('local', 'PF', 2, 'not json', '2026-01-01')
                """
            )

        routine = local_store.get_study_routine()
        assert routine.target_exam == "PF"
        assert routine.week_schedule == []

    def test_invalid_role_rejected(self, local_store, db_path):
        with pytest.raises(StorageError) as exc_info:
            with get_db(db_path) as conn:
                conn.execute(
                    "INSERT INTO chat_messages (id, user_id, role, text, timestamp) "
                    "VALUES ('1', 'local', 'system', 'x', 't')"
                )
        assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)
