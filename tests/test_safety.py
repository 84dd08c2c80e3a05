"""Safety tests to ensure the test suite doesn't touch the developer's database.

Every store opened during tests must live under a pytest temporary
directory. The default ``db/bizu.db`` is never created or modified.
"""

import hashlib
import os
from pathlib import Path

import pytest

from bizu.config.app_config import load_app_config
from bizu.db.store import create_store

DB_DIR = Path("db")


def _hash_directory(path: Path) -> str | None:
    """Hash file names, sizes and mtimes under ``path`` (None if missing)."""
    if not path.exists():
        return None

    hasher = hashlib.sha256()
    for root, dirs, files in os.walk(path):
        dirs.sort()
        for filename in sorted(files):
            filepath = Path(root) / filename
            stat = filepath.stat()
            hasher.update(str(filepath.relative_to(path)).encode())
            hasher.update(str(stat.st_size).encode())
            hasher.update(str(int(stat.st_mtime)).encode())
    return hasher.hexdigest()


@pytest.fixture(scope="module")
def db_dir_state_before():
    return {"exists": DB_DIR.exists(), "hash": _hash_directory(DB_DIR)}


class TestConfigIsolation:
    def test_config_points_to_temp_database(self, tmp_path):
        config = load_app_config()

        assert Path(config.storage.local_db_path).parent == tmp_path
        assert config.llm.model == "test-model"

    def test_default_store_is_temporary(self, tmp_path):
        store = create_store(load_app_config().storage)

        assert store.backend == "local"
        assert Path(store.db_path).is_relative_to(tmp_path)


class TestDatabaseDirectorySafety:
    """./db is never created or modified by the suite."""

    def test_db_directory_not_created(self, db_dir_state_before):
        if not db_dir_state_before["exists"] and DB_DIR.exists():
            pytest.fail(
                "./db directory was created during test run. "
                "All tests MUST use temporary directories for databases."
            )

    def test_db_directory_not_modified(self, db_dir_state_before):
        if db_dir_state_before["exists"] and _hash_directory(DB_DIR) != db_dir_state_before["hash"]:
            pytest.fail(
                "./db directory was modified during test run. "
                "All tests MUST use temporary directories for databases."
            )
