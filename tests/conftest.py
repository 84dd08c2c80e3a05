"""Shared fixtures.

Tests are grouped by area (config, llm, core, db, web, cli). Every test
runs against defaults or a temporary config so the developer's own
config file and database are never touched.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from bizu.config.app_config import clear_config_cache
from bizu.db.local_store import LocalStore
from bizu.db.store import _hosted_client


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config loader at a temporary file with a local SQLite path."""
    config_path = tmp_path / "bizu_config_v1.yaml"
    config_path.write_text(
        f"""
llm:
  provider: openrouter
  model: test-model
storage:
  backend: auto
  local_db_path: {tmp_path / "bizu.db"}
""",
        encoding="utf-8",
    )
    monkeypatch.setattr("bizu.config.app_config.CONFIG_FILE", config_path)
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    clear_config_cache()
    _hosted_client.cache_clear()
    yield config_path
    clear_config_cache()
    _hosted_client.cache_clear()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "bizu.db"


@pytest.fixture
def local_store(db_path) -> LocalStore:
    """Local store for the default user on a temporary database."""
    return LocalStore(db_path)


@pytest.fixture
def mock_llm_client():
    """Mock LLM client that never calls a real provider."""
    client = MagicMock()
    client.config = MagicMock()
    client.config.provider = "openrouter"
    client.config.model = "test-model"
    client.is_available.return_value = True
    return client


@pytest.fixture
def quiz_llm_output() -> list[dict]:
    """Two well-formed questions as the model returns them."""
    return [
        {
            "text": "Segundo a CF/88, a casa legislativa que inicia a votação de projetos do Presidente é:",
            "options": ["Senado Federal", "Câmara dos Deputados", "Congresso Nacional", "STF"],
            "correctAnswerIndex": 1,
            "explanation": "Art. 64: projetos do Presidente começam na Câmara.",
        },
        {
            "text": "O princípio da legalidade para a Administração significa:",
            "options": [
                "Fazer tudo que a lei não proíbe",
                "Fazer apenas o que a lei autoriza",
                "Agir conforme a conveniência",
                "Seguir apenas decretos",
            ],
            "correctAnswerIndex": 1,
            "explanation": "A Administração só age quando a lei autoriza.",
        },
    ]


@pytest.fixture
def routine_llm_output() -> dict:
    return {
        "weekSchedule": [
            {
                "day": "Segunda",
                "focus": "Direito Constitucional",
                "tasks": [
                    {"subject": "Constitucional", "activity": "Teoria: direitos fundamentais", "duration": "2h"},
                    {"subject": "Constitucional", "activity": "Questões Cebraspe", "duration": "1h"},
                ],
            },
            {"day": "Domingo", "focus": "Simulado", "tasks": []},
        ]
    }
