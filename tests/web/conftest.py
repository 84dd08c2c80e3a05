"""Fixtures for Web API tests.

The store dependency is left in place: the autouse config fixture points
it at a temporary SQLite file. Only the LLM client is replaced.
"""

import pytest
from fastapi.testclient import TestClient

from bizu.web.api import create_app
from bizu.web.dependencies import get_llm_client


@pytest.fixture
def app(mock_llm_client):
    app = create_app()
    app.dependency_overrides[get_llm_client] = lambda: mock_llm_client
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Create test client with isolated storage and a mocked LLM."""
    return TestClient(app)
