"""Request dependencies: user id, store and LLM client.

Routes receive these through ``Depends`` so tests can swap them with
``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

import structlog
from fastapi import Depends, Header

from bizu.config.app_config import load_app_config
from bizu.db.store import DEFAULT_USER_ID, StudyStore, create_store
from bizu.llm.client import LLMClient

logger = structlog.get_logger(__name__)

USER_ID_HEADER = "X-User-Id"


def get_user_id(x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER)) -> str:
    """Opaque owner id; ``local`` when the header is absent."""
    user_id = (x_user_id or "").strip()
    return user_id or DEFAULT_USER_ID


def get_store(user_id: str = Depends(get_user_id)) -> StudyStore:
    """Store for the requesting user."""
    return create_store(load_app_config().storage, user_id=user_id)


@lru_cache(maxsize=1)
def get_llm_client() -> LLMClient:
    """Shared LLM client, created on first use."""
    client = LLMClient()
    logger.info("llm_client_ready", provider=client.config.provider, model=client.config.model)
    return client
