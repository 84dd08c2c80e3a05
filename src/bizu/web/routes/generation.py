"""Generation proxy endpoint.

Single entry point for every AI feature: the body is ``{action, payload}``
and the action picks the generator. The API key stays on the server.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from bizu.core.actions import ActionError, dispatch
from bizu.llm.client import LLMClient, LLMError, LLMRateLimitError
from bizu.web.dependencies import get_llm_client

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["generation"])


def _error(status_code: int, message: str, details: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def _handle(request: Request, client: LLMClient) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Corpo da requisição inválido (JSON esperado).")

    if not isinstance(body, dict):
        return _error(status.HTTP_400_BAD_REQUEST, "Corpo da requisição inválido (JSON esperado).")

    action = body.get("action")
    if not action or not isinstance(action, str):
        return _error(status.HTTP_400_BAD_REQUEST, "Ação não informada.")

    try:
        result = await run_in_threadpool(dispatch, action, body.get("payload"), client)
    except ActionError as e:
        logger.warning("action_rejected", action=action, error=str(e))
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except LLMRateLimitError as e:
        logger.warning("action_rate_limited", action=action)
        return _error(status.HTTP_429_TOO_MANY_REQUESTS, str(e))
    except LLMError as e:
        logger.error("action_failed", action=action, error=str(e))
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Erro ao processar solicitação na IA",
            details=str(e),
        )

    logger.info("action_processed", action=action)
    return JSONResponse(content=result)


@router.post("/gemini")
async def generate(request: Request, client: LLMClient = Depends(get_llm_client)) -> JSONResponse:
    """Run a generation action."""
    return await _handle(request, client)


@router.post("/generate")
async def generate_alias(request: Request, client: LLMClient = Depends(get_llm_client)) -> JSONResponse:
    """Alias of ``/api/gemini``."""
    return await _handle(request, client)


@router.api_route("/gemini", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
@router.api_route("/generate", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def method_not_allowed() -> JSONResponse:
    return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method Not Allowed")
