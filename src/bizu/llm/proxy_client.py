"""Retrying client for the generation endpoint.

Every generation call is a single POST of ``{action, payload}`` to the
proxy. Server errors (5xx), rate limiting (429), timeouts and transport
failures are retried with exponential backoff; other client errors (4xx)
are raised immediately so the caller can show the message.

Usage:
    from bizu.llm.proxy_client import GenerationClient

    with GenerationClient.from_app_config() as client:
        questions = client.generate_quiz("Direito Constitucional", "Médio", 5)
"""

from __future__ import annotations

import time
from typing import Any, Callable

import httpx
import structlog

from bizu.config.app_config import ApiClientSettings, load_app_config

logger = structlog.get_logger(__name__)


class GenerationError(Exception):
    """Error calling the generation endpoint."""

    pass


class GenerationRequestError(GenerationError):
    """Endpoint rejected the request (4xx other than 429). Not retried."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class GenerationUnavailableError(GenerationError):
    """Retries exhausted on server errors, rate limiting or timeouts."""

    def __init__(self, message: str, attempts: int, status_code: int | None = None):
        super().__init__(message)
        self.attempts = attempts
        self.status_code = status_code


def is_retryable_status(status_code: int) -> bool:
    """429 and every 5xx are retried."""
    return status_code == 429 or status_code >= 500


def _parse_retry_after(response: httpx.Response) -> float | None:
    """Retry-After header in seconds, if numeric."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    """Best-effort message from an error response body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        return str(data.get("error") or data.get("detail") or data)
    return str(data)


class GenerationClient:
    """HTTP client for the ``{action, payload}`` generation endpoint."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        endpoint: str = "/api/gemini",
        timeout: float = 60.0,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 16.0,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the client.

        Args:
            base_url: Root URL of the proxy server
            endpoint: Path of the generation endpoint
            timeout: Per-request timeout in seconds
            max_retries: Retries after the first attempt
            backoff_base: Delay before the first retry, doubled each time
            backoff_max: Upper bound for a single delay
            transport: Optional httpx transport (for testing)
            sleep: Sleep function (for testing)
        """
        self.endpoint = endpoint
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: ApiClientSettings, **kwargs: Any) -> GenerationClient:
        """Build a client from the [api_client] config section."""
        return cls(
            base_url=settings.base_url,
            endpoint=settings.endpoint,
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries,
            backoff_base=settings.backoff_base_seconds,
            backoff_max=settings.backoff_max_seconds,
            **kwargs,
        )

    @classmethod
    def from_app_config(cls, **kwargs: Any) -> GenerationClient:
        return cls.from_settings(load_app_config().api_client, **kwargs)

    def __enter__(self) -> GenerationClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def backoff_delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Delay before retry number ``attempt + 1`` (attempt is 0-based)."""
        delay = self.backoff_base * (2**attempt)
        if retry_after is not None:
            delay = max(delay, retry_after)
        return min(delay, self.backoff_max)

    def request(self, action: str, payload: dict[str, Any] | None = None) -> Any:
        """POST an action to the generation endpoint.

        Args:
            action: Action name (e.g. "generateQuiz")
            payload: Action payload

        Returns:
            Decoded JSON response body

        Raises:
            GenerationRequestError: Endpoint answered with a non-retryable 4xx
            GenerationUnavailableError: All attempts failed
        """
        body = {"action": action, "payload": payload or {}}
        attempts = self.max_retries + 1
        last_error = ""
        last_status: int | None = None

        for attempt in range(attempts):
            retry_after: float | None = None

            try:
                response = self._client.post(self.endpoint, json=body)
            except httpx.TimeoutException as e:
                last_error = f"Tempo limite excedido: {e}"
                last_status = None
            except httpx.TransportError as e:
                last_error = f"Falha de conexão: {e}"
                last_status = None
            else:
                if response.is_success:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise GenerationError(
                            f"Resposta inválida do servidor para {action}"
                        ) from e

                message = _error_message(response)
                if not is_retryable_status(response.status_code):
                    logger.info(
                        "generation_rejected",
                        action=action,
                        status=response.status_code,
                        error=message,
                    )
                    raise GenerationRequestError(response.status_code, message)

                last_error = message
                last_status = response.status_code
                retry_after = _parse_retry_after(response)

            if attempt < self.max_retries:
                delay = self.backoff_delay(attempt, retry_after)
                logger.warning(
                    "generation_retry",
                    action=action,
                    attempt=attempt + 1,
                    status=last_status,
                    delay_s=delay,
                    error=last_error,
                )
                self._sleep(delay)

        logger.error(
            "generation_failed",
            action=action,
            attempts=attempts,
            status=last_status,
            error=last_error,
        )
        raise GenerationUnavailableError(last_error, attempts=attempts, status_code=last_status)

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    def generate_quiz(
        self, topic: str, difficulty: str = "Médio", number_of_questions: int = 5
    ) -> list[dict[str, Any]]:
        return self.request(
            "generateQuiz",
            {
                "topic": topic,
                "difficulty": difficulty,
                "numberOfQuestions": number_of_questions,
            },
        )

    def ask_tutor(self, history: list[dict[str, Any]], message: str) -> str:
        result = self.request("askTutor", {"history": history, "message": message})
        return result.get("text", "")

    def generate_materials(self, count: int = 3, topic: str | None = None) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"count": count}
        if topic:
            payload["topic"] = topic
        return self.request("generateMaterials", payload)

    def generate_material_content(self, material: dict[str, Any]) -> str:
        result = self.request("generateMaterialContent", {"material": material})
        return result.get("content", "")

    def generate_routine(self, target_exam: str, hours: float, subjects: str) -> dict[str, Any]:
        return self.request(
            "generateRoutine",
            {"targetExam": target_exam, "hours": hours, "subjects": subjects},
        )

    def update_radar(self, existing_titles: list[str] | None = None) -> Any:
        return self.request("updateRadar", {"existingTitles": existing_titles or []})
