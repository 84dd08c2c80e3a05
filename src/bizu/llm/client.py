"""LLM client for OpenRouter / OpenAI-compatible providers.

Provides a unified interface for LLM interactions used by the
generation proxy.

Supported providers:
- openrouter: OpenRouter API (default, routes to Gemini)
- openai: OpenAI API
- lmstudio: Local LM Studio server (OpenAI-compatible API)
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Literal

import openai
import structlog
from openai import OpenAI

from bizu.config.app_config import LLMSettings, load_app_config

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

Provider = Literal["openrouter", "openai", "lmstudio"]

# Provider-specific defaults
PROVIDER_DEFAULTS: dict[str, dict[str, Any]] = {
    "openrouter": {
        "base_url": "https://openrouter.ai/api/v1",
        "api_key_env": "OPENROUTER_API_KEY",
    },
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "api_key_env": "OPENAI_API_KEY",
    },
    "lmstudio": {
        "base_url": "http://localhost:1234/v1",
        "api_key": "lm-studio",  # LM Studio doesn't need real API key
    },
}

# JSON repair prompt template
JSON_REPAIR_PROMPT = """Corrija e devolva SOMENTE JSON válido a partir deste texto:
<<<
{invalid_output}
>>>

Responda APENAS com o JSON corrigido, sem explicações nem markdown."""

# Some models emit <think>...</think> blocks that interfere with JSON extraction
SANITIZE_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<analysis>.*?</analysis>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]


def _sanitize_for_json(text: str) -> str:
    """Remove thinking/reasoning tags before JSON parsing."""
    result = text
    for pattern in SANITIZE_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: str = "openrouter"
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "google/gemini-2.0-flash-001"
    temperature: float = 0.7
    max_tokens: int = 8000
    timeout: int = 120
    api_key: str | None = None
    app_url: str = "https://bizu.app"
    app_title: str = "Bizu App"

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> LLMConfig:
        """Build client configuration from the [llm] config section."""
        defaults = PROVIDER_DEFAULTS.get(settings.provider, {})

        api_key = settings.get_api_key()
        if api_key is None and "api_key" in defaults:
            api_key = defaults["api_key"]

        return cls(
            provider=settings.provider,
            base_url=settings.base_url or defaults.get("base_url", ""),
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout,
            api_key=api_key,
            app_url=settings.app_url,
            app_title=settings.app_title,
        )

    @classmethod
    def from_app_config(cls) -> LLMConfig:
        """Load configuration from the application config file."""
        return cls.from_settings(load_app_config().llm)


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for API call."""
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        """Get total token count."""
        return self.usage.get("total_tokens", 0)


class LLMError(Exception):
    """Error during LLM interaction."""

    pass


class LLMConnectionError(LLMError):
    """Error connecting to LLM server."""

    pass


class LLMResponseError(LLMError):
    """Error in LLM response."""

    pass


class LLMAuthError(LLMError):
    """Upstream rejected the API key (401)."""

    pass


class LLMQuotaError(LLMError):
    """Upstream account has no credits left (402)."""

    pass


class LLMRateLimitError(LLMError):
    """Upstream is rate limiting requests (429)."""

    pass


# =============================================================================
# JSON EXTRACTION
# =============================================================================


def extract_json(content: str) -> Any:
    """Extract the JSON object or array embedded in a model reply.

    Takes the span from the first '{' or '[' to the last '}' or ']',
    so markdown fences and chatter around the payload are ignored.
    Retries once with single quotes swapped for double quotes.

    Raises:
        LLMResponseError: If no JSON can be recovered
    """
    content = _sanitize_for_json(content)

    first_brace = content.find("{")
    first_bracket = content.find("[")
    if first_brace == -1 and first_bracket == -1:
        raise LLMResponseError("A resposta da IA não contém JSON válido.")

    if first_brace == -1:
        start = first_bracket
    elif first_bracket == -1:
        start = first_brace
    else:
        start = min(first_brace, first_bracket)

    end = max(content.rfind("}"), content.rfind("]"))
    if end < start:
        raise LLMResponseError("JSON incompleto na resposta da IA.")

    json_string = content[start : end + 1]

    try:
        return json.loads(json_string)
    except json.JSONDecodeError:
        pass

    try:
        return json.loads(json_string.replace("'", '"'))
    except json.JSONDecodeError as e:
        raise LLMResponseError("Falha ao processar o JSON retornado pela IA.") from e


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """Unified client for LLM interactions.

    Supports OpenRouter, OpenAI and LM Studio via OpenAI-compatible API.
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        model: str | None = None,
    ):
        """Initialize LLM client.

        Args:
            config: LLM configuration (loads from app config if not provided)
            model: Override model from config
        """
        if config is None:
            config = LLMConfig.from_app_config()

        self.config = config

        if model is not None:
            self.config.model = model

        default_headers = {}
        if self.config.provider == "openrouter":
            default_headers = {
                "HTTP-Referer": self.config.app_url,
                "X-Title": self.config.app_title,
            }

        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
            default_headers=default_headers,
        )

        logger.info(
            "llm_client_initialized",
            provider=self.config.provider,
            model=self.config.model,
            base_url=self.config.base_url,
        )

    def _translate_error(self, error: Exception) -> LLMError:
        """Map SDK exceptions onto the LLMError hierarchy."""
        if isinstance(error, openai.AuthenticationError):
            logger.error("llm_auth_failed", provider=self.config.provider)
            return LLMAuthError(
                "Chave da API inválida (Erro 401). Verifique a chave configurada."
            )
        if isinstance(error, openai.RateLimitError):
            return LLMRateLimitError(
                "A IA está ocupada no momento (Erro 429). Tente novamente em 1 minuto."
            )
        if isinstance(error, openai.APIStatusError) and error.status_code == 402:
            return LLMQuotaError(
                "Saldo insuficiente na API (Erro 402). Verifique seus créditos."
            )
        if isinstance(error, openai.APIConnectionError):
            return LLMConnectionError(
                f"Não foi possível conectar a {self.config.provider} em {self.config.base_url}: {error}"
            )
        if isinstance(error, openai.APIStatusError):
            return LLMError(f"Erro da API ({error.status_code}): {error}")
        return LLMError(f"Erro na chamada LLM: {error}")

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Send chat completion request.

        Args:
            messages: List of messages in conversation
            temperature: Override default temperature
            max_tokens: Override default max tokens

        Returns:
            LLMResponse with content and metadata

        Raises:
            LLMError: Translated upstream failure
            LLMResponseError: If response has no choices
        """
        if temperature is None:
            temperature = self.config.temperature
        if max_tokens is None:
            max_tokens = self.config.max_tokens

        request_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        start_time = time.time()

        try:
            response = self._client.chat.completions.create(**request_kwargs)
        except openai.OpenAIError as e:
            raise self._translate_error(e) from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMResponseError("A IA não retornou nenhuma resposta.")

        content = response.choices[0].message.content or ""

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "llm_response",
            provider=self.config.provider,
            model=response.model,
            tokens=usage.get("total_tokens", 0),
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            model=response.model,
            provider=self.config.provider,
            usage=usage,
            latency_ms=latency_ms,
        )

    def chat_json(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        max_retries: int = 1,
    ) -> Any:
        """Send chat request expecting a JSON object or array.

        Args:
            messages: List of messages
            temperature: Override temperature
            max_tokens: Override max tokens
            max_retries: Number of repair attempts on parse failure

        Returns:
            Parsed JSON (dict or list)

        Raises:
            LLMResponseError: If response is not valid JSON after retries
        """
        response = self.chat(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        try:
            return extract_json(response.content)
        except LLMResponseError as first_error:
            if max_retries <= 0:
                raise
            logger.warning(
                "json_parse_failed_retrying",
                content=response.content[:100],
                provider=self.config.provider,
                error=str(first_error),
            )

        repair_prompt = JSON_REPAIR_PROMPT.format(
            invalid_output=response.content[:1000]  # Limit size
        )
        retry_messages = messages + [
            Message(role="assistant", content=response.content),
            Message(role="user", content=repair_prompt),
        ]
        retry_response = self.chat(
            retry_messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        parsed = extract_json(retry_response.content)
        logger.info("json_parse_recovered_after_retry")
        return parsed

    def simple_chat(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Simple chat with system prompt and user message.

        Returns:
            Response content as string
        """
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_message),
        ]

        response = self.chat(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        return response.content

    def simple_json(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Any:
        """Simple chat expecting JSON response."""
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_message),
        ]

        return self.chat_json(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def is_available(self) -> bool:
        """Check if LLM server is available.

        Returns:
            True if server responds, False otherwise
        """
        try:
            self._client.models.list()
            return True
        except openai.OpenAIError as e:
            logger.debug("llm_unavailable", error=str(e))
            return False
