"""Tutor (BizuBot) conversation turns.

The tutor is stateless: callers send the previous turns along with the new
message, in the ``{role, parts: [{text}]}`` shape the web client keeps.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

import structlog

from bizu.llm.client import LLMClient, Message

logger = structlog.get_logger(__name__)

ChatRole = Literal["user", "model"]

SYSTEM_PROMPT_TUTOR = """Você é o 'BizuBot', o melhor professor de cursinho do Brasil.
Você é direto, motivador e especialista em todas as bancas (FGV, Cebraspe, Vunesp).
Use gírias de concurseiro ('lei seca', 'vade mecum', 'papiro').
Se o aluno estiver desmotivado, dê um choque de realidade.
Seja útil e conciso. Responda sempre com formatação Markdown."""

WELCOME_TEXT = (
    "Oi! Eu sou o **BizuBot**. \n\n"
    "Estou aqui para tirar dúvidas, criar resumos ou te testar. "
    "O que vamos estudar agora?"
)

EMPTY_REPLY_TEXT = (
    "⚠️ Não consegui gerar uma resposta para isso. "
    "Tente perguntar de outra forma."
)

# Older turns beyond this are dropped to bound prompt size
MAX_HISTORY_TURNS = 40


@dataclass
class ChatMessage:
    """A persisted chat message."""

    role: ChatRole
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "text": self.text,
            "timestamp": self.timestamp,
        }

    def to_history_entry(self) -> dict[str, Any]:
        """Shape expected by the askTutor action."""
        return {"role": self.role, "parts": [{"text": self.text}]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        role = "model" if data.get("role") == "model" else "user"
        return cls(
            id=str(data["id"]),
            role=role,
            text=data.get("text", ""),
            timestamp=str(data.get("timestamp", "")),
        )


def welcome_message() -> ChatMessage:
    """Greeting shown when there is no stored history."""
    return ChatMessage(id="welcome", role="model", text=WELCOME_TEXT)


def format_history(history: list[dict[str, Any]]) -> list[Message]:
    """Convert client history into LLM messages.

    ``model`` turns become ``assistant``; everything else is ``user``.
    Turns without text are dropped.
    """
    messages: list[Message] = []
    for entry in history[-MAX_HISTORY_TURNS:]:
        if not isinstance(entry, dict):
            continue
        parts = entry.get("parts") or []
        text = ""
        if isinstance(parts, list) and parts and isinstance(parts[0], dict):
            text = str(parts[0].get("text") or "")
        elif "text" in entry:
            text = str(entry.get("text") or "")
        if not text:
            continue
        role = "assistant" if entry.get("role") == "model" else "user"
        messages.append(Message(role=role, content=text))
    return messages


def ask_tutor(
    history: list[dict[str, Any]],
    message: str,
    client: LLMClient,
) -> str:
    """Answer one tutor turn.

    Args:
        history: Previous turns as ``{role, parts: [{text}]}``
        message: New user message
        client: LLM client

    Returns:
        Markdown reply (never empty)
    """
    messages = [Message(role="system", content=SYSTEM_PROMPT_TUTOR)]
    messages.extend(format_history(history))
    messages.append(Message(role="user", content=message))

    response = client.chat(messages)
    text = response.content.strip()

    logger.info(
        "tutor_turn",
        history_turns=len(messages) - 2,
        reply_chars=len(text),
    )

    return text or EMPTY_REPLY_TEXT
