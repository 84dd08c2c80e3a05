"""Tests for BizuBot tutor turns."""

from bizu.core.tutor import (
    EMPTY_REPLY_TEXT,
    MAX_HISTORY_TURNS,
    SYSTEM_PROMPT_TUTOR,
    WELCOME_TEXT,
    ChatMessage,
    ask_tutor,
    format_history,
    welcome_message,
)
from bizu.llm.client import LLMResponse, Message


def _reply(content: str) -> LLMResponse:
    return LLMResponse(content=content, model="test-model", provider="openrouter")


class TestFormatHistory:
    def test_maps_roles(self):
        history = [
            {"role": "user", "parts": [{"text": "O que é lei seca?"}]},
            {"role": "model", "parts": [{"text": "É o texto puro da lei."}]},
        ]
        assert format_history(history) == [
            Message(role="user", content="O que é lei seca?"),
            Message(role="assistant", content="É o texto puro da lei."),
        ]

    def test_drops_empty_turns(self):
        history = [
            {"role": "user", "parts": [{"text": ""}]},
            {"role": "model", "parts": []},
            {"role": "user", "parts": [{"text": "oi"}]},
        ]
        assert format_history(history) == [Message(role="user", content="oi")]

    def test_accepts_flat_text(self):
        assert format_history([{"role": "model", "text": "oi"}]) == [
            Message(role="assistant", content="oi")
        ]

    def test_skips_malformed_parts(self):
        history = [
            {"role": "user", "parts": {"text": "x"}},
            {"role": "user", "parts": "x"},
            {"role": "model", "parts": [{"text": "ok"}]},
        ]
        assert format_history(history) == [Message(role="assistant", content="ok")]

    def test_keeps_only_recent_turns(self):
        history = [{"role": "user", "parts": [{"text": f"m{i}"}]} for i in range(MAX_HISTORY_TURNS + 5)]
        messages = format_history(history)
        assert len(messages) == MAX_HISTORY_TURNS
        assert messages[-1].content == f"m{MAX_HISTORY_TURNS + 4}"


class TestAskTutor:
    def test_builds_conversation(self, mock_llm_client):
        mock_llm_client.chat.return_value = _reply("  **Bizu:** estude a CF.  ")
        history = [{"role": "model", "parts": [{"text": WELCOME_TEXT}]}]

        text = ask_tutor(history, "Por onde começo?", mock_llm_client)

        assert text == "**Bizu:** estude a CF."
        messages = mock_llm_client.chat.call_args.args[0]
        assert messages[0] == Message(role="system", content=SYSTEM_PROMPT_TUTOR)
        assert messages[1].role == "assistant"
        assert messages[-1] == Message(role="user", content="Por onde começo?")

    def test_empty_reply_replaced(self, mock_llm_client):
        mock_llm_client.chat.return_value = _reply("   ")
        assert ask_tutor([], "?", mock_llm_client) == EMPTY_REPLY_TEXT


class TestChatMessage:
    def test_defaults(self):
        message = ChatMessage(role="user", text="oi")
        assert len(message.id) == 32
        assert "T" in message.timestamp

    def test_history_entry(self):
        message = ChatMessage(role="model", text="oi", id="m1")
        assert message.to_history_entry() == {"role": "model", "parts": [{"text": "oi"}]}

    def test_from_dict_unknown_role_is_user(self):
        message = ChatMessage.from_dict({"id": "1", "role": "system", "text": "x", "timestamp": "t"})
        assert message.role == "user"

    def test_welcome_message(self):
        message = welcome_message()
        assert message.role == "model"
        assert message.text == WELCOME_TEXT
