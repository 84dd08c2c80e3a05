"""Tests for the action registry used by the generation proxy."""

import pytest

from bizu.core.actions import (
    ACTIONS,
    ActionPayloadError,
    UnknownActionError,
    dispatch,
)
from bizu.llm.client import LLMResponse


def test_six_actions_registered():
    assert set(ACTIONS) == {
        "generateQuiz",
        "askTutor",
        "generateMaterials",
        "generateMaterialContent",
        "generateRoutine",
        "updateRadar",
    }


class TestDispatch:
    def test_unknown_action(self, mock_llm_client):
        with pytest.raises(UnknownActionError, match="Unknown action: fly"):
            dispatch("fly", {}, mock_llm_client)

    def test_payload_must_be_object(self, mock_llm_client):
        with pytest.raises(ActionPayloadError):
            dispatch("generateQuiz", ["AFO"], mock_llm_client)

    def test_generate_quiz(self, mock_llm_client, quiz_llm_output):
        mock_llm_client.simple_json.return_value = quiz_llm_output

        result = dispatch(
            "generateQuiz",
            {"topic": "Constitucional", "difficulty": "hard", "numberOfQuestions": 2},
            mock_llm_client,
        )

        assert [q["id"] for q in result] == ["1", "2"]
        assert set(result[0]) == {"id", "text", "options", "correctAnswerIndex", "explanation"}
        assert "Difícil" in mock_llm_client.simple_json.call_args.kwargs["user_message"]

    def test_generate_quiz_requires_topic(self, mock_llm_client):
        with pytest.raises(ActionPayloadError):
            dispatch("generateQuiz", {}, mock_llm_client)

    def test_ask_tutor(self, mock_llm_client):
        mock_llm_client.chat.return_value = LLMResponse(content="Bizu!", model="m", provider="p")

        result = dispatch(
            "askTutor",
            {"history": [{"role": "model", "parts": [{"text": "Oi"}]}], "message": "Dica?"},
            mock_llm_client,
        )

        assert result == {"text": "Bizu!"}

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"message": "  "},
            {"message": "x", "history": "oi"},
            {"message": "x", "history": [{"role": "user", "parts": {"text": "x"}}]},
            {"message": "x", "history": [None]},
        ],
    )
    def test_ask_tutor_invalid(self, mock_llm_client, payload):
        with pytest.raises(ActionPayloadError):
            dispatch("askTutor", payload, mock_llm_client)

    def test_generate_materials(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = [{"title": "Lei 8.112", "type": "ARTICLE"}]

        result = dispatch("generateMaterials", {"count": 1, "topic": "Adm"}, mock_llm_client)

        assert result[0]["title"] == "Lei 8.112"
        assert result[0]["category"] == "Adm"
        assert "updatedAt" in result[0]
        assert "content" not in result[0]

    def test_generate_materials_bad_count(self, mock_llm_client):
        with pytest.raises(ActionPayloadError):
            dispatch("generateMaterials", {"count": "três"}, mock_llm_client)

    def test_material_content(self, mock_llm_client):
        mock_llm_client.simple_chat.return_value = "# Conteúdo"

        result = dispatch(
            "generateMaterialContent",
            {"material": {"title": "Atos", "category": "Adm", "type": "PDF"}},
            mock_llm_client,
        )

        assert result == {"content": "# Conteúdo"}

    def test_material_content_requires_title(self, mock_llm_client):
        with pytest.raises(ActionPayloadError):
            dispatch("generateMaterialContent", {"material": {}}, mock_llm_client)

    def test_generate_routine(self, mock_llm_client, routine_llm_output):
        mock_llm_client.simple_json.return_value = routine_llm_output

        result = dispatch(
            "generateRoutine",
            {"targetExam": "PF", "hours": "5", "subjects": "Penal"},
            mock_llm_client,
        )

        assert result["targetExam"] == "PF"
        assert result["hoursPerDay"] == 5
        assert result["id"] == "user_routine"
        assert len(result["weekSchedule"]) == 2

    @pytest.mark.parametrize(
        "payload",
        [{"subjects": "Penal"}, {"targetExam": "PF"}, {"targetExam": "PF", "subjects": "x", "hours": "muitas"}],
    )
    def test_generate_routine_invalid(self, mock_llm_client, payload):
        with pytest.raises(ActionPayloadError):
            dispatch("generateRoutine", payload, mock_llm_client)

    def test_update_radar(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"no_updates": True}
        assert dispatch("updateRadar", None, mock_llm_client) == {"no_updates": True}

    def test_update_radar_invalid_titles(self, mock_llm_client):
        with pytest.raises(ActionPayloadError):
            dispatch("updateRadar", {"existingTitles": "PF"}, mock_llm_client)
